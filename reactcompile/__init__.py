"""
reactcompile — Live compilation of small multi-file React projects

Edit files under an `@/`-aliased source directory, compile them with one
of two interchangeable backends, and hand the result to a sandboxed frame.

Usage:
    reactcompile build
    reactcompile build --backend transpile --json
    reactcompile build --html
    reactcompile capabilities
    reactcompile config --set compiler.backend=transpile
"""

__version__ = "0.1.0"

# Core layer (data)
from .core.models import (
    BackendState, BuildResult, CompileOptions, CompilerCapabilities, SourceKind, SourceRecord,
)
from .core.paths import ExternalMarker, PathResolver
from .core.externals import ExternalPackages
from .core.sources import (
    FileSystemSourceProvider, HttpSourceProvider, MemorySourceProvider, SourceProvider,
)

# Backends
from .backends import BundlingBackend, CompilerBackend, TranspileOnlyBackend, create_backend

# Sandbox
from .sandbox import IsolatedFrame, RenderTarget, SandboxExecutor

# Host
from .host import Playground

# Config (stays at root)
from .config import Config, ConfigManager, get_config

# Errors
from .errors import (
    CompileError, ExecutionError, InitializationError, NetworkError, ResolutionError,
    SandboxPolicyError, SourceNotFoundError, TransformError,
)

__all__ = [
    # Core
    'BackendState', 'BuildResult', 'CompileOptions', 'CompilerCapabilities',
    'SourceKind', 'SourceRecord',
    'ExternalMarker', 'PathResolver', 'ExternalPackages',
    'FileSystemSourceProvider', 'HttpSourceProvider', 'MemorySourceProvider', 'SourceProvider',
    # Backends
    'BundlingBackend', 'CompilerBackend', 'TranspileOnlyBackend', 'create_backend',
    # Sandbox
    'IsolatedFrame', 'RenderTarget', 'SandboxExecutor',
    # Host
    'Playground',
    # Config
    'Config', 'ConfigManager', 'get_config',
    # Errors
    'CompileError', 'ExecutionError', 'InitializationError', 'NetworkError',
    'ResolutionError', 'SandboxPolicyError', 'SourceNotFoundError', 'TransformError',
]
