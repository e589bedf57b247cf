"""
Core — Data layer shared by every backend

- Models: SourceRecord, TransformedModule, BuildResult, CompileOptions, capabilities
- Paths: PathResolver, alias/relative/bare resolution
- Externals: allowlisted runtime packages and the import map
- Sources: SourceProvider and its memory / filesystem / HTTP variants
- Cache: per-backend SourceCache and TransformCache
- Loader: resolver + provider + cache
"""

from .models import (
    BackendState, BuildResult, CompileOptions, CompilerCapabilities, ModuleRegistry,
    SourceKind, SourceRecord, TransformedModule, content_digest,
)
from .externals import DEFAULT_PACKAGES, ExternalPackages
from .paths import DEFAULT_ALIAS, DEFAULT_EXTENSIONS, ExternalMarker, PathResolver
from .sources import (
    FileSystemSourceProvider, HttpSourceProvider, MemorySourceProvider, SourceProvider,
)
from .cache import SourceCache, TransformCache
from .loader import SourceLoader

__all__ = [
    'BackendState', 'BuildResult', 'CompileOptions', 'CompilerCapabilities', 'ModuleRegistry',
    'SourceKind', 'SourceRecord', 'TransformedModule', 'content_digest',
    'DEFAULT_PACKAGES', 'ExternalPackages',
    'DEFAULT_ALIAS', 'DEFAULT_EXTENSIONS', 'ExternalMarker', 'PathResolver',
    'FileSystemSourceProvider', 'HttpSourceProvider', 'MemorySourceProvider', 'SourceProvider',
    'SourceCache', 'TransformCache',
    'SourceLoader',
]
