"""
Engines — In-process compilers the backends delegate to.

- TransformEngine: one file in, one ES module out (no graph knowledge)
- BundlerEngine: traverses the graph through resolve/load plugin hooks
"""

from .transform import TransformEngine
from .bundler import (
    BundlerEngine, BuildOutput, Message, OnLoadArgs, OnLoadResult,
    OnResolveArgs, OnResolveResult, OutputFile, Plugin, PluginBuild,
    aggregate_errors,
)

__all__ = [
    'TransformEngine',
    'BundlerEngine',
    'BuildOutput',
    'Message',
    'OnLoadArgs',
    'OnLoadResult',
    'OnResolveArgs',
    'OnResolveResult',
    'OutputFile',
    'Plugin',
    'PluginBuild',
    'aggregate_errors',
]
