"""
Backends — Interchangeable compile strategies behind one contract.

- BundlingBackend ("bundle"): the engine walks the graph via resolve/load hooks
- TranspileOnlyBackend ("transpile"): per-file transform + hand-rolled registry

Usage:
    backend = create_backend("bundle", MemorySourceProvider(files))
    await backend.initialize()
    html_code = await backend.compile_and_run(entry_point="@/entry")
"""

from typing import Dict, Type

from ..core.sources import SourceProvider
from .base import CompilerBackend, Lifecycle
from .bundling import BundlingBackend
from .transpile import TranspileOnlyBackend

BACKENDS: Dict[str, Type[CompilerBackend]] = {
    BundlingBackend.name: BundlingBackend,
    TranspileOnlyBackend.name: TranspileOnlyBackend,
}


def create_backend(name: str, provider: SourceProvider, **kwargs) -> CompilerBackend:
    """
    Create a backend by name. Extra keyword arguments go to its constructor.

    Raises:
        ValueError: unknown backend name
    """
    backend_class = BACKENDS.get(name)
    if backend_class is None:
        raise ValueError(f"Unknown backend '{name}'. Available: {', '.join(BACKENDS)}")
    return backend_class(provider, **kwargs)


__all__ = [
    'CompilerBackend',
    'Lifecycle',
    'BundlingBackend',
    'TranspileOnlyBackend',
    'BACKENDS',
    'create_backend',
]
