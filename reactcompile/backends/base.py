"""
Compiler backends — The contract every strategy implements

Backends differ in who walks the module graph (the engine, or the backend
itself) but present the same surface to the host. Shared pieces
(resolver, source loading, lifecycle) are composed, not inherited.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from ..core.models import BackendState, BuildResult, CompileOptions, CompilerCapabilities
from ..errors import CompileError, InitializationError

logger = logging.getLogger(__name__)


class CompilerBackend(ABC):
    """Abstract base for compiler backends."""

    name: str = ""

    @property
    @abstractmethod
    def state(self) -> BackendState:
        """Lifecycle state of this instance."""
        pass

    @abstractmethod
    async def initialize(self) -> None:
        """
        Load the engine. Idempotent; concurrent callers share one load.

        Raises:
            InitializationError: engine failed to load (state becomes FAILED)
        """
        pass

    @abstractmethod
    async def compile(self, options: Optional[CompileOptions] = None, **overrides) -> BuildResult:
        """
        Compile the project reachable from options.entry_point.

        Raises:
            InitializationError: called before initialize()
            ResolutionError, NetworkError, TransformError: entry-path failure
        """
        pass

    @abstractmethod
    async def compile_and_run(self, options: Optional[CompileOptions] = None, **overrides) -> str:
        """compile(), then hand the result to the SandboxExecutor. Returns the code."""
        pass

    @abstractmethod
    def get_capabilities(self) -> CompilerCapabilities:
        pass

    @abstractmethod
    def is_external_package(self, path: str) -> bool:
        pass

    @abstractmethod
    def invalidate(self, path: Optional[str] = None) -> None:
        """Drop cached state for one CanonicalPath, or everything."""
        pass

    def clear_cache(self) -> None:
        self.invalidate(None)


class Lifecycle:
    """
    Per-instance engine lifecycle: UNINITIALIZED -> INITIALIZING -> READY.

    A failed load leaves the state FAILED; initialize() may be retried.
    """

    def __init__(self, owner: str):
        self.owner = owner
        self.state = BackendState.UNINITIALIZED
        self._lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self.state is BackendState.READY

    async def ensure(self, load: Callable[[], Awaitable[None]]) -> None:
        if self.is_ready:
            return
        async with self._lock:
            if self.is_ready:
                return
            self.state = BackendState.INITIALIZING
            try:
                await load()
            except InitializationError:
                self.state = BackendState.FAILED
                raise
            except (CompileError, OSError, RuntimeError) as e:
                self.state = BackendState.FAILED
                raise InitializationError(f"{self.owner} initialization failed: {e}") from e
            self.state = BackendState.READY
            logger.info("%s initialized", self.owner)

    def require_ready(self) -> None:
        if not self.is_ready:
            raise InitializationError(f"{self.owner} not initialized. Call initialize() first.")
