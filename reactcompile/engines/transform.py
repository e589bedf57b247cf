"""
TransformEngine — Per-file syntax transform, no graph traversal.

Loading the grammars is the only expensive step and runs in a worker
thread. After that, transform() is a synchronous call on one file.
"""

import asyncio
import logging
from typing import Optional

from ..core.models import SourceKind
from ..core.parsing.modsyntax import ModuleSyntax, ModuleSyntaxParser
from ..core.parsing.parsers import ParserPool
from ..core.parsing.registry import ParserRegistry
from ..core.parsing.transpiler import Transpiler
from ..errors import InitializationError

logger = logging.getLogger(__name__)


class TransformEngine:
    """TypeScript + JSX (automatic runtime) to ES module, one file at a time."""

    def __init__(
        self,
        registry: Optional[ParserRegistry] = None,
        jsx_import_source: str = "react",
    ):
        self.registry = registry or ParserRegistry.default()
        self.pool = ParserPool()
        self.transpiler = Transpiler(self.pool, self.registry, jsx_import_source)
        self.syntax = ModuleSyntaxParser(self.pool)

    @property
    def is_loaded(self) -> bool:
        return all(self.pool.is_loaded(g) for g in self.grammars())

    def grammars(self):
        return sorted(set(self.registry.grammars()) | {self.syntax.grammar})

    async def initialize(self) -> None:
        if self.is_loaded:
            return
        loaded = await asyncio.to_thread(self.pool.load, self.grammars())
        logger.info("Transform engine loaded grammars: %s", ", ".join(loaded))

    def require_loaded(self) -> None:
        if not self.is_loaded:
            raise InitializationError("Transform engine not loaded. Call initialize() first.")

    def transform(
        self,
        code: str,
        path: str,
        kind: Optional[SourceKind] = None,
        strip_comments: bool = False,
    ) -> str:
        """
        Transform one file.

        Raises:
            InitializationError: engine not loaded
            TransformError: file rejected
        """
        self.require_loaded()
        return self.transpiler.transform(code, path, kind, strip_comments)

    def parse_module(self, code: str, path: str = "<module>") -> ModuleSyntax:
        """Import/export statements of already transformed code."""
        self.require_loaded()
        return self.syntax.parse(code, path)
