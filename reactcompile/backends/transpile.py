"""
TranspileOnlyBackend — Walks the module graph itself.

The TransformEngine only sees one file at a time, so this backend:
1. transforms the entry
2. discovers alias (`@/...`) imports in the transformed code
3. follows them recursively (visited set, so cycles terminate)
4. rewrites every module to registry form
5. leaves registry assembly to the SandboxExecutor

Relative and bare imports are never followed. Dependency failures are
downgraded to warnings; only entry failures abort the compile.
"""

import asyncio
import logging
from typing import List, Optional, Set

from ..core.cache import SourceCache, TransformCache
from ..core.externals import ExternalPackages
from ..core.loader import SourceLoader
from ..core.models import (
    BackendState, BuildResult, CompileOptions, CompilerCapabilities, ModuleRegistry,
    SourceRecord, TransformedModule,
)
from ..core.parsing.registry import ParserRegistry
from ..core.paths import ExternalMarker, PathResolver
from ..core.sources import SourceProvider
from ..engines.transform import TransformEngine
from ..errors import NetworkError, ResolutionError, TransformError
from ..linker.rewrite import rewrite_module
from ..sandbox.executor import SandboxExecutor
from .base import CompilerBackend, Lifecycle

logger = logging.getLogger(__name__)


class TranspileOnlyBackend(CompilerBackend):
    """Per-file transform plus a hand-rolled module registry."""

    name = "transpile"

    def __init__(
        self,
        provider: SourceProvider,
        externals: Optional[ExternalPackages] = None,
        resolver: Optional[PathResolver] = None,
        executor: Optional[SandboxExecutor] = None,
        engine: Optional[TransformEngine] = None,
        registry: Optional[ParserRegistry] = None,
    ):
        self.externals = externals or ExternalPackages.default()
        self.resolver = resolver or PathResolver(externals=self.externals)
        self.sources = SourceCache()
        self.transformed = TransformCache()
        self.loader = SourceLoader(self.resolver, provider, self.sources)
        self.engine = engine or TransformEngine(registry)
        self.executor = executor or SandboxExecutor(externals=self.externals)
        self.lifecycle = Lifecycle("TranspileOnlyBackend")
        self._compile_lock = asyncio.Lock()

    @property
    def provider(self) -> SourceProvider:
        return self.loader.provider

    @property
    def state(self) -> BackendState:
        return self.lifecycle.state

    async def initialize(self) -> None:
        await self.lifecycle.ensure(self.engine.initialize)

    def get_capabilities(self) -> CompilerCapabilities:
        return CompilerCapabilities(
            bundling=False,
            jsx=True,
            type_annotations=True,
            multi_file=False,
            name=self.name,
        )

    def is_external_package(self, path: str) -> bool:
        return self.externals.is_external(path)

    def invalidate(self, path: Optional[str] = None) -> None:
        if path is None:
            self.loader.invalidate()
            self.transformed.clear()
            return
        canonical = self.sources.canonical(path) or path
        self.loader.invalidate(canonical)
        self.transformed.evict(canonical)

    # -------------------------------------------------------------------------
    # Compile
    # -------------------------------------------------------------------------

    async def compile(self, options: Optional[CompileOptions] = None, **overrides) -> BuildResult:
        self.lifecycle.require_ready()
        options = CompileOptions.coerce(options, **overrides)

        async with self._compile_lock:
            if options.clear_cache:
                self.clear_cache()

            logger.info("Transforming: %s", options.entry_point)
            located = await self.loader.locate(options.entry_point, None, options.base_url)
            if isinstance(located, ExternalMarker):
                raise ResolutionError(
                    f'Entry point "{options.entry_point}" is an external package',
                    options.entry_point,
                )
            entry = self._transform(located, options.minify)

            warnings: List[str] = []
            await self._walk(entry, options.base_url, {entry.path}, warnings, options.minify)

            registry: ModuleRegistry = {}
            for path, module in self.transformed.items():
                registry[path] = self._link(module, options.base_url, warnings)

            logger.info(
                "Build complete: %d bytes (%d modules)",
                sum(len(body) for body in registry.values()),
                len(registry),
            )
            return BuildResult(
                code=registry[entry.path],
                entry_point=entry.path,
                module_registry=registry,
                warnings=warnings,
                minify=options.minify,
            )

    async def compile_and_run(self, options: Optional[CompileOptions] = None, **overrides) -> str:
        options = CompileOptions.coerce(options, **overrides)
        ticket = self.executor.reserve()
        result = await self.compile(options)
        self.executor.execute(result, theme_colors=options.theme_colors, ticket=ticket)
        return result.code

    def _transform(self, record: SourceRecord, minify: bool = False) -> TransformedModule:
        cached = self.transformed.get(record.path, record.digest)
        if cached is not None and cached.comments_stripped == minify:
            return cached
        code = self.engine.transform(record.contents, record.path, record.kind, strip_comments=minify)
        module = TransformedModule(record.path, code, record.digest, comments_stripped=minify)
        self.transformed.put(module)
        logger.info("Transformed: %s", record.path)
        return module

    def _discover(self, module: TransformedModule) -> List[str]:
        syntax = self.engine.parse_module(module.code, module.path)
        return [s for s in syntax.specifiers() if self.resolver.is_alias(s)]

    async def _walk(
        self,
        module: TransformedModule,
        base_url: str,
        visited: Set[str],
        warnings: List[str],
        minify: bool,
    ) -> None:
        for specifier in self._discover(module):
            try:
                located = await self.loader.locate(specifier, module.path, base_url)
                if isinstance(located, ExternalMarker):
                    continue
                dependency = self._transform(located, minify)
            except (ResolutionError, NetworkError, TransformError) as e:
                message = f"Failed to transform dependency {specifier} of {module.path}: {e.message}"
                logger.warning(message)
                warnings.append(message)
                module.dependencies.pop(specifier, None)
                continue

            module.dependencies[specifier] = dependency.path
            if dependency.path in visited:
                continue
            visited.add(dependency.path)
            await self._walk(dependency, base_url, visited, warnings, minify)

    def _link(self, module: TransformedModule, base_url: str, warnings: List[str]) -> str:
        syntax = self.engine.parse_module(module.code, module.path)

        def target_for(specifier: str) -> str:
            if specifier in module.dependencies:
                return module.dependencies[specifier]
            if self.is_external_package(specifier):
                return specifier
            try:
                resolved = self.resolver.resolve(specifier, module.path, base_url)
            except ResolutionError:
                return specifier
            if isinstance(resolved, ExternalMarker):
                return specifier
            for candidate in self.resolver.candidates(resolved):
                if candidate in self.transformed:
                    return candidate
            if self.resolver.is_relative(specifier):
                message = f'Relative import "{specifier}" in {module.path} is not followed; it will fail at runtime'
                logger.warning(message)
                warnings.append(message)
            return resolved

        return rewrite_module(module.code, syntax, target_for)
