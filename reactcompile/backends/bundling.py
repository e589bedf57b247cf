"""
BundlingBackend — Delegates graph traversal to the BundlerEngine.

The backend only answers two questions through the `virtual-fs` plugin:
where does this import live (resolve hook), and what is in it (load hook).
Everything else (traversal, transforms, linking) is the engine's.
"""

import asyncio
import logging
from typing import Optional

from ..core.cache import SourceCache
from ..core.externals import ExternalPackages
from ..core.loader import SourceLoader
from ..core.models import BackendState, BuildResult, CompileOptions, CompilerCapabilities
from ..core.parsing.registry import ParserRegistry
from ..core.paths import ExternalMarker, PathResolver
from ..core.sources import SourceProvider
from ..engines.bundler import (
    BundlerEngine, Message, OnLoadArgs, OnLoadResult, OnResolveArgs, OnResolveResult,
    Plugin, PluginBuild, aggregate_errors,
)
from ..errors import CompileError
from ..sandbox.executor import SandboxExecutor
from .base import CompilerBackend, Lifecycle

logger = logging.getLogger(__name__)


VIRTUAL_NAMESPACE = "virtual"
PLUGIN_NAME = "virtual-fs"


class BundlingBackend(CompilerBackend):
    """Bundler-delegated strategy: one engine invocation per compile."""

    name = "bundle"

    def __init__(
        self,
        provider: SourceProvider,
        externals: Optional[ExternalPackages] = None,
        resolver: Optional[PathResolver] = None,
        executor: Optional[SandboxExecutor] = None,
        engine: Optional[BundlerEngine] = None,
        registry: Optional[ParserRegistry] = None,
    ):
        self.externals = externals or ExternalPackages.default()
        self.resolver = resolver or PathResolver(externals=self.externals)
        self.sources = SourceCache()
        self.loader = SourceLoader(self.resolver, provider, self.sources)
        self.engine = engine or BundlerEngine(registry)
        self.executor = executor or SandboxExecutor(externals=self.externals)
        self.lifecycle = Lifecycle("BundlingBackend")
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
            bundling=True,
            jsx=True,
            type_annotations=True,
            multi_file=True,
            name=self.name,
        )

    def is_external_package(self, path: str) -> bool:
        return self.externals.is_external(path)

    def invalidate(self, path: Optional[str] = None) -> None:
        self.loader.invalidate(path)

    # -------------------------------------------------------------------------
    # virtual-fs plugin
    # -------------------------------------------------------------------------

    def create_virtual_fs_plugin(self, base_url: str) -> Plugin:
        """Resolve/load hooks serving project files from the SourceProvider."""

        async def on_resolve(args: OnResolveArgs) -> Optional[OnResolveResult]:
            return await self._on_resolve(args, base_url)

        async def on_load(args: OnLoadArgs) -> OnLoadResult:
            return await self._on_load(args, base_url)

        def setup(build: PluginBuild) -> None:
            build.on_resolve(r".*", on_resolve)
            build.on_load(r".*", on_load, namespace=VIRTUAL_NAMESPACE)

        return Plugin(PLUGIN_NAME, setup)

    async def _on_resolve(self, args: OnResolveArgs, base_url: str) -> Optional[OnResolveResult]:
        path = args.path
        logger.debug("Resolving: %s from %s", path, args.importer or "<entry>")

        if self.is_external_package(path):
            return OnResolveResult(path=path, external=True)

        from_virtual = args.namespace == VIRTUAL_NAMESPACE
        if (
            self.resolver.is_alias(path)
            or (from_virtual and self.resolver.is_relative(path))
            or path.startswith("/")
        ):
            importer = args.importer if from_virtual else None
            try:
                located = await self.loader.locate(path, importer, base_url)
            except CompileError as e:
                return OnResolveResult(errors=[Message(e.message, detail=e)])
            if isinstance(located, ExternalMarker):
                return OnResolveResult(path=located.specifier, external=True)
            return OnResolveResult(path=located.path, namespace=VIRTUAL_NAMESPACE)

        if not path.startswith("."):
            return OnResolveResult(path=path, external=True)

        return None

    async def _on_load(self, args: OnLoadArgs, base_url: str) -> OnLoadResult:
        cached = self.sources.get(args.path)
        if cached is not None:
            return OnLoadResult(contents=cached.contents, loader=cached.kind.value)
        try:
            record = await self.loader.load(args.path, base_url)
        except CompileError as e:
            return OnLoadResult(errors=[Message(e.message, location=None, detail=e)])
        return OnLoadResult(contents=record.contents, loader=record.kind.value)

    # -------------------------------------------------------------------------
    # Compile
    # -------------------------------------------------------------------------

    async def compile(self, options: Optional[CompileOptions] = None, **overrides) -> BuildResult:
        self.lifecycle.require_ready()
        options = CompileOptions.coerce(options, **overrides)

        async with self._compile_lock:
            if options.clear_cache:
                self.clear_cache()

            logger.info("Building: %s", options.entry_point)
            output = await self.engine.build(
                entry_points=[options.entry_point],
                plugins=[self.create_virtual_fs_plugin(options.base_url)],
                format="esm",
                jsx="automatic",
                jsx_import_source="react",
                target="es2020",
                minify=options.minify,
                sourcemap=options.sourcemap,
            )
            if output.errors:
                raise aggregate_errors(output.errors)

            code = output.output_files[0].text
            warnings = [m.format() for m in output.warnings]
            for warning in warnings:
                logger.warning(warning)
            logger.info("Build complete: %d bytes (%d modules)", len(code), len(output.inputs))
            return BuildResult(
                code=code,
                entry_point=output.entry_points[0],
                module_registry=None,
                warnings=warnings,
                minify=options.minify,
            )

    async def compile_and_run(self, options: Optional[CompileOptions] = None, **overrides) -> str:
        options = CompileOptions.coerce(options, **overrides)
        ticket = self.executor.reserve()
        result = await self.compile(options)
        self.executor.execute(result, theme_colors=options.theme_colors, ticket=ticket)
        return result.code
