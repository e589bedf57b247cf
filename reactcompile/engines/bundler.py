"""
BundlerEngine — Graph-traversing bundler with a resolve/load plugin API.

The engine owns traversal: starting from the entry points it asks the
plugins' resolve hooks where each import lives, asks the load hooks for
contents, transforms every module, and links the whole graph into one ES
module. External imports stay as static `import` statements for the
consumer's import map.

Hook shape (esbuild-style):

    def setup(build: PluginBuild):
        build.on_resolve(r"^@/", resolve_alias)
        build.on_load(r".*", load_virtual, namespace="virtual")

    output = await engine.build(["@/entry"], [Plugin("virtual-fs", setup)])
    if output.errors: ...
    code = output.output_files[0].text

Failures never raise out of build(): they come back as Message lists.
"""

import base64
import inspect
import logging
import posixpath
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union

import orjson

from ..core.models import SourceKind
from ..core.parsing.modsyntax import ModuleSyntax
from ..core.parsing.registry import ParserRegistry
from ..errors import CompileError, NetworkError, ResolutionError, TransformError
from ..linker.rewrite import rewrite_module
from ..linker.runtime import assemble_bundle
from .transform import TransformEngine

logger = logging.getLogger(__name__)


SUPPORTED_FORMATS = ("esm",)
SUPPORTED_JSX = ("automatic",)
LOADERS = {kind.value: kind for kind in SourceKind}


@dataclass
class Message:
    """A build diagnostic. `detail` carries the originating exception, if any."""
    text: str
    location: Optional[Dict[str, Any]] = None
    detail: Any = None
    plugin_name: str = ""

    def format(self) -> str:
        text = self.text
        if self.location and self.location.get("file"):
            where = self.location["file"]
            if self.location.get("line"):
                where += f":{self.location['line']}:{self.location.get('column') or 0}"
            if not text.startswith(where):
                text = f"{where}: {text}"
        if self.plugin_name:
            text = f"[plugin {self.plugin_name}] {text}"
        return text


@dataclass
class OnResolveArgs:
    path: str
    importer: str
    namespace: str
    resolve_dir: str
    kind: str  # "entry-point" | "import-statement"


@dataclass
class OnResolveResult:
    path: Optional[str] = None
    namespace: str = "file"
    external: bool = False
    errors: List[Message] = field(default_factory=list)
    warnings: List[Message] = field(default_factory=list)


@dataclass
class OnLoadArgs:
    path: str
    namespace: str


@dataclass
class OnLoadResult:
    contents: Optional[str] = None
    loader: Optional[str] = None
    errors: List[Message] = field(default_factory=list)
    warnings: List[Message] = field(default_factory=list)


ResolveCallback = Callable[[OnResolveArgs], Union[Optional[OnResolveResult], Awaitable[Optional[OnResolveResult]]]]
LoadCallback = Callable[[OnLoadArgs], Union[Optional[OnLoadResult], Awaitable[Optional[OnLoadResult]]]]


@dataclass
class _Hook:
    filter: "re.Pattern"
    namespace: Optional[str]
    callback: Callable
    plugin_name: str

    def matches(self, path: str, namespace: str) -> bool:
        if self.namespace is not None and self.namespace != namespace:
            return False
        return self.filter.search(path) is not None


class PluginBuild:
    """Handed to Plugin.setup(); collects hooks."""

    def __init__(self, plugin_name: str = ""):
        self.plugin_name = plugin_name
        self.resolve_hooks: List[_Hook] = []
        self.load_hooks: List[_Hook] = []

    def on_resolve(self, filter: str, callback: ResolveCallback, namespace: Optional[str] = None) -> None:
        self.resolve_hooks.append(_Hook(re.compile(filter), namespace, callback, self.plugin_name))

    def on_load(self, filter: str, callback: LoadCallback, namespace: Optional[str] = None) -> None:
        self.load_hooks.append(_Hook(re.compile(filter), namespace, callback, self.plugin_name))


@dataclass
class Plugin:
    name: str
    setup: Callable[[PluginBuild], None]


@dataclass
class OutputFile:
    path: str
    text: str


@dataclass
class BuildOutput:
    errors: List[Message] = field(default_factory=list)
    warnings: List[Message] = field(default_factory=list)
    output_files: List[OutputFile] = field(default_factory=list)
    entry_points: List[str] = field(default_factory=list)
    inputs: List[str] = field(default_factory=list)


@dataclass
class _Module:
    key: str
    path: str
    namespace: str
    contents: str
    code: str = ""
    syntax: Optional[ModuleSyntax] = None
    targets: Dict[str, str] = field(default_factory=dict)  # specifier -> module key or external name


async def _call(callback: Callable, args):
    result = callback(args)
    if inspect.isawaitable(result):
        result = await result
    return result


class BundlerEngine:
    """
    Bundles a module graph into one ES module.

    Args:
        registry: Source kinds known to the transformer
    """

    def __init__(self, registry: Optional[ParserRegistry] = None):
        self.transformer = TransformEngine(registry)

    @property
    def is_loaded(self) -> bool:
        return self.transformer.is_loaded

    async def initialize(self) -> None:
        await self.transformer.initialize()

    async def build(
        self,
        entry_points: Sequence[str],
        plugins: Sequence[Plugin] = (),
        format: str = "esm",
        jsx: str = "automatic",
        jsx_import_source: str = "react",
        target: str = "es2020",
        minify: bool = False,
        sourcemap: bool = False,
    ) -> BuildOutput:
        """
        Traverse, transform and link everything reachable from entry_points.

        Raises:
            ValueError: unsupported format or jsx mode
            InitializationError: engine not loaded
        """
        if format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported format '{format}'. Supported: {', '.join(SUPPORTED_FORMATS)}")
        if jsx not in SUPPORTED_JSX:
            raise ValueError(f"Unsupported jsx mode '{jsx}'. Supported: {', '.join(SUPPORTED_JSX)}")
        self.transformer.require_loaded()
        self.transformer.transpiler.jsx_import_source = jsx_import_source

        resolve_hooks: List[_Hook] = []
        load_hooks: List[_Hook] = []
        for plugin in plugins:
            build = PluginBuild(plugin.name)
            plugin.setup(build)
            resolve_hooks.extend(build.resolve_hooks)
            load_hooks.extend(build.load_hooks)

        run = _BuildRun(self.transformer, resolve_hooks, load_hooks, minify)
        logger.debug("Build started: %s (target %s)", ", ".join(entry_points), target)
        await run.traverse(entry_points)

        output = BuildOutput(
            errors=run.errors,
            warnings=run.warnings,
            entry_points=[run.modules[k].path for k in run.entries],
            inputs=[m.path for m in run.modules.values()],
        )
        if run.errors:
            return output

        code = run.link()
        if sourcemap:
            code += inline_sourcemap(run.modules.values())
        output.output_files.append(OutputFile("<stdout>.js", code))
        logger.debug("Build finished: %d modules, %d externals", len(run.modules), len(run.externals))
        return output


class _BuildRun:
    """State of one build() call."""

    def __init__(self, transformer: TransformEngine, resolve_hooks, load_hooks, minify: bool):
        self.transformer = transformer
        self.resolve_hooks: List[_Hook] = resolve_hooks
        self.load_hooks: List[_Hook] = load_hooks
        self.minify = minify
        self.modules: Dict[str, _Module] = {}
        self.entries: List[str] = []
        self.externals: List[str] = []
        self.errors: List[Message] = []
        self.warnings: List[Message] = []

    async def traverse(self, entry_points: Sequence[str]) -> None:
        pending: List[_Module] = []
        for entry in entry_points:
            target = await self.resolve(OnResolveArgs(entry, "", "", "", "entry-point"))
            if target is None:
                continue
            if target in self.externals:
                self.errors.append(Message(f'Entry point "{entry}" cannot be external', detail=ResolutionError(
                    f'Entry point "{entry}" cannot be external', entry)))
                continue
            self.entries.append(target)
            pending.append(self.modules[target])

        while pending:
            module = pending.pop(0)
            if not await self.load(module):
                continue
            for specifier in module.syntax.specifiers():
                args = OnResolveArgs(
                    path=specifier,
                    importer=module.path,
                    namespace=module.namespace,
                    resolve_dir=posixpath.dirname(module.path),
                    kind="import-statement",
                )
                fresh = len(self.modules)
                target = await self.resolve(args)
                if target is None:
                    continue
                module.targets[specifier] = target
                if len(self.modules) > fresh:
                    pending.append(self.modules[target])

    async def resolve(self, args: OnResolveArgs) -> Optional[str]:
        """Run resolve hooks; return a module key or external name, registering new modules."""
        result: Optional[OnResolveResult] = None
        for hook in self.resolve_hooks:
            if not hook.matches(args.path, args.namespace):
                continue
            result = await _call(hook.callback, args)
            if result is not None:
                self._collect(result, hook.plugin_name)
                break
        if result is None:
            result = self._default_resolve(args)
            self._collect(result, "")

        if result.errors:
            return None
        if result.external:
            name = result.path or args.path
            if name not in self.externals:
                self.externals.append(name)
            return name
        key = f"{result.namespace}:{result.path}"
        if key not in self.modules:
            self.modules[key] = _Module(key, result.path, result.namespace, "")
        return key

    def _default_resolve(self, args: OnResolveArgs) -> OnResolveResult:
        if args.path.startswith("/"):
            return OnResolveResult(path=posixpath.normpath(args.path))
        if args.path.startswith("./") or args.path.startswith("../"):
            return OnResolveResult(path=posixpath.normpath(posixpath.join(args.resolve_dir or "/", args.path)))
        text = f'Could not resolve "{args.path}"'
        if args.importer:
            text += f" from {args.importer}"
        return OnResolveResult(errors=[Message(text, detail=ResolutionError(text, args.path, args.importer or None))])

    async def load(self, module: _Module) -> bool:
        result: Optional[OnLoadResult] = None
        for hook in self.load_hooks:
            if not hook.matches(module.path, module.namespace):
                continue
            result = await _call(hook.callback, OnLoadArgs(module.path, module.namespace))
            if result is not None:
                self._collect(result, hook.plugin_name)
                break
        if result is None:
            text = f'Could not load "{module.path}" in namespace "{module.namespace}": no loader claimed it'
            self.errors.append(Message(text, detail=ResolutionError(text, module.path)))
            return False
        if result.errors:
            return False
        if result.contents is None:
            text = f'Loader returned no contents for "{module.path}"'
            self.errors.append(Message(text, detail=TransformError(text, module.path)))
            return False

        module.contents = result.contents
        kind = LOADERS.get(result.loader or "")
        try:
            module.code = self.transformer.transform(module.contents, module.path, kind, strip_comments=self.minify)
            module.syntax = self.transformer.parse_module(module.code, module.path)
        except TransformError as e:
            location = {"file": e.path or module.path, "line": e.line, "column": e.column}
            self.errors.append(Message(e.message, location=location, detail=e))
            return False
        return True

    def _collect(self, result, plugin_name: str) -> None:
        for message in result.errors:
            message.plugin_name = message.plugin_name or plugin_name
            self.errors.append(message)
        for message in result.warnings:
            message.plugin_name = message.plugin_name or plugin_name
            self.warnings.append(message)

    def link(self) -> str:
        bodies = []
        for module in self.modules.values():
            targets = module.targets
            bodies.append((module.key, rewrite_module(module.code, module.syntax, lambda s, t=targets: t.get(s, s))))
        return assemble_bundle(bodies, self.entries, self.externals, minify=self.minify)


def inline_sourcemap(modules) -> str:
    """Source map comment carrying every module's path and original contents."""
    modules = list(modules)
    payload = {
        "version": 3,
        "sources": [m.path for m in modules],
        "sourcesContent": [m.contents for m in modules],
        "names": [],
        "mappings": "",
    }
    encoded = base64.b64encode(orjson.dumps(payload)).decode("ascii")
    return f"//# sourceMappingURL=data:application/json;base64,{encoded}\n"


def aggregate_errors(messages: Sequence[Message]) -> CompileError:
    """
    One exception for a failed build.

    ResolutionError or NetworkError when every diagnostic came from that
    class of failure, TransformError otherwise.
    """
    text = "\n".join(m.format() for m in messages) or "Build failed"
    details = [m.detail for m in messages]
    if details and all(isinstance(d, ResolutionError) for d in details):
        return ResolutionError(text, details[0].specifier, details[0].importer)
    if details and all(isinstance(d, NetworkError) for d in details):
        return NetworkError(text, details[0].path)
    first = next((d for d in details if isinstance(d, TransformError)), None)
    if first is not None:
        return TransformError(text, first.path, first.line, first.column)
    return TransformError(text)
