"""
Runtime — The module registry preamble and assembly helpers.

Generated code shape (registry form):

    <preamble>                 __modules / __cache / __define / __require
    __define("/src/a.tsx", function (module, exports, require) { ... });
    ...
    <preload>                  import() every external into __cache,
                               then __require(entry)

`__require` memoizes: the cache entry is set before the factory runs, so
a cycle sees the partially populated exports instead of recursing.
"""

from typing import Iterable, List, Mapping, Sequence, Tuple

import orjson

from ..core.parsing.transpiler import js_string

PREAMBLE = """\
const __modules = Object.create(null);
const __cache = Object.create(null);
const __reportError = globalThis.__reportError || ((error) => console.error(error));
function __define(path, factory) {
  __modules[path] = factory;
}
function __require(path) {
  if (path in __cache) {
    const cached = __cache[path];
    return cached && cached.__registryModule ? cached.exports : cached;
  }
  const factory = __modules[path];
  if (!factory) {
    const error = new Error("Module not found: " + path);
    error.name = "ModuleNotFound";
    throw error;
  }
  const module = { exports: {}, __registryModule: true };
  __cache[path] = module;
  factory(module, module.exports, __require);
  return module.exports;
}
function __importDefault(namespace) {
  return namespace && typeof namespace === "object" && "default" in namespace ? namespace.default : namespace;
}
function __export(target, getters) {
  for (const name in getters) {
    Object.defineProperty(target, name, { get: getters[name], enumerable: true });
  }
}
function __exportStar(target, source) {
  for (const name in source) {
    if (name !== "default" && !Object.prototype.hasOwnProperty.call(target, name)) {
      Object.defineProperty(target, name, { get: () => source[name], enumerable: true });
    }
  }
}
"""


def preamble(minify: bool = False) -> str:
    if not minify:
        return PREAMBLE
    return "".join(line.strip() for line in PREAMBLE.splitlines()) + "\n"


def define_module(key: str, body: str) -> str:
    """Wrap a registry-form body in its __define call."""
    if not body.endswith("\n"):
        body += "\n"
    return f"__define({js_string(key)}, function (module, exports, require) {{\n{body}}});\n"


def preload(externals: Sequence[str], entry: str) -> str:
    """Dynamic-import every external into the cache, then run the entry."""
    names = orjson.dumps(list(externals)).decode("utf-8")
    return (
        f"Promise.all({names}.map((name) => import(name).then((namespace) => {{\n"
        "  __cache[name] = namespace;\n"
        "}))).then(\n"
        "  () => {\n"
        "    try {\n"
        f"      __require({js_string(entry)});\n"
        "    } catch (error) {\n"
        '      __reportError(error, "Execution error");\n'
        "    }\n"
        "  },\n"
        "  (error) => {\n"
        '    __reportError(error, "Failed to load dependencies");\n'
        "  }\n"
        ");\n"
    )


def assemble_registry(
    registry: Mapping[str, str],
    entry_point: str,
    externals: Sequence[str],
    minify: bool = False,
) -> str:
    """
    Harness for a ModuleRegistry: preamble, one __define per module, preload.

    Args:
        registry: CanonicalPath -> registry-form body
        entry_point: CanonicalPath invoked once every external has loaded
        externals: Bare package names imported into the cache first
    """
    parts = [preamble(minify)]
    for key, body in registry.items():
        parts.append(define_module(key, body))
    parts.append(preload(externals, entry_point))
    return "".join(parts)


def assemble_bundle(
    modules: Iterable[Tuple[str, str]],
    entries: Sequence[str],
    externals: Sequence[str],
    minify: bool = False,
) -> str:
    """
    One self-contained ES module: static external imports, preamble,
    module definitions, then a direct call into each entry.
    """
    parts: List[str] = []
    bindings = []
    for i, name in enumerate(externals):
        binding = f"__external_{i}"
        bindings.append((name, binding))
        parts.append(f"import * as {binding} from {js_string(name)};\n")
    parts.append(preamble(minify))
    for name, binding in bindings:
        parts.append(f"__cache[{js_string(name)}] = {binding};\n")
    for key, body in modules:
        parts.append(define_module(key, body))
    for entry in entries:
        parts.append(f"__require({js_string(entry)});\n")
    return "".join(parts)
