"""
Registry-form rewriter — ES module statements to factory-body statements.

Input is transformed ES module code plus its ModuleSyntax; output is the
body of `function (module, exports, require) { ... }`. Only the spans of
import/export statements are replaced; every other byte is kept.

Imports:
    import A from "k"               const A = __importDefault(require("k"));
    import A, { B as C } from "k"   const __import_1 = require("k");
                                    const A = __importDefault(__import_1);
                                    const { B: C } = __import_1;
    import { B as C } from "k"      const { B: C } = require("k");
    import * as NS from "k"         const NS = require("k");
    import "k"                      require("k");

Exports become live getters registered at the top of the body, so hoisted
functions and circular imports see the final bindings:
    export const a = 1              const a = 1;          + a: () => a
    export default function Foo(){} function Foo(){}      + default: () => Foo
    export default <expr>           exports.default = <expr>;
    export { a as b }               (removed)             + b: () => a
    export { a as b } from "k"      const __reexport_1 = require("k");  + b: () => __reexport_1.a
    export * from "k"               __exportStar(exports, require("k"));
    export * as ns from "k"         const __reexport_1 = require("k");  + ns: () => __reexport_1
"""

import re
from typing import Callable, List, Tuple

from ..core.parsing.modsyntax import (
    ExportDeclaration, ExportForm, ImportDeclaration, ModuleSyntax,
)
from ..core.parsing.transpiler import js_string

IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")


def property_key(name: str) -> str:
    return name if IDENTIFIER.match(name) else js_string(name)


def member(target: str, name: str) -> str:
    return f"{target}.{name}" if IDENTIFIER.match(name) else f"{target}[{js_string(name)}]"


def rewrite_module(code: str, syntax: ModuleSyntax, target_for: Callable[[str], str]) -> str:
    """
    Rewrite one module to registry form.

    Args:
        code: ES module code (the text `syntax` was parsed from)
        syntax: Its module-level import/export statements
        target_for: Maps a specifier to the registry key or bare package
            name that `require` receives
    """
    rewriter = _Rewriter(target_for)
    source = code.encode("utf-8")
    pieces: List[str] = []
    pos = 0
    for statement in syntax.statements:
        pieces.append(source[pos:statement.start].decode("utf-8"))
        if isinstance(statement, ImportDeclaration):
            pieces.append(rewriter.import_statement(statement))
        else:
            pieces.append(rewriter.export_statement(statement, source))
        pos = statement.end
    pieces.append(source[pos:].decode("utf-8"))

    return rewriter.header() + "".join(pieces)


class _Rewriter:

    def __init__(self, target_for: Callable[[str], str]):
        self.target_for = target_for
        self.getters: List[Tuple[str, str]] = []  # (exported name, expression)
        self._temps = 0

    def temp(self, prefix: str) -> str:
        self._temps += 1
        return f"__{prefix}_{self._temps}"

    def require(self, specifier: str) -> str:
        return f"require({js_string(self.target_for(specifier))})"

    def header(self) -> str:
        if not self.getters:
            return ""
        entries = ", ".join(f"{property_key(name)}: () => {expr}" for name, expr in self.getters)
        return f"__export(exports, {{ {entries} }});\n"

    def import_statement(self, statement: ImportDeclaration) -> str:
        call = self.require(statement.specifier)
        if statement.side_effect_only:
            return f"{call};"

        default = [b.local for b in statement.bindings if b.imported == "default"]
        namespace = [b.local for b in statement.bindings if b.imported == "*"]
        named = [b for b in statement.bindings if b.imported not in ("default", "*")]

        needs_temp = len(default) + len(namespace) + (1 if named else 0) > 1
        source = call
        lines: List[str] = []
        if needs_temp:
            source = self.temp("import")
            lines.append(f"const {source} = {call};")
        for local in namespace:
            lines.append(f"const {local} = {source};")
        for local in default:
            lines.append(f"const {local} = __importDefault({source});")
        if named:
            pattern = ", ".join(
                b.local if b.imported == b.local else f"{property_key(b.imported)}: {b.local}"
                for b in named
            )
            lines.append(f"const {{ {pattern} }} = {source};")
        return " ".join(lines)

    def export_statement(self, statement: ExportDeclaration, source: bytes) -> str:
        form = statement.form
        if form in (ExportForm.DECLARATION, ExportForm.DEFAULT_DECLARATION):
            for exported, local in statement.names:
                self.getters.append((exported, local))
            return source[statement.body_start:statement.body_end].decode("utf-8")

        if form == ExportForm.DEFAULT_EXPRESSION:
            value = source[statement.body_start:statement.body_end].decode("utf-8")
            return f"exports.default = {value};"

        if form == ExportForm.LOCAL_LIST:
            for exported, local in statement.names:
                self.getters.append((exported, local))
            return ""

        if form == ExportForm.REEXPORT_ALL:
            return f"__exportStar(exports, {self.require(statement.specifier)});"

        temp = self.temp("reexport")
        for exported, imported in statement.names:
            if form == ExportForm.REEXPORT_NAMESPACE:
                self.getters.append((exported, temp))
            else:
                self.getters.append((exported, member(temp, imported)))
        return f"const {temp} = {self.require(statement.specifier)};"
