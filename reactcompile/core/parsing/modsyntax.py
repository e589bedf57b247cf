"""
Module syntax — Structural parse of module-level import/export statements.

Only the import/export statement grammar is interpreted; every other byte
of the file stays opaque. Statement spans are byte offsets into the
parsed source so a rewriter can splice replacements in place.

Handles what regex rewriting cannot: multi-line specifier lists, comments
inside statements, string literals that look like specifiers, and
destructuring in exported declarations.

Usage:
    parser = ModuleSyntaxParser(pool)
    syntax = parser.parse('import A, { B as C } from "@/x";')
    syntax.specifiers()     # ['@/x']
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union, TYPE_CHECKING

from ...errors import TransformError
from .parsers import ParserPool, first_error

if TYPE_CHECKING:
    from tree_sitter import Node


MODULE_GRAMMAR = "javascript"


@dataclass
class ImportBinding:
    """One local name bound by an import. `imported` is 'default', '*' or an export name."""
    imported: str
    local: str


@dataclass
class ImportDeclaration:
    specifier: str
    bindings: List[ImportBinding]
    start: int
    end: int

    @property
    def side_effect_only(self) -> bool:
        return not self.bindings


class ExportForm(str, Enum):
    DECLARATION = "declaration"              # export const a = 1 / export function f() {}
    DEFAULT_DECLARATION = "default_declaration"  # export default function Foo() {}
    DEFAULT_EXPRESSION = "default_expression"    # export default <expr>
    LOCAL_LIST = "local_list"                # export { a, b as c }
    REEXPORT_LIST = "reexport_list"          # export { a as b } from "x"
    REEXPORT_ALL = "reexport_all"            # export * from "x"
    REEXPORT_NAMESPACE = "reexport_namespace"  # export * as ns from "x"


@dataclass
class ExportDeclaration:
    """
    One export statement.

    Attributes:
        form: Which export shape this is
        names: (exported name, local or source name) pairs
        specifier: Source module for re-exports
        start, end: Whole statement span
        body_start, body_end: Span of the declaration or default value kept in place
    """
    form: ExportForm
    start: int
    end: int
    names: List[Tuple[str, str]] = field(default_factory=list)
    specifier: Optional[str] = None
    body_start: Optional[int] = None
    body_end: Optional[int] = None


Statement = Union[ImportDeclaration, ExportDeclaration]


@dataclass
class ModuleSyntax:
    """Module-level import/export statements in source order."""
    statements: List[Statement] = field(default_factory=list)

    @property
    def imports(self) -> List[ImportDeclaration]:
        return [s for s in self.statements if isinstance(s, ImportDeclaration)]

    @property
    def exports(self) -> List[ExportDeclaration]:
        return [s for s in self.statements if isinstance(s, ExportDeclaration)]

    def specifiers(self) -> List[str]:
        """Every imported or re-exported specifier, first occurrence order."""
        seen: List[str] = []
        for statement in self.statements:
            specifier = getattr(statement, "specifier", None)
            if specifier and specifier not in seen:
                seen.append(specifier)
        return seen

    def exported_names(self) -> List[str]:
        return [exported for e in self.exports for exported, _ in e.names]


class ModuleSyntaxParser:
    """Extracts ModuleSyntax from plain ES module code."""

    def __init__(self, pool: ParserPool, grammar: str = MODULE_GRAMMAR):
        self.pool = pool
        self.grammar = grammar

    def parse(self, code: str, path: str = "<module>") -> ModuleSyntax:
        source = code.encode("utf-8")
        tree = self.pool.parse(source, self.grammar)
        root = tree.root_node
        broken = first_error(root)
        if broken is not None:
            line = broken.start_point[0] + 1
            raise TransformError(
                f"{path}:{line}: module syntax could not be parsed", path=path, line=line
            )

        reader = _StatementReader(source)
        syntax = ModuleSyntax()
        for child in root.children:
            if child.type == "import_statement":
                syntax.statements.append(reader.read_import(child))
            elif child.type == "export_statement":
                syntax.statements.append(reader.read_export(child))
        return syntax


class _StatementReader:

    def __init__(self, source: bytes):
        self.source = source

    def text(self, node: 'Node') -> str:
        return self.source[node.start_byte:node.end_byte].decode("utf-8")

    def name(self, node: 'Node') -> str:
        """Identifier text, or the contents of a string export name."""
        raw = self.text(node)
        if node.type == "string":
            return raw[1:-1]
        return raw

    def read_import(self, node: 'Node') -> ImportDeclaration:
        source = node.child_by_field_name("source")
        bindings: List[ImportBinding] = []
        for child in node.named_children:
            if child.type != "import_clause":
                continue
            for part in child.named_children:
                if part.type == "identifier":
                    bindings.append(ImportBinding("default", self.text(part)))
                elif part.type == "namespace_import":
                    local = [c for c in part.named_children if c.type == "identifier"][-1]
                    bindings.append(ImportBinding("*", self.text(local)))
                elif part.type == "named_imports":
                    for spec in part.named_children:
                        if spec.type != "import_specifier":
                            continue
                        imported = spec.child_by_field_name("name")
                        alias = spec.child_by_field_name("alias")
                        bindings.append(
                            ImportBinding(self.name(imported), self.text(alias or imported))
                        )
        return ImportDeclaration(
            specifier=self.name(source),
            bindings=bindings,
            start=node.start_byte,
            end=node.end_byte,
        )

    def read_export(self, node: 'Node') -> ExportDeclaration:
        source = node.child_by_field_name("source")
        specifier = self.name(source) if source is not None else None
        declaration = node.child_by_field_name("declaration")
        value = node.child_by_field_name("value")
        is_default = any(not c.is_named and c.type == "default" for c in node.children)

        if declaration is not None:
            names = declared_names(declaration, self.text)
            if is_default:
                return ExportDeclaration(
                    ExportForm.DEFAULT_DECLARATION, node.start_byte, node.end_byte,
                    names=[("default", names[0])],
                    body_start=declaration.start_byte, body_end=node.end_byte,
                )
            return ExportDeclaration(
                ExportForm.DECLARATION, node.start_byte, node.end_byte,
                names=[(n, n) for n in names],
                body_start=declaration.start_byte, body_end=node.end_byte,
            )

        if value is not None:
            named = value.child_by_field_name("name")
            if named is not None and value.type in (
                "function", "function_expression", "generator_function", "class"
            ):
                # `export default function Foo() {}` parsed as an expression still binds Foo
                return ExportDeclaration(
                    ExportForm.DEFAULT_DECLARATION, node.start_byte, node.end_byte,
                    names=[("default", self.text(named))],
                    body_start=value.start_byte, body_end=node.end_byte,
                )
            return ExportDeclaration(
                ExportForm.DEFAULT_EXPRESSION, node.start_byte, node.end_byte,
                body_start=value.start_byte, body_end=value.end_byte,
            )

        for child in node.named_children:
            if child.type == "export_clause":
                names = []
                for spec in child.named_children:
                    if spec.type != "export_specifier":
                        continue
                    local = spec.child_by_field_name("name")
                    alias = spec.child_by_field_name("alias")
                    names.append((self.name(alias or local), self.name(local)))
                form = ExportForm.REEXPORT_LIST if specifier else ExportForm.LOCAL_LIST
                return ExportDeclaration(form, node.start_byte, node.end_byte, names=names, specifier=specifier)
            if child.type == "namespace_export":
                alias = [c for c in child.named_children if c.type in ("identifier", "string")][-1]
                return ExportDeclaration(
                    ExportForm.REEXPORT_NAMESPACE, node.start_byte, node.end_byte,
                    names=[(self.name(alias), "*")], specifier=specifier,
                )

        return ExportDeclaration(ExportForm.REEXPORT_ALL, node.start_byte, node.end_byte, specifier=specifier)


def declared_names(declaration: 'Node', text) -> List[str]:
    """Names bound by a declaration, including destructured ones."""
    if declaration.type in ("lexical_declaration", "variable_declaration"):
        names: List[str] = []
        for declarator in declaration.named_children:
            if declarator.type == "variable_declarator":
                names.extend(pattern_names(declarator.child_by_field_name("name"), text))
        return names
    name = declaration.child_by_field_name("name")
    return [text(name)] if name is not None else []


def pattern_names(pattern: Optional['Node'], text) -> List[str]:
    if pattern is None:
        return []
    if pattern.type in ("identifier", "shorthand_property_identifier_pattern"):
        return [text(pattern)]
    if pattern.type == "pair_pattern":
        return pattern_names(pattern.child_by_field_name("value"), text)
    if pattern.type in ("object_assignment_pattern", "assignment_pattern"):
        return pattern_names(pattern.child_by_field_name("left"), text)
    names: List[str] = []
    if pattern.type in ("object_pattern", "array_pattern", "rest_pattern"):
        for child in pattern.named_children:
            names.extend(pattern_names(child, text))
    return names
