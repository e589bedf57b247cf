"""
Transpiler — Single-file syntax transform on a tree-sitter tree.

Turns TypeScript / JSX sources into plain ES modules:
- type annotations, interfaces, type aliases, ambient declarations,
  overload signatures and type-only imports/exports are erased
- enums are lowered to the usual IIFE object
- JSX is lowered to the automatic runtime (`_jsx`, `_jsxs`, `_Fragment`
  imported from `<jsx_import_source>/jsx-runtime`)

Everything else is copied byte-for-byte. The transform never follows
imports: it sees exactly one file.

Usage:
    pool = ParserPool()
    pool.load(["tsx"])
    transpiler = Transpiler(pool, ParserRegistry.default())
    code = transpiler.transform(source, "/src/entry.tsx", SourceKind.TSX)
"""

import html
import re
from typing import Callable, Dict, List, Optional, Set, TYPE_CHECKING

import orjson

from ...errors import TransformError
from ..models import SourceKind
from .parsers import ParserPool, first_error
from .registry import ParserRegistry

if TYPE_CHECKING:
    from tree_sitter import Node


# Nodes that only carry type information and vanish entirely
ERASED_NODES = {
    "type_annotation",
    "type_predicate_annotation",
    "asserts_annotation",
    "type_parameters",
    "type_arguments",
    "interface_declaration",
    "type_alias_declaration",
    "ambient_declaration",
    "function_signature",
    "abstract_method_signature",
    "method_signature",
    "index_signature",
    "implements_clause",
}

TYPE_ONLY_DECLARATIONS = {
    "interface_declaration",
    "type_alias_declaration",
    "ambient_declaration",
    "function_signature",
}

# Nodes whose TypeScript-only modifier tokens are dropped
MODIFIER_PARENTS = {
    "required_parameter",
    "optional_parameter",
    "public_field_definition",
    "method_definition",
    "variable_declarator",
    "abstract_class_declaration",
}

MODIFIER_TOKENS = {"?", "!", "readonly", "abstract", "override", "public", "private", "protected"}
MODIFIER_NODES = {"accessibility_modifier", "override_modifier"}

JSX_ELEMENTS = {"jsx_element", "jsx_self_closing_element", "jsx_fragment"}
JSX_TEXT = {"jsx_text", "html_character_reference"}

IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")
INTEGER = re.compile(r"^-?\d+$")


def js_string(value: str) -> str:
    """Render a Python string as a JavaScript string literal."""
    return orjson.dumps(value).decode("utf-8")


def clean_jsx_text(text: str) -> str:
    """
    Collapse JSX text whitespace the way JSX compilers do.

    Lines are trimmed (except the outer edges of the first/last line),
    empty lines are dropped and the survivors are joined with one space.
    """
    lines = re.split(r"\r\n|\n|\r", text)
    last_non_empty = -1
    for i, line in enumerate(lines):
        if re.search(r"[^ \t]", line):
            last_non_empty = i

    out = []
    for i, line in enumerate(lines):
        trimmed = line.replace("\t", " ")
        if i != 0:
            trimmed = trimmed.lstrip(" ")
        if i != len(lines) - 1:
            trimmed = trimmed.rstrip(" ")
        if trimmed:
            if i != last_non_empty:
                trimmed += " "
            out.append(trimmed)
    return "".join(out)


class Transpiler:
    """Per-file TypeScript/JSX to ES module transform."""

    def __init__(
        self,
        pool: ParserPool,
        registry: ParserRegistry,
        jsx_import_source: str = "react",
    ):
        self.pool = pool
        self.registry = registry
        self.jsx_import_source = jsx_import_source

    def transform(
        self,
        code: str,
        path: str,
        kind: Optional[SourceKind] = None,
        strip_comments: bool = False,
    ) -> str:
        """
        Transform one file.

        Args:
            code: Source text
            path: CanonicalPath, used for diagnostics and kind inference
            kind: SourceKind; inferred from the extension when omitted
            strip_comments: Drop comment nodes (used for minified output)

        Raises:
            TransformError: parse failure or unsupported construct
        """
        kind = kind or self.registry.kind_for(path)
        config = self.registry.get_config_by_kind(kind)
        if config is None:
            raise TransformError(f"No parser registered for {kind.value} sources", path=path)

        source = code.encode("utf-8")
        if len(source) > config.max_file_size:
            raise TransformError(
                f"{path} is larger than {config.max_file_size} bytes", path=path
            )

        tree = self.pool.parse(source, config.tree_sitter_name)
        broken = first_error(tree.root_node)
        if broken is not None:
            raise _syntax_error(source, path, broken)

        emitter = _Emitter(source, path, strip_comments)
        try:
            body = emitter.emit_root(tree.root_node)
        except RecursionError:
            raise TransformError(f"{path} is nested too deeply to transform", path=path)

        return emitter.runtime_import(self.jsx_import_source) + body


def _syntax_error(source: bytes, path: str, node: 'Node') -> TransformError:
    row, column = node.start_point[0], node.start_point[1]
    lines = source.decode("utf-8", "replace").splitlines()
    snippet = lines[row].strip() if row < len(lines) else ""
    if node.is_missing:
        what = f"Expected \"{node.type}\""
    else:
        what = "Unexpected syntax"
    message = f"{path}:{row + 1}:{column + 1}: {what}"
    if snippet:
        message += f"\n    {snippet}"
    return TransformError(message, path=path, line=row + 1, column=column + 1)


class _Emitter:
    """Walks one tree and produces transformed text."""

    def __init__(self, source: bytes, path: str, strip_comments: bool):
        self.source = source
        self.path = path
        self.strip_comments = strip_comments
        self.runtime_used: Set[str] = set()
        self._handlers: Dict[str, Callable[['Node'], str]] = {
            "import_statement": self._import_statement,
            "export_statement": self._export_statement,
            "named_imports": self._specifier_list,
            "export_clause": self._specifier_list,
            "as_expression": self._first_named,
            "satisfies_expression": self._first_named,
            "non_null_expression": self._first_named,
            "type_assertion": self._last_named,
            "enum_declaration": self._enum,
            "public_field_definition": self._field,
            "internal_module": self._unsupported,
            "module": self._unsupported,
            "jsx_element": self._jsx,
            "jsx_self_closing_element": self._jsx,
            "jsx_fragment": self._jsx,
        }
        for name in ERASED_NODES:
            self._handlers[name] = _erase
        for name in MODIFIER_PARENTS - {"public_field_definition"}:
            self._handlers[name] = self._without_modifiers

    # -------------------------------------------------------------------------
    # Generic emission
    # -------------------------------------------------------------------------

    def emit_root(self, root: 'Node') -> str:
        return (
            self._slice(0, root.start_byte)
            + self.emit(root)
            + self._slice(root.end_byte, len(self.source))
        )

    def emit(self, node: 'Node') -> str:
        if node.type == "comment":
            return "" if self.strip_comments else self._text(node)
        handler = self._handlers.get(node.type)
        if handler is not None:
            return handler(node)
        return self._emit_children(node)

    def _emit_children(self, node: 'Node', skip: Optional[Callable[['Node'], bool]] = None) -> str:
        if node.child_count == 0:
            return self._text(node)
        parts: List[str] = []
        pos = node.start_byte
        for child in node.children:
            parts.append(self._slice(pos, child.start_byte))
            if skip is None or not skip(child):
                parts.append(self.emit(child))
            pos = child.end_byte
        parts.append(self._slice(pos, node.end_byte))
        return "".join(parts)

    def _slice(self, start: int, end: int) -> str:
        return self.source[start:end].decode("utf-8")

    def _text(self, node: 'Node') -> str:
        return self._slice(node.start_byte, node.end_byte)

    def _named(self, node: 'Node') -> List['Node']:
        return [c for c in node.named_children if c.type != "comment"]

    # -------------------------------------------------------------------------
    # TypeScript erasure
    # -------------------------------------------------------------------------

    def _first_named(self, node: 'Node') -> str:
        return self.emit(self._named(node)[0])

    def _last_named(self, node: 'Node') -> str:
        return self.emit(self._named(node)[-1])

    def _without_modifiers(self, node: 'Node') -> str:
        if node.type == "required_parameter" and any(
            c.type == "accessibility_modifier" or (not c.is_named and c.type == "readonly")
            for c in node.children
        ):
            raise TransformError(
                f"{self.path}:{node.start_point[0] + 1}: parameter properties are not supported",
                path=self.path,
                line=node.start_point[0] + 1,
            )
        return self._emit_children(node, skip=_is_modifier)

    def _field(self, node: 'Node') -> str:
        # `declare x: T;` and `abstract x: T;` have no runtime presence
        if any(not c.is_named and c.type in ("declare", "abstract") for c in node.children):
            return ""
        return self._emit_children(node, skip=_is_modifier)

    def _unsupported(self, node: 'Node') -> str:
        raise TransformError(
            f"{self.path}:{node.start_point[0] + 1}: TypeScript namespaces are not supported",
            path=self.path,
            line=node.start_point[0] + 1,
        )

    def _import_statement(self, node: 'Node') -> str:
        if _has_token(node, "type") or _has_token(node, "typeof"):
            return ""
        clause = _child_of_type(node, "import_clause")
        if clause is not None:
            named = _child_of_type(clause, "named_imports")
            if named is not None:
                specifiers = [c for c in named.named_children if c.type == "import_specifier"]
                kept = [c for c in specifiers if not _is_type_specifier(c)]
                others = [c for c in self._named(clause) if c.type != "named_imports"]
                if specifiers and not kept and not others:
                    return ""
        return self._emit_children(node)

    def _export_statement(self, node: 'Node') -> str:
        if _has_token(node, "type"):
            return ""
        declaration = node.child_by_field_name("declaration")
        if declaration is not None and declaration.type in TYPE_ONLY_DECLARATIONS:
            return ""
        clause = _child_of_type(node, "export_clause")
        if clause is not None:
            specifiers = [c for c in clause.named_children if c.type == "export_specifier"]
            if specifiers and all(_is_type_specifier(c) for c in specifiers):
                return ""
        return self._emit_children(node)

    def _specifier_list(self, node: 'Node') -> str:
        kept = [
            self._text(c)
            for c in node.named_children
            if c.type in ("import_specifier", "export_specifier") and not _is_type_specifier(c)
        ]
        if not kept:
            return "{}"
        return "{ " + ", ".join(kept) + " }"

    def _enum(self, node: 'Node') -> str:
        name = self._text(node.child_by_field_name("name"))
        body = node.child_by_field_name("body")
        statements: List[str] = []
        previous: Optional[str] = None  # expression for the previous member's value
        previous_int: Optional[int] = -1

        for member in self._named(body) if body is not None else []:
            if member.type == "enum_assignment":
                key_node = member.child_by_field_name("name")
                value_node = member.child_by_field_name("value")
            else:
                key_node, value_node = member, None
            key_text = self._text(key_node)
            key = js_string(key_text[1:-1] if key_node.type == "string" else key_text)

            if value_node is not None and value_node.type in ("string", "template_string"):
                statements.append(f"{name}[{key}] = {self.emit(value_node)};")
                previous, previous_int = None, None
                continue

            if value_node is not None:
                value = self.emit(value_node)
                previous_int = int(value) if INTEGER.match(value.strip()) else None
            elif previous_int is not None:
                previous_int += 1
                value = str(previous_int)
            elif previous is not None:
                value = f"{previous} + 1"
            else:
                raise TransformError(
                    f"{self.path}:{member.start_point[0] + 1}: enum member {key_text} must have an initializer",
                    path=self.path,
                    line=member.start_point[0] + 1,
                )
            statements.append(f"{name}[{name}[{key}] = {value}] = {key};")
            previous = f"{name}[{key}]"

        return (
            f"var {name}; (function ({name}) {{ "
            + " ".join(statements)
            + f" }})({name} || ({name} = {{}}));"
        )

    # -------------------------------------------------------------------------
    # JSX (automatic runtime)
    # -------------------------------------------------------------------------

    def runtime_import(self, import_source: str) -> str:
        if not self.runtime_used:
            return ""
        names = [n for n in ("jsx", "jsxs", "Fragment") if n in self.runtime_used]
        bindings = ", ".join(f"{n} as _{n}" for n in names)
        return f"import {{ {bindings} }} from {js_string(import_source + '/jsx-runtime')};\n"

    def _jsx(self, node: 'Node') -> str:
        if node.type == "jsx_self_closing_element":
            name_node = node.child_by_field_name("name")
            attributes = [c for c in node.named_children if c.type in ("jsx_attribute", "jsx_expression")]
            children: List['Node'] = []
        elif node.type == "jsx_fragment":
            name_node = None
            attributes = []
            children = list(node.named_children)
        else:
            opening = node.child_by_field_name("open_tag") or node.children[0]
            name_node = opening.child_by_field_name("name")
            attributes = [c for c in opening.named_children if c.type in ("jsx_attribute", "jsx_expression")]
            children = [
                c for c in node.named_children
                if c.type not in ("jsx_opening_element", "jsx_closing_element", "comment")
            ]

        element_type = self._jsx_type(name_node)
        props, key = self._jsx_props(attributes)
        items = self._jsx_children(children)

        function = "jsx"
        if len(items) == 1:
            props.append(f"children: {items[0]}")
        elif len(items) > 1:
            function = "jsxs"
            props.append("children: [" + ", ".join(items) + "]")
        self.runtime_used.add(function)

        args = [element_type, "{ " + ", ".join(props) + " }" if props else "{}"]
        if key is not None:
            args.append(key)
        return f"_{function}(" + ", ".join(args) + ")"

    def _jsx_type(self, name_node: Optional['Node']) -> str:
        if name_node is None:
            self.runtime_used.add("Fragment")
            return "_Fragment"
        raw = re.sub(r"\s+", "", self._text(name_node))
        if ":" in raw or "-" in raw:
            return js_string(raw)
        if "." in raw:
            return raw
        if raw[:1].islower():
            return js_string(raw)
        return raw

    def _jsx_props(self, attributes: List['Node']):
        props: List[str] = []
        key: Optional[str] = None
        for attribute in attributes:
            if attribute.type == "jsx_expression":
                inner = self._named(attribute)
                if inner:
                    props.append(self.emit(inner[0]))
                continue

            parts = self._named(attribute)
            name = re.sub(r"\s+", "", self._text(parts[0]))
            value = "true" if len(parts) < 2 else self._jsx_attribute_value(parts[1])
            if name == "key":
                key = value
                continue
            prop = name if IDENTIFIER.match(name) else js_string(name)
            props.append(f"{prop}: {value}")
        return props, key

    def _jsx_attribute_value(self, node: 'Node') -> str:
        if node.type == "string":
            return js_string(html.unescape(self._text(node)[1:-1]))
        if node.type == "jsx_expression":
            inner = self._named(node)
            if not inner:
                raise TransformError(
                    f"{self.path}:{node.start_point[0] + 1}: JSX attributes must not be empty expressions",
                    path=self.path,
                    line=node.start_point[0] + 1,
                )
            return self.emit(inner[0])
        return self.emit(node)

    def _jsx_children(self, children: List['Node']) -> List[str]:
        items: List[str] = []
        run: List['Node'] = []

        def flush():
            if not run:
                return
            text = html.unescape(self._slice(run[0].start_byte, run[-1].end_byte))
            cleaned = clean_jsx_text(text)
            if cleaned:
                items.append(js_string(cleaned))
            run.clear()

        for child in children:
            if child.type in JSX_TEXT:
                run.append(child)
                continue
            flush()
            if child.type == "jsx_expression":
                inner = self._named(child)
                if inner:
                    items.append(self.emit(inner[0]))
            elif child.type in JSX_ELEMENTS:
                items.append(self._jsx(child))
        flush()
        return items


def _erase(node: 'Node') -> str:
    return ""


def _has_token(node: 'Node', token: str) -> bool:
    return any(not c.is_named and c.type == token for c in node.children)


def _child_of_type(node: 'Node', node_type: str) -> Optional['Node']:
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _is_type_specifier(node: 'Node') -> bool:
    """`type X` / `typeof X` inside an import or export list."""
    return node.child_count > 1 and any(
        not c.is_named and c.type in ("type", "typeof") for c in node.children
    )


def _is_modifier(node: 'Node') -> bool:
    if node.type in MODIFIER_NODES:
        return True
    return not node.is_named and node.type in MODIFIER_TOKENS
