"""
Tests for the single-file transform — type erasure, enums, JSX lowering.

Requires tree-sitter-language-pack. Install with:
    pip install tree-sitter-language-pack
"""

import pytest

from reactcompile.core.models import SourceKind
from reactcompile.core.parsing.config import LanguageConfig
from reactcompile.core.parsing.registry import ParserRegistry
from reactcompile.core.parsing.transpiler import clean_jsx_text, js_string
from reactcompile.engines.transform import TransformEngine
from reactcompile.errors import InitializationError, TransformError
from tests.factories import BUTTON_TSX, ENTRY_TSX, run
from tests.markers import requires_tree_sitter


@pytest.fixture(scope="module")
def engine():
    engine = TransformEngine()
    run(engine.initialize())
    return engine


# =============================================================================
# Registry (no grammar needed)
# =============================================================================

class TestParserRegistry:
    """Extension routing."""

    def test_default_routes_extensions(self):
        registry = ParserRegistry.default()
        assert registry.kind_for("/src/entry.tsx") == SourceKind.TSX
        assert registry.kind_for("/src/lib/utils.MJS") == SourceKind.JS
        assert registry.get_config("/src/a.ts").tree_sitter_name == "typescript"

    def test_unknown_extension_is_javascript(self):
        registry = ParserRegistry.default()
        assert registry.get_config("/src/styles.css") is None
        assert registry.kind_for("/src/styles.css") == SourceKind.JS

    def test_grammars_are_distinct(self):
        registry = ParserRegistry.default()
        assert len(registry) == 4
        assert registry.grammars() == ["javascript", "tsx", "typescript"]

    def test_conflicting_extension_rejected(self):
        registry = ParserRegistry.default()
        rival = LanguageConfig(
            name="Flow", tree_sitter_name="javascript", extensions={".js"}, kind=SourceKind.JS,
        )
        with pytest.raises(ValueError):
            registry.register(rival)
        assert "Flow" not in registry

    def test_lookup_by_kind(self):
        registry = ParserRegistry.default()
        assert registry.get_config_by_kind(SourceKind.JSX).name == "JavaScript JSX"


# =============================================================================
# Helpers (no grammar needed)
# =============================================================================

class TestHelpers:

    def test_js_string_escapes(self):
        assert js_string('say "hi"\n') == '"say \\"hi\\"\\n"'

    def test_clean_jsx_text_single_line_kept(self):
        assert clean_jsx_text("Count: ") == "Count: "

    def test_clean_jsx_text_collapses_lines(self):
        assert clean_jsx_text("\n    Hello\n    world\n  ") == "Hello world"

    def test_clean_jsx_text_whitespace_only(self):
        assert clean_jsx_text("\n    \n  ") == ""

    def test_transform_before_initialize_raises(self):
        with pytest.raises(InitializationError) as exc:
            TransformEngine().transform("const a = 1;", "/src/a.js")
        assert "Call initialize() first" in exc.value.message


# =============================================================================
# TypeScript
# =============================================================================

@requires_tree_sitter
class TestTypeErasure:
    """TypeScript-only syntax disappears; runtime code stays byte-for-byte."""

    def test_variable_annotation(self, engine):
        assert engine.transform("const x: number = 1;", "/src/a.ts") == "const x = 1;"

    def test_interface_and_type_alias_removed(self, engine):
        code = "interface P { a: string }\ntype Q = P | null;\nexport const a = 1;\n"
        out = engine.transform(code, "/src/a.ts")
        assert "interface" not in out
        assert "type Q" not in out
        assert "export const a = 1;" in out

    def test_function_signature_types(self, engine):
        out = engine.transform(
            "export function add(a: number, b?: number): number { return a + (b ?? 0); }",
            "/src/math.ts",
        )
        assert out == "export function add(a, b) { return a + (b ?? 0); }"

    def test_as_and_non_null(self, engine):
        out = engine.transform('const el = document.getElementById("root")! as HTMLElement;', "/src/a.ts")
        assert out == 'const el = document.getElementById("root");'

    def test_generic_call_arguments(self, engine):
        out = engine.transform("const [n, setN] = useState<number>(0);", "/src/a.ts")
        assert out == "const [n, setN] = useState(0);"

    def test_type_only_import_removed(self, engine):
        out = engine.transform('import type { Props } from "@/types";\nconst a = 1;', "/src/a.ts")
        assert "import" not in out

    def test_type_specifiers_dropped_from_mixed_import(self, engine):
        out = engine.transform('import { type Props, Button } from "@/components/ui/button";', "/src/a.ts")
        assert out == 'import { Button } from "@/components/ui/button";'

    def test_numeric_enum_lowered(self, engine):
        out = engine.transform("enum Color { Red, Green = 5, Blue }", "/src/a.ts")
        assert out.startswith("var Color; (function (Color) {")
        assert 'Color[Color["Red"] = 0] = "Red";' in out
        assert 'Color[Color["Green"] = 5] = "Green";' in out
        assert 'Color[Color["Blue"] = 6] = "Blue";' in out
        assert out.endswith("})(Color || (Color = {}));")

    def test_string_enum_lowered(self, engine):
        out = engine.transform('enum Mode { Dark = "dark" }', "/src/a.ts")
        assert 'Mode["Dark"] = "dark";' in out

    def test_parameter_properties_rejected(self, engine):
        code = "class A { constructor(private x: number) {} }"
        with pytest.raises(TransformError) as exc:
            engine.transform(code, "/src/a.ts")
        assert "parameter properties" in exc.value.message

    def test_syntax_error_has_location(self, engine):
        with pytest.raises(TransformError) as exc:
            engine.transform("const a = ;\n", "/src/broken.ts")
        error = exc.value
        assert error.path == "/src/broken.ts"
        assert error.line == 1
        assert error.location.startswith("/src/broken.ts:1:")
        assert error.message.startswith("/src/broken.ts:1:")

    def test_comments_kept_unless_stripped(self, engine):
        code = "// note\nconst a = 1;"
        assert "// note" in engine.transform(code, "/src/a.ts")
        assert "// note" not in engine.transform(code, "/src/a.ts", strip_comments=True)


# =============================================================================
# JSX
# =============================================================================

@requires_tree_sitter
class TestJsx:
    """Automatic runtime lowering."""

    def test_intrinsic_element(self, engine):
        out = engine.transform('const el = <div className="a">hi</div>;', "/src/a.jsx")
        assert out == (
            'import { jsx as _jsx } from "react/jsx-runtime";\n'
            'const el = _jsx("div", { className: "a", children: "hi" });'
        )

    def test_component_and_expression_children(self, engine):
        out = engine.transform("const el = <Card>Count: {count}</Card>;", "/src/a.jsx")
        assert 'import { jsxs as _jsxs } from "react/jsx-runtime";' in out
        assert '_jsxs(Card, { children: ["Count: ", count] })' in out

    def test_self_closing_with_key_and_boolean(self, engine):
        out = engine.transform("const el = <input key={id} readOnly />;", "/src/a.jsx")
        assert '_jsx("input", { readOnly: true }, id)' in out

    def test_spread_attributes(self, engine):
        out = engine.transform("const el = <button {...props} />;", "/src/a.jsx")
        assert '_jsx("button", { ...props })' in out

    def test_fragment(self, engine):
        out = engine.transform("const el = <><a /><b /></>;", "/src/a.jsx")
        assert "Fragment as _Fragment" in out
        assert '_jsxs(_Fragment, { children: [_jsx("a", {}), _jsx("b", {})] })' in out

    def test_nested_jsx_in_attribute_expression(self, engine):
        out = engine.transform("const el = <List render={() => <Item />} />;", "/src/a.jsx")
        assert "_jsx(List, { render: () => _jsx(Item, {}) })" in out

    def test_custom_import_source(self):
        engine = TransformEngine(jsx_import_source="preact")
        run(engine.initialize())
        out = engine.transform("const el = <p />;", "/src/a.jsx")
        assert 'from "preact/jsx-runtime"' in out

    def test_no_runtime_import_without_jsx(self, engine):
        assert "jsx-runtime" not in engine.transform("export const a = 1;", "/src/a.js")

    def test_sample_entry(self, engine):
        out = engine.transform(ENTRY_TSX, "/src/entry.tsx", SourceKind.TSX)
        assert "interface" not in out
        assert "useState(0)" in out
        assert "(window).__THEME__" in out
        assert '_jsx(Button, { onClick: () => setCount(count + 1), children: "Increment" })' in out
        assert '_jsx(App, { title: "Playground" })' in out
        assert "Header" not in out

    def test_sample_button(self, engine):
        out = engine.transform(BUTTON_TSX, "/src/components/ui/button.tsx")
        assert "export function Button({ children, onClick, ...props })" in out
        assert "...props" in out
        assert "children: children" in out
