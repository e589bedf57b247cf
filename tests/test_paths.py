"""
Tests for PathResolver — alias, relative, absolute and bare resolution.

Resolution is pure, so most of these need no provider. locate() tests use
an in-memory provider to check extension inference order.
"""

import pytest

from reactcompile.core.externals import ExternalPackages
from reactcompile.core.paths import ExternalMarker, PathResolver, normalize_base, suggest_path
from reactcompile.core.sources import MemorySourceProvider
from reactcompile.errors import ResolutionError, SourceNotFoundError
from tests.factories import run


@pytest.fixture
def resolver():
    return PathResolver()


# =============================================================================
# Classification
# =============================================================================

class TestClassification:
    """Which rule a specifier falls under."""

    def test_allowlisted_packages_are_external(self, resolver):
        assert resolver.is_external("react")
        assert resolver.is_external("react-dom/client")

    def test_subpath_of_allowlisted_package_is_external(self, resolver):
        """react covers react/jsx-runtime and any other subpath."""
        assert resolver.is_external("react/jsx-dev-runtime")

    def test_prefix_without_slash_is_not_external(self, resolver):
        assert not resolver.is_external("reactive")

    def test_alias_and_relative(self, resolver):
        assert resolver.is_alias("@/lib/utils")
        assert resolver.is_relative("./x")
        assert resolver.is_relative("../x")
        assert not resolver.is_relative("x")

    def test_alias_rooted_importer(self, resolver):
        assert resolver.is_alias_rooted("@/entry", "/src")
        assert resolver.is_alias_rooted("/src/components/ui/button.tsx", "/src")
        assert not resolver.is_alias_rooted("/vendor/x.js", "/src")
        assert not resolver.is_alias_rooted(None, "/src")

    def test_empty_alias_prefix_rejected(self):
        with pytest.raises(ValueError):
            PathResolver(alias_prefix="")


# =============================================================================
# resolve()
# =============================================================================

class TestResolve:
    """Pure specifier -> path mapping."""

    def test_alias_joins_base(self, resolver):
        assert resolver.resolve("@/components/ui/button", None, "/src") == "/src/components/ui/button"

    def test_alias_keeps_explicit_extension(self, resolver):
        assert resolver.resolve("@/lib/utils.js", None, "/src") == "/src/lib/utils.js"

    def test_trailing_slash_on_base_is_ignored(self, resolver):
        assert resolver.resolve("@/entry", None, "/src/") == "/src/entry"

    def test_root_base(self, resolver):
        assert resolver.resolve("@/entry", None, "/") == "/entry"

    def test_relative_from_alias_rooted_importer(self, resolver):
        resolved = resolver.resolve("./button", "/src/components/ui/card.tsx", "/src")
        assert resolved == "/src/components/ui/button"

    def test_relative_parent_segments_collapse(self, resolver):
        resolved = resolver.resolve("../../lib/utils", "/src/components/ui/button.tsx", "/src")
        assert resolved == "/src/lib/utils"

    def test_relative_from_alias_form_importer(self, resolver):
        assert resolver.resolve("./lib/utils", "@/entry", "/src") == "/src/lib/utils"

    def test_relative_escaping_base_raises(self, resolver):
        with pytest.raises(ResolutionError) as exc:
            resolver.resolve("../../x", "/src/entry.tsx", "/src")
        assert "escapes" in exc.value.message
        assert exc.value.specifier == "../../x"
        assert exc.value.importer == "/src/entry.tsx"

    def test_relative_without_importer_raises(self, resolver):
        with pytest.raises(ResolutionError):
            resolver.resolve("./entry", None, "/src")

    def test_relative_from_outside_importer_raises(self, resolver):
        with pytest.raises(ResolutionError):
            resolver.resolve("./x", "/vendor/lib.js", "/src")

    def test_absolute_inside_base(self, resolver):
        assert resolver.resolve("/src/./lib/utils", None, "/src") == "/src/lib/utils"

    def test_absolute_outside_base_raises(self, resolver):
        with pytest.raises(ResolutionError):
            resolver.resolve("/etc/passwd", None, "/src")

    def test_bare_package_becomes_marker(self, resolver):
        assert resolver.resolve("react", None, "/src") == ExternalMarker("react")

    def test_unknown_bare_package_is_left_to_runtime(self, resolver):
        """Not allowlisted, still never fetched."""
        assert resolver.resolve("lodash", None, "/src") == ExternalMarker("lodash")

    def test_external_wins_over_alias(self):
        """Rule 1 is checked before rule 2."""
        externals = ExternalPackages({"@/vendor": "https://cdn.example/vendor.js"})
        resolver = PathResolver(externals=externals)
        assert resolver.resolve("@/vendor/x", None, "/src") == ExternalMarker("@/vendor/x")

    def test_empty_specifier_raises(self, resolver):
        with pytest.raises(ResolutionError):
            resolver.resolve("   ", None, "/src")

    def test_alias_naming_a_directory_raises(self, resolver):
        with pytest.raises(ResolutionError):
            resolver.resolve("@/", None, "/src")

    def test_custom_alias_prefix(self):
        resolver = PathResolver(alias_prefix="~/")
        assert resolver.resolve("~/lib/utils", None, "/app") == "/app/lib/utils"
        assert resolver.resolve("@/lib/utils", None, "/app") == ExternalMarker("@/lib/utils")


class TestNormalizeBase:

    def test_forms(self):
        assert normalize_base("/src") == "/src"
        assert normalize_base("/src/") == "/src"
        assert normalize_base("src") == "/src"
        assert normalize_base("/") == ""


# =============================================================================
# Extension inference
# =============================================================================

class TestCandidates:
    """Order in which physical paths are tried."""

    def test_extensionless_path_tries_fixed_order(self, resolver):
        assert resolver.candidates("/src/entry") == [
            "/src/entry.tsx", "/src/entry.ts", "/src/entry.jsx", "/src/entry.js",
        ]

    def test_known_extension_is_tried_alone(self, resolver):
        assert resolver.candidates("/src/lib/utils.js") == ["/src/lib/utils.js"]

    def test_dotted_name_is_not_an_extension(self, resolver):
        """`button.styles` has no known extension, so inference still runs."""
        assert resolver.candidates("/src/button.styles")[0] == "/src/button.styles.tsx"


class TestLocate:
    """resolve() + provider fetch."""

    def test_first_existing_candidate_wins(self, resolver):
        provider = MemorySourceProvider({
            "/src/lib/utils.ts": "export const a = 1;",
            "/src/lib/utils.js": "export const a = 2;",
        })
        record = run(resolver.locate("@/lib/utils", "/src/entry.tsx", "/src", provider))
        assert record.path == "/src/lib/utils.ts"

    def test_external_is_never_fetched(self, resolver):
        provider = MemorySourceProvider({})
        located = run(resolver.locate("react", None, "/src", provider))
        assert located == ExternalMarker("react")
        assert provider.fetches == 0

    def test_missing_file_names_specifier_and_importer(self, resolver):
        provider = MemorySourceProvider({"/src/lib/utils.js": ""})
        with pytest.raises(SourceNotFoundError) as exc:
            run(resolver.locate("@/lib/utilz", "/src/entry.tsx", "/src", provider))
        message = exc.value.message
        assert '"@/lib/utilz"' in message
        assert "/src/entry.tsx" in message
        assert "Did you mean /src/lib/utils.js?" in message


class TestSuggestPath:

    def test_close_match(self):
        known = ["/src/components/ui/button.tsx", "/src/lib/utils.js"]
        assert suggest_path("/src/components/ui/buton.tsx", known) == "/src/components/ui/button.tsx"

    def test_no_match(self):
        assert suggest_path("/src/zzz.tsx", ["/src/components/ui/button.tsx"]) is None

    def test_nothing_known(self):
        assert suggest_path("/src/entry.tsx", []) is None
