"""
Tests for SourceProviders — memory, filesystem and HTTP.

HTTP tests use httpx.MockTransport; nothing touches the network.
"""

import httpx
import pytest

from reactcompile.core.models import SourceKind
from reactcompile.core.sources import (
    FileSystemSourceProvider, HttpSourceProvider, MemorySourceProvider,
)
from reactcompile.errors import NetworkError, ResolutionError, SourceNotFoundError
from tests.factories import UTILS_JS, run


# =============================================================================
# MemorySourceProvider
# =============================================================================

class TestMemorySourceProvider:
    """Editor buffers."""

    def test_fetch_alias_form_infers_extension(self, memory_provider):
        record = run(memory_provider.fetch("@/lib/utils"))
        assert record.path == "/src/lib/utils.js"
        assert record.contents == UTILS_JS
        assert record.kind is SourceKind.JS

    def test_fetch_reports_kind_from_extension(self, memory_provider):
        record = run(memory_provider.fetch("@/components/ui/button"))
        assert record.kind is SourceKind.TSX

    def test_fetch_counts_calls(self, memory_provider):
        run(memory_provider.fetch("@/entry"))
        run(memory_provider.fetch("@/entry"))
        assert memory_provider.fetches == 2

    def test_fetch_with_explicit_candidates(self, memory_provider):
        record = run(memory_provider.fetch(
            "/src/lib/utils", candidates=["/src/lib/utils.ts", "/src/lib/utils.js"]
        ))
        assert record.path == "/src/lib/utils.js"

    def test_missing_file_raises_not_found(self, memory_provider):
        with pytest.raises(SourceNotFoundError) as exc:
            run(memory_provider.fetch("@/components/ui/card"))
        assert "tried /src/components/ui/card.tsx" in exc.value.message
        assert exc.value.kind == "not_found"

    def test_external_is_refused(self, memory_provider):
        with pytest.raises(ResolutionError):
            run(memory_provider.fetch("react"))
        assert memory_provider.fetches == 1

    def test_write_and_remove(self):
        provider = MemorySourceProvider()
        provider.write("/src/a.ts", "export {};")
        assert provider.known_paths() == ["/src/a.ts"]
        assert provider.remove("/src/a.ts") is True
        assert provider.remove("/src/a.ts") is False

    def test_files_are_copied(self):
        files = {"/src/a.ts": "1"}
        provider = MemorySourceProvider(files)
        provider.write("/src/b.ts", "2")
        assert "/src/b.ts" not in files


# =============================================================================
# FileSystemSourceProvider
# =============================================================================

class TestFileSystemSourceProvider:
    """Local directory provider."""

    def test_reads_project_files(self, project_dir):
        provider = FileSystemSourceProvider(project_dir)
        record = run(provider.fetch("@/entry"))
        assert record.path == "/src/entry.tsx"
        assert "createRoot" in record.contents

    def test_known_paths_lists_sources(self, project_dir):
        (project_dir / "src" / "notes.md").write_text("# notes")
        provider = FileSystemSourceProvider(project_dir)
        assert provider.known_paths() == [
            "/src/components/ui/button.tsx",
            "/src/entry.tsx",
            "/src/lib/utils.js",
        ]

    def test_missing_file_suggests_neighbour(self, project_dir):
        provider = FileSystemSourceProvider(project_dir)
        with pytest.raises(SourceNotFoundError) as exc:
            run(provider.fetch("@/components/ui/buton"))
        assert "Did you mean /src/components/ui/button.tsx?" in exc.value.message

    def test_directory_is_not_a_file(self, project_dir):
        provider = FileSystemSourceProvider(project_dir)
        assert run(provider.read("/src/lib")) is None

    def test_path_outside_root_refused(self, project_dir):
        provider = FileSystemSourceProvider(project_dir / "src")
        with pytest.raises(ResolutionError):
            run(provider.read("/../../etc/passwd"))

    def test_undecodable_file_is_network_error(self, project_dir):
        (project_dir / "src" / "binary.js").write_bytes(b"\xff\xfe\x00bad")
        provider = FileSystemSourceProvider(project_dir)
        with pytest.raises(NetworkError):
            run(provider.fetch("@/binary.js"))


# =============================================================================
# HttpSourceProvider
# =============================================================================

def http_provider(handler) -> HttpSourceProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpSourceProvider("http://dev.local/", client=client)


class TestHttpSourceProvider:
    """Dev-server provider."""

    def test_fetches_first_existing_candidate(self):
        requested = []

        def handler(request):
            requested.append(request.url.path)
            if request.url.path == "/src/lib/utils.js":
                return httpx.Response(200, text=UTILS_JS)
            return httpx.Response(404)

        provider = http_provider(handler)
        record = run(provider.fetch("@/lib/utils"))
        assert record.path == "/src/lib/utils.js"
        assert requested == [
            "/src/lib/utils.tsx", "/src/lib/utils.ts", "/src/lib/utils.jsx", "/src/lib/utils.js",
        ]

    def test_all_404_is_not_found(self):
        provider = http_provider(lambda request: httpx.Response(404))
        with pytest.raises(SourceNotFoundError):
            run(provider.fetch("@/entry"))

    def test_server_error_is_network_error(self):
        provider = http_provider(lambda request: httpx.Response(500))
        with pytest.raises(NetworkError) as exc:
            run(provider.fetch("@/entry"))
        assert "500" in exc.value.message
        assert exc.value.path == "/src/entry.tsx"

    def test_transport_failure_is_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        provider = http_provider(handler)
        with pytest.raises(NetworkError):
            run(provider.fetch("@/entry"))

    def test_timeout_is_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        provider = http_provider(handler)
        with pytest.raises(NetworkError) as exc:
            run(provider.fetch("@/entry"))
        assert "Timed out" in exc.value.message

    def test_origin_trailing_slash_trimmed(self):
        provider = HttpSourceProvider("http://dev.local/")
        assert provider.origin == "http://dev.local"

    def test_aclose_releases_client(self):
        provider = http_provider(lambda request: httpx.Response(404))
        run(provider.aclose())
        assert provider._client is None
