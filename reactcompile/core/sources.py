"""
Source Providers — Where project files come from

Supports: in-memory editor buffers, a local directory, an HTTP dev server.
All providers implement the same read() primitive; fetch() layers
extension inference and SourceRecord construction on top of it.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import httpx

from ..errors import NetworkError, ResolutionError, SourceNotFoundError
from .models import SourceRecord
from .parsing.registry import ParserRegistry
from .paths import ExternalMarker, PathResolver, suggest_path

logger = logging.getLogger(__name__)


class SourceProvider(ABC):
    """Abstract base for source providers."""

    def __init__(
        self,
        resolver: Optional[PathResolver] = None,
        registry: Optional[ParserRegistry] = None,
    ):
        self.resolver = resolver or PathResolver()
        self.registry = registry or ParserRegistry.default()
        self.fetches = 0

    @abstractmethod
    async def read(self, path: str) -> Optional[str]:
        """
        Raw contents of one physical path.

        Returns:
            File contents, or None when nothing exists at the path

        Raises:
            NetworkError: transport failure (anything other than not-found)
        """
        pass

    def known_paths(self) -> List[str]:
        """Physical paths this provider can enumerate (for suggestions)."""
        return []

    async def fetch(
        self,
        path: str,
        base_url: str = "/src",
        candidates: Optional[Sequence[str]] = None,
        specifier: Optional[str] = None,
        importer: Optional[str] = None,
    ) -> SourceRecord:
        """
        Fetch the first existing candidate for a canonical or alias-form path.

        Args:
            path: Physical path (extension optional) or alias-form path
            base_url: Base location alias paths are rooted at
            candidates: Ordered physical paths to try; derived from path when omitted
            specifier, importer: Used in error messages only

        Returns:
            SourceRecord whose path is the CanonicalPath

        Raises:
            SourceNotFoundError: no candidate exists
            NetworkError: transport failure
        """
        self.fetches += 1
        if candidates is None:
            resolved = self.resolver.resolve(path, None, base_url)
            if isinstance(resolved, ExternalMarker):
                raise ResolutionError(
                    f'"{path}" is an external package and is never fetched', path, importer
                )
            candidates = self.resolver.candidates(resolved)

        for candidate in candidates:
            contents = await self.read(candidate)
            if contents is not None:
                logger.debug("Fetched %s (%d bytes)", candidate, len(contents))
                return SourceRecord(candidate, contents, self.registry.kind_for(candidate))

        raise self._not_found(specifier or path, importer, candidates)

    def _not_found(self, specifier: str, importer: Optional[str], candidates: Sequence[str]):
        message = f'Could not resolve "{specifier}"'
        if importer:
            message += f" from {importer}"
        message += f" (tried {', '.join(candidates)})"
        if candidates:
            suggestion = suggest_path(candidates[0], self.known_paths())
            if suggestion:
                message += f". Did you mean {suggestion}?"
        return SourceNotFoundError(message, specifier, importer)


class MemorySourceProvider(SourceProvider):
    """Editor buffers keyed by physical path. The only writable provider."""

    def __init__(self, files: Optional[Dict[str, str]] = None, **kwargs):
        super().__init__(**kwargs)
        self.files: Dict[str, str] = dict(files or {})

    async def read(self, path: str) -> Optional[str]:
        return self.files.get(path)

    def write(self, path: str, contents: str) -> None:
        self.files[path] = contents

    def remove(self, path: str) -> bool:
        return self.files.pop(path, None) is not None

    def known_paths(self) -> List[str]:
        return sorted(self.files)


class FileSystemSourceProvider(SourceProvider):
    """
    Serves physical paths from a local directory.

    `/src/entry.tsx` is read from `<root>/src/entry.tsx`. Paths escaping the
    root are refused.
    """

    def __init__(self, root, **kwargs):
        super().__init__(**kwargs)
        self.root = Path(root).resolve()

    def _file_for(self, path: str) -> Path:
        target = (self.root / path.lstrip("/")).resolve()
        if not target.is_relative_to(self.root):
            raise ResolutionError(f"{path} is outside {self.root}", path)
        return target

    async def read(self, path: str) -> Optional[str]:
        target = self._file_for(path)
        if not target.is_file():
            return None
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise NetworkError(f"Could not read {path}: {e}", path) from e

    def known_paths(self) -> List[str]:
        extensions = self.resolver.known_extensions
        return sorted(
            "/" + p.relative_to(self.root).as_posix()
            for p in self.root.rglob("*")
            if p.is_file() and p.suffix in extensions
        )


class HttpSourceProvider(SourceProvider):
    """
    Fetches raw files from a dev server (`GET <origin>/src/entry.tsx`).

    404 means not found; every other failure is a NetworkError.
    """

    def __init__(
        self,
        origin: str,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.origin = origin.rstrip("/")
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def read(self, path: str) -> Optional[str]:
        url = self.origin + path
        try:
            response = await self.client.get(url)
        except httpx.TimeoutException as e:
            logger.error("Timed out fetching %s", url)
            raise NetworkError(f"Timed out fetching {url}", path) from e
        except httpx.HTTPError as e:
            logger.error("Cannot fetch %s: %s", url, e)
            raise NetworkError(f"Cannot fetch {url}: {e}", path) from e

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise NetworkError(f"GET {url} failed with status {response.status_code}", path)
        return response.text

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

