"""
Loader — Cached source loading for one backend

Load only what the graph reaches, and each file at most once:
    1. Resolve the specifier (pure, no I/O)
    2. Check the SourceCache (request path or CanonicalPath)
    3. Fetch through the SourceProvider only on a miss

Two specifiers that resolve to the same CanonicalPath share one SourceRecord.
"""

import logging
from typing import Optional, Union

from .cache import SourceCache
from .models import SourceRecord
from .paths import ExternalMarker, PathResolver
from .sources import SourceProvider

logger = logging.getLogger(__name__)


class SourceLoader:
    """Resolver + provider + cache."""

    def __init__(
        self,
        resolver: PathResolver,
        provider: SourceProvider,
        cache: Optional[SourceCache] = None,
    ):
        self.resolver = resolver
        self.provider = provider
        self.cache = cache if cache is not None else SourceCache()

    async def locate(
        self,
        specifier: str,
        importer: Optional[str],
        base_url: str,
    ) -> Union[SourceRecord, ExternalMarker]:
        """
        Resolve a specifier and load the file behind it.

        Raises:
            ResolutionError: unresolvable or missing (SourceNotFoundError)
            NetworkError: provider transport failure
        """
        resolved = self.resolver.resolve(specifier, importer, base_url)
        if isinstance(resolved, ExternalMarker):
            return resolved
        return await self.load(resolved, base_url, specifier=specifier, importer=importer)

    async def load(
        self,
        path: str,
        base_url: str,
        specifier: Optional[str] = None,
        importer: Optional[str] = None,
    ) -> SourceRecord:
        """Load a resolved physical path, from cache when possible."""
        cached = self.cache.get(path)
        if cached is not None:
            logger.debug("Cache hit: %s", cached.path)
            return cached

        record = await self.provider.fetch(
            path,
            base_url,
            candidates=self.resolver.candidates(path),
            specifier=specifier,
            importer=importer,
        )
        stored = self.cache.put(path, record)
        logger.info("Loaded: %s (%d bytes)", stored.path, len(stored.contents))
        return stored

    def invalidate(self, path: Optional[str] = None) -> None:
        if path is None:
            self.cache.clear()
        else:
            self.cache.evict(path)
