"""
Per-backend caches — SourceRecords and TransformedModules by CanonicalPath.

Owned by one backend instance; nothing here is process-global. Both caches
survive across compiles until clear() or evict() is called.
"""

from typing import Dict, Iterator, List, Optional, Tuple

from .models import SourceRecord, TransformedModule


class SourceCache:
    """
    SourceRecords keyed by CanonicalPath, plus the request paths that led there.

    `/src/lib/utils` and `/src/lib/utils.js` both find the same record once
    either has been loaded.
    """

    def __init__(self):
        self._records: Dict[str, SourceRecord] = {}
        self._aliases: Dict[str, str] = {}  # request path -> canonical path

    def canonical(self, path: str) -> Optional[str]:
        canonical = self._aliases.get(path, path)
        return canonical if canonical in self._records else None

    def get(self, path: str) -> Optional[SourceRecord]:
        canonical = self.canonical(path)
        return self._records[canonical] if canonical else None

    def put(self, request_path: str, record: SourceRecord) -> SourceRecord:
        """Store a record; an existing record for the same CanonicalPath wins."""
        existing = self._records.get(record.path)
        if existing is None or existing.contents != record.contents:
            self._records[record.path] = record
        self._aliases[request_path] = record.path
        self._aliases[record.path] = record.path
        return self._records[record.path]

    def evict(self, path: str) -> bool:
        """Drop a record and every request path pointing at it."""
        canonical = self.canonical(path)
        if canonical is None:
            return False
        del self._records[canonical]
        for alias in [a for a, c in self._aliases.items() if c == canonical]:
            del self._aliases[alias]
        return True

    def clear(self) -> None:
        self._records.clear()
        self._aliases.clear()

    def paths(self) -> List[str]:
        return list(self._records)

    def __contains__(self, path: str) -> bool:
        return self.canonical(path) is not None

    def __len__(self) -> int:
        return len(self._records)


class TransformCache:
    """TransformedModules keyed by CanonicalPath, valid while the source digest matches."""

    def __init__(self):
        self._modules: Dict[str, TransformedModule] = {}

    def get(self, path: str, digest: Optional[str] = None) -> Optional[TransformedModule]:
        module = self._modules.get(path)
        if module is None:
            return None
        if digest is not None and module.source_digest != digest:
            return None
        return module

    def put(self, module: TransformedModule) -> None:
        self._modules[module.path] = module

    def evict(self, path: str) -> bool:
        return self._modules.pop(path, None) is not None

    def clear(self) -> None:
        self._modules.clear()

    def items(self) -> Iterator[Tuple[str, TransformedModule]]:
        return iter(list(self._modules.items()))

    def __contains__(self, path: str) -> bool:
        return path in self._modules

    def __len__(self) -> int:
        return len(self._modules)
