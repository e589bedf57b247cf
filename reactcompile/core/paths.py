"""
PathResolver — Maps module specifiers to CanonicalPaths.

Resolution rules, first match wins:
1. Allowlisted external package (exact name or name/subpath) -> ExternalMarker
2. Alias prefix (`@/a/b`) -> base_url joined with the rest
3. Relative (`./x`, `../x`) from an alias-rooted importer -> importer's
   directory, `..` collapsed positionally; escaping base_url is an error
4. Absolute path inside base_url -> normalized as-is
5. Any other bare specifier -> ExternalMarker

resolve() is pure. Extension inference needs to know which files exist, so
it lives in locate(), which asks a SourceProvider for the candidates in
order.

Usage:
    resolver = PathResolver()
    resolver.resolve("@/components/ui/button", None, "/src")
    # '/src/components/ui/button'
    await resolver.locate("@/lib/utils", "/src/entry.tsx", "/src", provider)
    # SourceRecord(path='/src/lib/utils.js', ...)
"""

import posixpath
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Union, TYPE_CHECKING

from rapidfuzz import fuzz, process

from ..errors import ResolutionError
from .externals import ExternalPackages

if TYPE_CHECKING:
    from .models import SourceRecord
    from .sources import SourceProvider


DEFAULT_ALIAS = "@/"
DEFAULT_EXTENSIONS = (".tsx", ".ts", ".jsx", ".js")
EXTRA_KNOWN_EXTENSIONS = (".mjs", ".mts")


@dataclass(frozen=True)
class ExternalMarker:
    """A specifier left to the isolated frame's import map."""
    specifier: str


Resolved = Union[str, ExternalMarker]


def normalize_base(base_url: str) -> str:
    """'/src/' -> '/src', '' and '/' -> '' (project root)."""
    base = "/" + base_url.strip().strip("/")
    return "" if base == "/" else base


class PathResolver:
    """
    Alias/relative/bare specifier resolution shared by every backend.

    Args:
        alias_prefix: Prefix rooted at base_url (default '@/')
        externals: Allowlisted packages
        extensions: Ordered extensions tried when a path has none
    """

    def __init__(
        self,
        alias_prefix: str = DEFAULT_ALIAS,
        externals: Optional[ExternalPackages] = None,
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ):
        if not alias_prefix:
            raise ValueError("alias_prefix must not be empty")
        self.alias_prefix = alias_prefix
        self.externals = externals or ExternalPackages.default()
        self.extensions = tuple(extensions)
        self.known_extensions = set(self.extensions) | set(EXTRA_KNOWN_EXTENSIONS)

    # -------------------------------------------------------------------------
    # Classification
    # -------------------------------------------------------------------------

    def is_external(self, specifier: str) -> bool:
        return self.externals.is_external(specifier)

    def is_alias(self, specifier: str) -> bool:
        return specifier.startswith(self.alias_prefix)

    def is_relative(self, specifier: str) -> bool:
        return specifier.startswith("./") or specifier.startswith("../")

    def is_alias_rooted(self, path: Optional[str], base_url: str) -> bool:
        """True for alias-form paths and physical paths under base_url."""
        if not path:
            return False
        if self.is_alias(path):
            return True
        base = normalize_base(base_url)
        return path.startswith(base + "/")

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve(self, specifier: str, importer: Optional[str], base_url: str) -> Resolved:
        """
        Resolve a specifier to an extensionless-or-explicit physical path.

        Raises:
            ResolutionError: empty specifier, relative specifier without an
                alias-rooted importer, or a path escaping base_url
        """
        spec = specifier.strip()
        if not spec:
            raise ResolutionError("Empty module specifier", specifier, importer)

        if self.is_external(spec):
            return ExternalMarker(spec)

        base = normalize_base(base_url)

        if self.is_alias(spec):
            return self._join(base, spec[len(self.alias_prefix):], spec, importer)

        if self.is_relative(spec):
            if not self.is_alias_rooted(importer, base_url):
                raise ResolutionError(
                    f'Cannot resolve relative import "{spec}" from '
                    f'{importer or "<entry>"}: importer is outside {base or "/"}',
                    spec,
                    importer,
                )
            directory = posixpath.dirname(self.to_physical(importer, base_url))
            relative = directory[len(base):] + "/" + spec
            return self._join(base, relative, spec, importer)

        if spec.startswith("/"):
            if base and not spec.startswith(base + "/"):
                raise ResolutionError(
                    f'Cannot resolve "{spec}": path is outside {base}', spec, importer
                )
            return self._join(base, spec[len(base):], spec, importer)

        return ExternalMarker(spec)

    def to_physical(self, path: str, base_url: str) -> str:
        """Alias-form path -> physical path; physical paths pass through."""
        if self.is_alias(path):
            rest = path[len(self.alias_prefix):]
            return normalize_base(base_url) + "/" + rest.lstrip("/")
        return path

    def _join(self, base: str, relative: str, spec: str, importer: Optional[str]) -> str:
        segments: List[str] = []
        for part in relative.split("/"):
            if part in ("", "."):
                continue
            if part == "..":
                if not segments:
                    raise ResolutionError(
                        f'Cannot resolve "{spec}": path escapes {base or "/"}', spec, importer
                    )
                segments.pop()
            else:
                segments.append(part)
        if not segments:
            raise ResolutionError(f'Cannot resolve "{spec}": path names a directory', spec, importer)
        return base + "/" + "/".join(segments)

    # -------------------------------------------------------------------------
    # Extension inference
    # -------------------------------------------------------------------------

    def has_extension(self, path: str) -> bool:
        return posixpath.splitext(path)[1].lower() in self.known_extensions

    def candidates(self, path: str) -> List[str]:
        """Physical paths to try, in order."""
        if self.has_extension(path):
            return [path]
        return [path + ext for ext in self.extensions]

    async def locate(
        self,
        specifier: str,
        importer: Optional[str],
        base_url: str,
        provider: 'SourceProvider',
    ) -> Union['SourceRecord', ExternalMarker]:
        """
        Resolve and fetch. The returned record's path is the CanonicalPath.

        Raises:
            SourceNotFoundError: no candidate exists
            NetworkError: provider transport failure
        """
        resolved = self.resolve(specifier, importer, base_url)
        if isinstance(resolved, ExternalMarker):
            return resolved
        return await provider.fetch(
            resolved, base_url, candidates=self.candidates(resolved),
            specifier=specifier, importer=importer,
        )


def suggest_path(path: str, known: Iterable[str], cutoff: float = 70.0) -> Optional[str]:
    """Closest known path to a missing one, or None."""
    stem = posixpath.splitext(path)[0]
    choices = {posixpath.splitext(k)[0]: k for k in known}
    if not choices:
        return None
    match = process.extractOne(stem, list(choices), scorer=fuzz.ratio, score_cutoff=cutoff)
    if match is None:
        return None
    return choices[match[0]]
