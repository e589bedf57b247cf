"""
External packages — The fixed allowlist of runtime packages.

Allowlisted specifiers are never bundled or fetched. Inside the isolated
frame they resolve through an import map to CDN-hosted ES modules.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import orjson


REACT_VERSION = "19.2.3"

DEFAULT_PACKAGES: Dict[str, str] = {
    "react": f"https://esm.sh/react@{REACT_VERSION}",
    "react/jsx-runtime": f"https://esm.sh/react@{REACT_VERSION}/jsx-runtime",
    "react-dom": f"https://esm.sh/react-dom@{REACT_VERSION}",
    "react-dom/client": f"https://esm.sh/react-dom@{REACT_VERSION}/client",
}


@dataclass
class ExternalPackages:
    """
    Allowlisted package names mapped to the URLs the import map serves.

    A specifier is external when it equals a name or extends one with a
    subpath (`react` covers `react/jsx-runtime`).
    """
    packages: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PACKAGES))

    @classmethod
    def default(cls) -> "ExternalPackages":
        return cls()

    @classmethod
    def from_mapping(cls, packages: Optional[Dict[str, str]]) -> "ExternalPackages":
        return cls(dict(packages) if packages else dict(DEFAULT_PACKAGES))

    def names(self) -> List[str]:
        return list(self.packages)

    def is_external(self, specifier: str) -> bool:
        for name in self.packages:
            if specifier == name or specifier.startswith(name + "/"):
                return True
        return False

    def import_map(self) -> Dict[str, Dict[str, str]]:
        return {"imports": dict(self.packages)}

    def import_map_json(self) -> str:
        return orjson.dumps(self.import_map(), option=orjson.OPT_INDENT_2).decode("utf-8")

    def __contains__(self, specifier: str) -> bool:
        return self.is_external(specifier)

    def __len__(self) -> int:
        return len(self.packages)
