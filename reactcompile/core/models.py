"""
Data model — Records that flow between resolver, backends and sandbox

SourceRecord        fetched file (owned by a backend's SourceCache)
TransformedModule   syntax-transformed file, not yet linked
BuildResult         what a compile hands to the SandboxExecutor
CompileOptions      per-compile knobs supplied by the host
CompilerCapabilities  static description the host uses to adapt its UI
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

import xxhash


ModuleRegistry = Dict[str, str]


class SourceKind(str, Enum):
    """Source kind, named after the loader that understands it."""
    TSX = "tsx"
    TS = "ts"
    JSX = "jsx"
    JS = "js"


class BackendState(str, Enum):
    """Backend lifecycle. Each instance owns its own state."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


def content_digest(contents: str) -> str:
    """Fast, stable digest used to notice content changes."""
    return xxhash.xxh64(contents.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class SourceRecord:
    """A fetched source file keyed by its CanonicalPath."""
    path: str
    contents: str
    kind: SourceKind

    @property
    def digest(self) -> str:
        return content_digest(self.contents)


@dataclass
class TransformedModule:
    """
    Syntax-transformed module (TranspileOnlyBackend only).

    Attributes:
        path: CanonicalPath of the source
        code: ES module code with types erased and JSX lowered
        source_digest: digest of the SourceRecord it was produced from
        comments_stripped: transformed with comments removed (minify)
        dependencies: followed alias specifier -> CanonicalPath
    """
    path: str
    code: str
    source_digest: str = ""
    comments_stripped: bool = False
    dependencies: Dict[str, str] = field(default_factory=dict)


@dataclass
class BuildResult:
    """Output of one compile."""
    code: str
    entry_point: str
    module_registry: Optional[ModuleRegistry] = None
    warnings: List[str] = field(default_factory=list)
    minify: bool = False

    @property
    def is_bundle(self) -> bool:
        """True when `code` is self-contained (no registry to assemble)."""
        return self.module_registry is None

    def to_dict(self) -> dict:
        return {
            "entry_point": self.entry_point,
            "bytes": len(self.code),
            "modules": sorted(self.module_registry) if self.module_registry else [],
            "warnings": list(self.warnings),
        }


@dataclass
class CompileOptions:
    """Options accepted by compile() and compile_and_run()."""
    entry_point: str = "@/entry"
    base_url: str = "/src"
    clear_cache: bool = False
    minify: bool = False
    sourcemap: bool = False
    theme_colors: Optional[Dict[str, str]] = None

    @classmethod
    def coerce(cls, options: Optional["CompileOptions"] = None, **overrides) -> "CompileOptions":
        """Accept None, an instance, or keyword overrides."""
        base = options if options is not None else cls()
        if not overrides:
            return base
        values = {
            "entry_point": base.entry_point,
            "base_url": base.base_url,
            "clear_cache": base.clear_cache,
            "minify": base.minify,
            "sourcemap": base.sourcemap,
            "theme_colors": base.theme_colors,
        }
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True)
class CompilerCapabilities:
    """What a backend can do. Read by the host, never by the core."""
    bundling: bool
    jsx: bool
    type_annotations: bool
    multi_file: bool
    name: str

    def to_dict(self) -> dict:
        return {
            "bundling": self.bundling,
            "jsx": self.jsx,
            "type_annotations": self.type_annotations,
            "multi_file": self.multi_file,
            "name": self.name,
        }
