"""
Parsing configuration data structures.

Defines LanguageConfig — how one source kind is parsed by tree-sitter.
New source kinds are added via config, not code changes.
"""

from dataclasses import dataclass
from typing import Set

from ..models import SourceKind


@dataclass
class LanguageConfig:
    """
    Configuration for parsing one source kind.

    Attributes:
        name: Human-readable name (e.g., "TypeScript JSX")
        tree_sitter_name: Grammar name in tree-sitter-language-pack
        extensions: File extensions this config handles (e.g., {'.tsx'})
        kind: SourceKind reported to backends (the loader name)
        jsx: Whether JSX syntax is accepted
        typescript: Whether type annotations are accepted
        max_file_size: Refuse files larger than this (bytes)
    """
    name: str
    tree_sitter_name: str
    extensions: Set[str]
    kind: SourceKind
    jsx: bool = False
    typescript: bool = False
    max_file_size: int = 1_000_000
