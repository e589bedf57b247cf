"""
JavaScript language configurations.

The tree-sitter JavaScript grammar accepts JSX everywhere, so plain .js
files may contain JSX too (matching what browsers' playground tooling
tolerates). Both kinds share the grammar and differ only in the loader
name they report.
"""

from ...models import SourceKind
from ..config import LanguageConfig


JAVASCRIPT_CONFIG = LanguageConfig(
    name="JavaScript",
    tree_sitter_name="javascript",
    extensions={'.js', '.mjs'},
    kind=SourceKind.JS,
    jsx=True,
)

JSX_CONFIG = LanguageConfig(
    name="JavaScript JSX",
    tree_sitter_name="javascript",
    extensions={'.jsx'},
    kind=SourceKind.JSX,
    jsx=True,
)
