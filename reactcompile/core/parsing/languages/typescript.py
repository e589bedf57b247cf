"""
TypeScript language configurations.

.ts uses the plain TypeScript grammar (angle-bracket type assertions are
legal, JSX is not); .tsx uses the TSX grammar (JSX legal, `<T>x` is not).
"""

from ...models import SourceKind
from ..config import LanguageConfig


TYPESCRIPT_CONFIG = LanguageConfig(
    name="TypeScript",
    tree_sitter_name="typescript",
    extensions={'.ts', '.mts'},
    kind=SourceKind.TS,
    typescript=True,
)

TSX_CONFIG = LanguageConfig(
    name="TypeScript JSX",
    tree_sitter_name="tsx",
    extensions={'.tsx'},
    kind=SourceKind.TSX,
    jsx=True,
    typescript=True,
)
