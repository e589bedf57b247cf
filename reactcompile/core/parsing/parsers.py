"""
ParserPool — Lazily loaded tree-sitter parsers, one per grammar.

Each engine owns its own pool, so two engines (or two tests) never share
hidden global parser state.

Usage:
    pool = ParserPool()
    pool.load(["tsx", "javascript"])      # raises InitializationError
    tree = pool.parse(b"const a = 1;", "javascript")
"""

from typing import Dict, Iterable, List, TYPE_CHECKING

from ...errors import InitializationError

if TYPE_CHECKING:
    from tree_sitter import Node, Parser, Tree


class ParserPool:
    """Caches tree-sitter parsers by grammar name."""

    def __init__(self):
        self._parsers: Dict[str, 'Parser'] = {}

    def load(self, grammars: Iterable[str]) -> List[str]:
        """
        Load parsers for every grammar.

        Returns:
            The grammar names now available

        Raises:
            InitializationError: tree-sitter-language-pack missing or grammar unknown
        """
        try:
            from tree_sitter_language_pack import get_parser
        except ImportError as e:
            raise InitializationError(
                "tree-sitter-language-pack is not installed: "
                "pip install tree-sitter-language-pack"
            ) from e

        for name in grammars:
            if name in self._parsers:
                continue
            try:
                self._parsers[name] = get_parser(name)
            except Exception as e:
                raise InitializationError(f"Could not load grammar '{name}': {e}") from e
        return sorted(self._parsers)

    def is_loaded(self, grammar: str) -> bool:
        return grammar in self._parsers

    def parse(self, source: bytes, grammar: str) -> 'Tree':
        """Parse source bytes with a loaded grammar."""
        parser = self._parsers.get(grammar)
        if parser is None:
            raise InitializationError(f"Grammar '{grammar}' not loaded. Call load() first.")
        return parser.parse(source)

    def __len__(self) -> int:
        return len(self._parsers)


def first_error(node: 'Node'):
    """Depth-first search for the first ERROR or MISSING node, or None."""
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = first_error(child)
        if found is not None:
            return found
    return node
