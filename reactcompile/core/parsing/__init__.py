"""
Parsing module — tree-sitter based transforms for project sources.

- LanguageConfig: Per-kind parsing rules (grammar, extensions, loader name)
- ParserRegistry: Extension-based routing
- ParserPool: Lazily loaded parsers owned by one engine
- Transpiler: Type erasure + JSX automatic runtime for one file
- ModuleSyntaxParser: Structural import/export statement parse

Usage:
    from reactcompile.core.parsing import ParserPool, ParserRegistry, Transpiler

    registry = ParserRegistry.default()
    pool = ParserPool()
    pool.load(registry.grammars())
    code = Transpiler(pool, registry).transform(source, "/src/entry.tsx")
"""

from .config import LanguageConfig
from .registry import ParserRegistry
from .parsers import ParserPool
from .transpiler import Transpiler, js_string
from .modsyntax import (
    ModuleSyntaxParser, ModuleSyntax, ImportDeclaration, ImportBinding,
    ExportDeclaration, ExportForm,
)

__all__ = [
    'LanguageConfig',
    'ParserRegistry',
    'ParserPool',
    'Transpiler',
    'js_string',
    'ModuleSyntaxParser',
    'ModuleSyntax',
    'ImportDeclaration',
    'ImportBinding',
    'ExportDeclaration',
    'ExportForm',
]
