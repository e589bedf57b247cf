"""
Language configurations for the source kinds a project may contain.

- javascript.py: JavaScript (.js) and JavaScript JSX (.jsx)
- typescript.py: TypeScript (.ts) and TypeScript JSX (.tsx)
"""

from .javascript import JAVASCRIPT_CONFIG, JSX_CONFIG
from .typescript import TSX_CONFIG, TYPESCRIPT_CONFIG

__all__ = [
    'JAVASCRIPT_CONFIG',
    'JSX_CONFIG',
    'TYPESCRIPT_CONFIG',
    'TSX_CONFIG',
]
