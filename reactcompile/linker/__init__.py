"""
Linker — Registry-form rewriting and module runtime assembly.

- rewrite_module: import/export statements -> require()/getter statements
- assemble_registry: preamble + __define per module + external preload
- assemble_bundle: static external imports + preamble + definitions + entry call
"""

from .rewrite import rewrite_module
from .runtime import PREAMBLE, assemble_bundle, assemble_registry, define_module, preamble

__all__ = [
    'rewrite_module',
    'PREAMBLE',
    'preamble',
    'define_module',
    'assemble_registry',
    'assemble_bundle',
]
