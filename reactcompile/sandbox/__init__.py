"""
Sandbox — Isolated execution handoff for build results.
"""

from .document import ERROR_MARKER, build_document, from_data_url, to_data_url
from .executor import (
    SANDBOX_CAPABILITIES, IsolatedFrame, RenderTarget, SandboxExecutor, validate_capabilities,
)

__all__ = [
    'ERROR_MARKER',
    'build_document',
    'from_data_url',
    'to_data_url',
    'SANDBOX_CAPABILITIES',
    'IsolatedFrame',
    'RenderTarget',
    'SandboxExecutor',
    'validate_capabilities',
]
