"""
SandboxExecutor — Hands a BuildResult to an isolated frame.

The frame never shares an origin with the host: it gets scripts, popups
and forms, nothing else. Allowing same-origin together with scripts would
let the frame remove its own sandbox, so that combination is refused.

Render tickets give last-request-wins semantics: a caller reserves a
ticket before compiling, and a result arriving with a superseded ticket is
dropped instead of replacing a newer render.
"""

import html
import logging
from dataclasses import dataclass
from itertools import count
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.externals import ExternalPackages
from ..core.models import BuildResult
from ..errors import ExecutionError, SandboxPolicyError
from ..linker.runtime import assemble_registry
from .document import DEFAULT_BACKGROUND, DEFAULT_FOREGROUND, build_document, to_data_url

logger = logging.getLogger(__name__)


SANDBOX_CAPABILITIES: Tuple[str, ...] = ("allow-scripts", "allow-popups", "allow-forms")


def validate_capabilities(capabilities: Sequence[str]) -> None:
    """
    Raises:
        SandboxPolicyError: same-origin with scripts, or anything outside the fixed set
    """
    granted = set(capabilities)
    if "allow-same-origin" in granted and "allow-scripts" in granted:
        raise SandboxPolicyError(
            "allow-same-origin together with allow-scripts would let the frame escape its sandbox"
        )
    extra = sorted(granted - set(SANDBOX_CAPABILITIES))
    if extra:
        raise SandboxPolicyError(f"Sandbox capabilities not permitted: {', '.join(extra)}")


class RenderTarget:
    """The host element frames are rendered into (the playground's #root)."""

    def __init__(self, element_id: str = "root"):
        self.element_id = element_id
        self.children: List[str] = []

    def clear(self) -> None:
        self.children.clear()

    def append(self, markup: str) -> None:
        self.children.append(markup)

    @property
    def html(self) -> str:
        return "".join(self.children)

    @property
    def is_empty(self) -> bool:
        return not self.children


@dataclass
class IsolatedFrame:
    """An <iframe sandbox> pointed at a data: URL document."""
    src: str
    capabilities: Tuple[str, ...] = SANDBOX_CAPABILITIES
    min_height: str = "400px"

    def __post_init__(self):
        validate_capabilities(self.capabilities)

    @property
    def sandbox(self) -> str:
        return " ".join(self.capabilities)

    def to_html(self) -> str:
        style = f"border: none; width: 100%; height: 100%; min-height: {self.min_height};"
        return (
            f'<iframe sandbox="{self.sandbox}" src="{html.escape(self.src, quote=True)}" '
            f'style="{html.escape(style, quote=True)}"></iframe>'
        )


class SandboxExecutor:
    """
    Renders build results into isolated frames.

    Args:
        target: Where frames are appended
        externals: Packages listed in every frame's import map
        min_height, background, foreground: Frame and document styling
    """

    def __init__(
        self,
        target: Optional[RenderTarget] = None,
        externals: Optional[ExternalPackages] = None,
        min_height: str = "400px",
        background: str = DEFAULT_BACKGROUND,
        foreground: str = DEFAULT_FOREGROUND,
    ):
        self.target = target if target is not None else RenderTarget()
        self.externals = externals or ExternalPackages.default()
        self.min_height = min_height
        self.background = background
        self.foreground = foreground
        self._tickets = count(1)
        self._latest = 0
        self.last_document: Optional[str] = None
        self.last_frame: Optional[IsolatedFrame] = None

    def reserve(self) -> int:
        """Ticket for an upcoming execute(); newer tickets supersede older ones."""
        self._latest = next(self._tickets)
        return self._latest

    def is_current(self, ticket: int) -> bool:
        return ticket >= self._latest

    def script_for(self, result: BuildResult) -> str:
        """
        Module script for a result: the bundle itself, or a registry harness.

        Raises:
            ExecutionError: the registry has no factory for the entry point
        """
        if result.is_bundle:
            return result.code
        if result.entry_point not in result.module_registry:
            raise ExecutionError(f"Entry point {result.entry_point} is not in the module registry")
        return assemble_registry(
            result.module_registry, result.entry_point, self.externals.names(), minify=result.minify,
        )

    def execute(
        self,
        result: BuildResult,
        theme_colors: Optional[Dict[str, str]] = None,
        ticket: Optional[int] = None,
    ) -> Optional[IsolatedFrame]:
        """
        Replace the target's contents with a frame running the result.

        Returns:
            The frame, or None when the ticket was superseded
        """
        if ticket is not None and not self.is_current(ticket):
            logger.warning("Skipping stale render (ticket %d, latest %d)", ticket, self._latest)
            return None

        script = self.script_for(result)
        self.target.clear()
        document = build_document(
            script,
            self.externals,
            theme_colors,
            background=self.background,
            foreground=self.foreground,
        )
        frame = IsolatedFrame(to_data_url(document), min_height=self.min_height)
        self.target.append(frame.to_html())
        self.last_document = document
        self.last_frame = frame
        logger.info("Rendered %s into isolated frame (%d bytes)", result.entry_point, len(document))
        return frame
