"""
Playground — The host loop around one active backend.

Owns what the editor page owns: file buffers, the status indicator, the
active backend, theme colors, and the error panel shown in place of the
preview when a compile fails. compile_application() never raises; the
outcome is reported through `status` and the render target.

Edits and recompiles race: every compile_application() call takes a
generation number, and only the newest generation may update the status
or the error panel.
"""

import html
import logging
from typing import Dict, Optional, Sequence

from .backends import CompilerBackend, create_backend
from .config import Config
from .core.externals import ExternalPackages
from .core.models import CompileOptions
from .core.paths import PathResolver
from .core.sources import MemorySourceProvider, SourceProvider
from .errors import CompileError
from .sandbox.executor import RenderTarget, SandboxExecutor

logger = logging.getLogger(__name__)


STATUS_COMPILING = "Compiling..."
STATUS_SUCCESS = "✓ Success"
STATUS_ERROR = "✗ Error"
STATUS_SWITCHING = "Switching..."

DARK_THEME = {
    "bg": "#000000",
    "text": "#fafafa",
    "muted": "#e4e4e7",
    "code": "#a1a1a6",
    "codeBg": "#18181b",
}

LIGHT_THEME = {
    "bg": "#ffffff",
    "text": "#1f2937",
    "muted": "#6b7280",
    "code": "#374151",
    "codeBg": "#f3f4f6",
}

PROJECT_FILES = ("@/entry", "@/components/ui/button", "@/lib/utils")

ERROR_PANEL = """\
<div style="padding: 20px; background: #09090b; color: #ff6b6b; border-radius: 4px; \
font-family: monospace; font-size: 12px; max-height: 100%; overflow-y: auto;">
<strong>{title}:</strong>
<pre style="margin-top: 8px; white-space: pre-wrap; word-break: break-word; color: #ffa8a8;">{message}</pre>
</div>"""


def error_panel(message: str, title: str = "Compilation Error") -> str:
    return ERROR_PANEL.format(title=html.escape(title), message=html.escape(message))


class Playground:
    """
    Editor host: buffers, backend switching, status and error display.

    Args:
        provider: Where project files live (a MemorySourceProvider accepts edits)
        config: Compile, externals and sandbox settings
        target: Render target shared with the sandbox executor
    """

    def __init__(
        self,
        provider: SourceProvider,
        config: Optional[Config] = None,
        target: Optional[RenderTarget] = None,
    ):
        self.config = config or Config()
        self.provider = provider
        self.target = target if target is not None else RenderTarget()
        self.externals = ExternalPackages.from_mapping(self.config.externals.packages)
        self.resolver = PathResolver(
            alias_prefix=self.config.compiler.alias_prefix,
            externals=self.externals,
            extensions=self.config.compiler.extensions,
        )
        self.executor = SandboxExecutor(
            self.target,
            self.externals,
            min_height=self.config.sandbox.min_height,
            background=self.config.sandbox.background,
            foreground=self.config.sandbox.foreground,
        )
        self.backend: Optional[CompilerBackend] = None
        self.file_contents: Dict[str, str] = {}
        self.status = ""
        self.status_type = ""
        self.dark_theme = True
        self._generation = 0

    # -------------------------------------------------------------------------
    # Status & theme
    # -------------------------------------------------------------------------

    def set_status(self, message: str, status_type: str = "loading") -> None:
        self.status = message
        self.status_type = status_type
        logger.debug("Status: %s", message)

    @property
    def theme_colors(self) -> Dict[str, str]:
        return dict(DARK_THEME if self.dark_theme else LIGHT_THEME)

    async def toggle_theme(self) -> bool:
        """Flip dark/light and recompile so the frame picks the colors up."""
        self.dark_theme = not self.dark_theme
        return await self.compile_application()

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    async def load_all_files(self, paths: Sequence[str] = PROJECT_FILES) -> Dict[str, str]:
        """Read every editor file; unreadable ones get a placeholder comment."""
        base_url = self.config.compiler.base_url
        for path in paths:
            physical = self.resolver.to_physical(path, base_url)
            try:
                record = await self.provider.fetch(
                    physical,
                    base_url,
                    candidates=self.resolver.candidates(physical),
                    specifier=path,
                )
            except CompileError as e:
                logger.error("Failed to load %s: %s", path, e.message)
                name = path.rsplit("/", 1)[-1]
                self.file_contents[path] = f"// Error loading {name}\n// {e.message}"
                continue
            self.file_contents[path] = record.contents
            logger.info("Loaded %s: %d bytes", path, len(record.contents))
        return dict(self.file_contents)

    def physical_path(self, path: str) -> str:
        """Physical path an editor path is stored under."""
        physical = self.resolver.to_physical(path, self.config.compiler.base_url)
        candidates = self.resolver.candidates(physical)
        if isinstance(self.provider, MemorySourceProvider):
            for candidate in candidates:
                if candidate in self.provider.files:
                    return candidate
        return candidates[0]

    def update_file(self, path: str, contents: str) -> str:
        """
        Store an editor buffer and invalidate the active backend's view of it.

        Returns:
            The physical path written

        Raises:
            TypeError: the provider is read-only
        """
        if not isinstance(self.provider, MemorySourceProvider):
            raise TypeError(f"{type(self.provider).__name__} does not accept edits")
        physical = self.physical_path(path)
        self.provider.write(physical, contents)
        self.file_contents[path] = contents
        if self.backend is not None:
            self.backend.invalidate(physical)
        return physical

    # -------------------------------------------------------------------------
    # Backend & compile
    # -------------------------------------------------------------------------

    def create_backend(self, name: str) -> CompilerBackend:
        return create_backend(
            name,
            self.provider,
            externals=self.externals,
            resolver=self.resolver,
            executor=self.executor,
        )

    async def switch_backend(self, name: Optional[str] = None) -> bool:
        """Create and initialize a backend, then recompile. Returns success."""
        name = name or self.config.compiler.backend
        self.set_status(STATUS_SWITCHING)
        try:
            backend = self.create_backend(name)
            await backend.initialize()
        except (CompileError, ValueError) as e:
            message = e.message if isinstance(e, CompileError) else str(e)
            logger.error("Compiler error: %s", message)
            self.set_status(STATUS_ERROR, "error")
            self.target.clear()
            self.target.append(error_panel(message, "Initialization Error"))
            return False
        self.backend = backend
        logger.info("Switched to %s backend", name)
        return await self.compile_application()

    def compile_options(self) -> CompileOptions:
        return CompileOptions(
            entry_point=self.config.compiler.entry_point,
            base_url=self.config.compiler.base_url,
            theme_colors=self.theme_colors,
        )

    async def compile_application(self) -> bool:
        """Compile and render with the active backend. Never raises CompileError."""
        self._generation += 1
        generation = self._generation
        self.set_status(STATUS_COMPILING)

        if self.backend is None:
            self.set_status(STATUS_ERROR, "error")
            return False

        try:
            await self.backend.compile_and_run(self.compile_options())
        except CompileError as e:
            if generation != self._generation:
                return False
            logger.error("Compile error: %s", e.message)
            self.set_status(STATUS_ERROR, "error")
            self.target.clear()
            self.target.append(error_panel(e.message))
            return False

        if generation != self._generation:
            return False
        self.set_status(STATUS_SUCCESS, "success")
        return True
