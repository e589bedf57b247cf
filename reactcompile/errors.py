"""
Error taxonomy — Every failure a compile can surface

Entry-path failures propagate to the host as a single message.
Dependency-path failures are downgraded to warnings by the backend
that hits them (see TranspileOnlyBackend).

Hierarchy:
    CompileError
      InitializationError   engine failed to load / backend not initialized
      ResolutionError       specifier cannot be mapped to a CanonicalPath
        SourceNotFoundError no candidate extension exists
      TransformError        syntax transform rejected the input
      NetworkError          SourceProvider transport failure
      ExecutionError        entry cannot run (errors thrown inside the frame render there)
      SandboxPolicyError    refused sandbox capability combination
"""

from typing import Any, Dict, Optional


class CompileError(Exception):
    """Base class for everything the compiler core raises."""

    kind = "compile"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize for display panels and JSON output."""
        return {"kind": self.kind, "message": self.message}


class InitializationError(CompileError):
    """Engine could not be loaded. The build cannot proceed."""

    kind = "initialization"


class ResolutionError(CompileError):
    """A specifier could not be mapped to a CanonicalPath."""

    kind = "resolution"

    def __init__(self, message: str, specifier: str = "", importer: Optional[str] = None):
        self.specifier = specifier
        self.importer = importer
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["specifier"] = self.specifier
        data["importer"] = self.importer
        return data


class SourceNotFoundError(ResolutionError):
    """No candidate extension exists for a path under the base location."""

    kind = "not_found"


class TransformError(CompileError):
    """The syntax transform rejected a file."""

    kind = "transform"

    def __init__(
        self,
        message: str,
        path: str = "",
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.path = path
        self.line = line
        self.column = column
        super().__init__(message)

    @property
    def location(self) -> str:
        if self.line is None:
            return self.path
        return f"{self.path}:{self.line}:{self.column or 0}"

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({"path": self.path, "line": self.line, "column": self.column})
        return data


class NetworkError(CompileError):
    """A SourceProvider fetch failed for a reason other than not-found."""

    kind = "network"

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(message)


class ExecutionError(CompileError):
    """
    The entry cannot be executed.

    Throws inside the isolated frame never reach the host; they render into
    the frame itself. Host-side, this covers results the executor refuses.
    """

    kind = "execution"


class SandboxPolicyError(CompileError, ValueError):
    """A sandbox capability set would break the isolation contract."""

    kind = "sandbox_policy"
