"""
Base classes for external tool wrappers.
"""

from __future__ import annotations

import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass

from destream.exceptions import ToolNotFoundError


@dataclass
class ToolResult:
    """Result of a blocking tool invocation."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    error: str | None = None

    @classmethod
    def from_error(cls, error: str) -> ToolResult:
        """Create a failed result for a tool that could not run at all."""
        return cls(success=False, error=error, returncode=-1)


class VideoTool(ABC):
    """An external executable destream depends on."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name for logging and error messages."""

    @abstractmethod
    def get_path(self) -> str:
        """Path to the tool executable."""

    def run(self, args: list[str], timeout: float | None = None) -> ToolResult:
        """Run the tool to completion and capture its output."""
        cmd = [self.get_path(), *args]
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
        except subprocess.TimeoutExpired:
            return ToolResult.from_error(f"{self.name} timed out after {timeout}s")
        except OSError as e:
            return ToolResult.from_error(str(e))
        return ToolResult(
            success=result.returncode == 0,
            stdout=result.stdout,
            stderr=result.stderr,
            returncode=result.returncode,
        )

    def is_available(self) -> bool:
        """Check that the tool is installed and runs."""
        return self.run(["-version"], timeout=5).success

    def check_requirements(self) -> None:
        """Raise ToolNotFoundError if the tool is missing."""
        if not self.is_available():
            raise ToolNotFoundError(self.name)
