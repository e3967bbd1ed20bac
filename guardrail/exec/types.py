"""Type definitions for guarded command execution."""

from dataclasses import dataclass, field
from typing import Any

# Commands allowed when none are configured
DEFAULT_ALLOWED_COMMANDS = (
    "git",
    "ls",
    "mkdir",
    "cd",
    "npm",
    "npx",
    "python",
)


@dataclass(frozen=True)
class PolicyConfig:
    """Immutable authorization policy, built once at startup."""
    allowed_commands: frozenset[str] = frozenset(DEFAULT_ALLOWED_COMMANDS)
    allowed_paths: tuple[str, ...] = ()  # empty = no path restriction

    @classmethod
    def build(cls, allowed_commands, allowed_paths=()) -> "PolicyConfig":
        """Freeze arbitrary iterables into a policy."""
        return cls(
            allowed_commands=frozenset(allowed_commands),
            allowed_paths=tuple(allowed_paths),
        )


@dataclass
class ExecConfig:
    """Configuration for command execution."""
    default_timeout_ms: int = 30_000
    max_timeout_ms: int = 600_000
    max_output_chars: int = 200_000  # 200KB


@dataclass
class CommandRequest:
    """A request to execute a command."""
    command: str
    timeout: int | None = None  # milliseconds


@dataclass
class PathCheckResult:
    """Outcome of checking every path in a command."""
    authorized: bool
    unauthorized_paths: list[str] = field(default_factory=list)


@dataclass
class ExecResult:
    """Result of command dispatch or execution."""
    success: bool
    exit_code: int | None = None
    stdout: str = ""
    stderr: str = ""
    error: str | None = None
    timed_out: bool = False
    denied: bool = False
    execution_time_ms: int | None = None

    def to_content(self) -> dict[str, Any]:
        """Render as an MCP tool result."""
        content: list[dict[str, str]] = []
        if self.error:
            text = self.error
            if self.stderr:
                text += f"\n{self.stderr}"
            content.append({"type": "text", "text": text})
        else:
            if self.stdout:
                content.append({"type": "text", "text": self.stdout})
            if self.stderr:
                content.append({"type": "text", "text": f"stderr: {self.stderr}"})

        return {
            "content": content,
            "isError": not self.success,
        }
