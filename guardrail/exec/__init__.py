"""Guarded command execution."""

from guardrail.exec.types import (
    DEFAULT_ALLOWED_COMMANDS,
    PolicyConfig,
    ExecConfig,
    CommandRequest,
    PathCheckResult,
    ExecResult,
)
from guardrail.exec.safety import (
    get_program_name,
    is_command_authorized,
    extract_paths,
    is_path_authorized,
    check_path_security,
)
from guardrail.exec.policy import authorize_request, run_request
from guardrail.exec.executor import execute_command

__all__ = [
    "DEFAULT_ALLOWED_COMMANDS",
    "PolicyConfig",
    "ExecConfig",
    "CommandRequest",
    "PathCheckResult",
    "ExecResult",
    "get_program_name",
    "is_command_authorized",
    "extract_paths",
    "is_path_authorized",
    "check_path_security",
    "authorize_request",
    "run_request",
    "execute_command",
]
