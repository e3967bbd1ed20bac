"""Dispatch policy: ordered authorization checks before execution."""

from loguru import logger

from guardrail.exec.executor import execute_command
from guardrail.exec.safety import check_path_security, is_command_authorized
from guardrail.exec.types import CommandRequest, ExecConfig, ExecResult, PolicyConfig

NO_PATHS_MARKER = "(none specified)"


def command_denied_message(command: str, config: PolicyConfig) -> str:
    """Message for a command whose program is not allowlisted."""
    allowed = ", ".join(sorted(config.allowed_commands))
    return (
        f"Error: The specified command is not allowed: {command}\n"
        f"Allowed commands: {allowed}"
    )


def paths_denied_message(unauthorized_paths: list[str], config: PolicyConfig) -> str:
    """Message for a command that touches paths outside the allowed roots."""
    allowed = ", ".join(config.allowed_paths) or NO_PATHS_MARKER
    return (
        f"Error: The command contains unauthorized paths: {', '.join(unauthorized_paths)}\n"
        f"Allowed paths: {allowed}"
    )


def authorize_request(request: CommandRequest, config: PolicyConfig) -> ExecResult | None:
    """
    Authorize a request without executing it.

    The command check runs first and a rejection there ends evaluation, so
    path roots are only disclosed to callers using an allowed program.

    Returns a denied ExecResult, or None if the request may run.
    """
    if not is_command_authorized(request.command, config):
        logger.warning(f"Unauthorized command requested: {request.command}")
        return ExecResult(
            success=False,
            denied=True,
            error=command_denied_message(request.command, config),
        )

    path_check = check_path_security(request.command, config)
    if not path_check.authorized:
        logger.warning(
            f"Unauthorized paths requested: {', '.join(path_check.unauthorized_paths)} "
            f"(command: {request.command})"
        )
        return ExecResult(
            success=False,
            denied=True,
            error=paths_denied_message(path_check.unauthorized_paths, config),
        )

    return None


async def run_request(
    request: CommandRequest,
    config: PolicyConfig,
    exec_config: ExecConfig,
) -> ExecResult:
    """Authorize a request and execute it if permitted."""
    denied = authorize_request(request, config)
    if denied is not None:
        return denied

    logger.info(f"Executing command: {request.command}")
    return await execute_command(request, exec_config)
