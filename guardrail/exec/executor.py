"""Command executor with timeout and output capture."""

import asyncio
import os
import signal
import time

from loguru import logger

from guardrail.exec.types import CommandRequest, ExecConfig, ExecResult


def resolve_timeout_ms(request: CommandRequest, config: ExecConfig) -> int:
    """Pick the effective timeout, clamped to the configured maximum."""
    timeout = request.timeout or config.default_timeout_ms
    if timeout > config.max_timeout_ms:
        logger.debug(f"Timeout {timeout}ms clamped to {config.max_timeout_ms}ms")
        timeout = config.max_timeout_ms
    return timeout


def _truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + f"\n... (truncated, {len(text)} total chars)"
    return text


def _kill_process_group(process: asyncio.subprocess.Process) -> None:
    """Kill the shell and every child it started; children hold the output pipes."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


async def execute_command(request: CommandRequest, config: ExecConfig) -> ExecResult:
    """
    Execute an already-authorized command through the system shell.

    Failures are reported in the result, never raised.
    """
    timeout_ms = resolve_timeout_ms(request, config)
    start = time.monotonic()

    try:
        process = await asyncio.create_subprocess_shell(
            request.command,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
    except OSError as e:
        logger.error(f"Command execution error: {request.command}: {e}")
        return ExecResult(success=False, error=f"Error: {e}")

    try:
        stdout, stderr = await asyncio.wait_for(
            process.communicate(),
            timeout=timeout_ms / 1000,
        )
    except asyncio.TimeoutError:
        _kill_process_group(process)
        await process.wait()
        logger.error(f"Command timed out after {timeout_ms}ms: {request.command}")
        return ExecResult(
            success=False,
            exit_code=-1,
            error=f"Error: Command execution timed out ({timeout_ms}ms)",
            timed_out=True,
        )

    elapsed_ms = int((time.monotonic() - start) * 1000)
    logger.info(f"Command execution completed: {request.command}, execution time: {elapsed_ms}ms")

    stdout_str = _truncate(stdout.decode("utf-8", errors="replace"), config.max_output_chars)
    stderr_str = _truncate(stderr.decode("utf-8", errors="replace"), config.max_output_chars)

    if process.returncode != 0:
        return ExecResult(
            success=False,
            exit_code=process.returncode,
            stdout=stdout_str,
            stderr=stderr_str,
            error=f"Error: Command failed with exit code {process.returncode}",
            execution_time_ms=elapsed_ms,
        )

    return ExecResult(
        success=True,
        exit_code=0,
        stdout=stdout_str,
        stderr=stderr_str,
        execution_time_ms=elapsed_ms,
    )
