"""Command and path authorization.

Both checks are best-effort heuristics over the raw command text. They do not
parse shell grammar: quoting with embedded spaces, variable expansion, globbing
and command substitution are not understood. Only the first token of a command
is checked against the allowlist, so chained commands (``ls && rm -rf /``) are
authorized by their leading program.
"""

import os
from typing import Iterator

from guardrail.exec.types import PathCheckResult, PolicyConfig

# Operators whose following token is a redirection target, not a checked path
REDIRECTION_OPERATORS = frozenset([">", ">>", "<"])

PIPE_OPERATOR = "|"

QUOTE_CHARS = ('"', "'")

# Markers that make a bare word look like a filesystem path
PATH_MARKERS = ("/", os.sep, ".")


def get_program_name(command: str) -> str:
    """Return the first whitespace-delimited token of a command."""
    parts = command.split()
    return parts[0] if parts else ""


def is_command_authorized(command: str, config: PolicyConfig) -> bool:
    """Check if the command's program name is in the allowlist.

    No path normalization: ``/usr/bin/git`` is not ``git``.
    """
    return get_program_name(command) in config.allowed_commands


def _strip_quotes(token: str) -> str:
    """Strip one matching pair of surrounding quotes."""
    if len(token) >= 2 and token[0] in QUOTE_CHARS and token[-1] == token[0]:
        return token[1:-1]
    return token


def looks_like_path(token: str) -> bool:
    """Check if a bare word could name a file: has a separator or dot, or starts with ~."""
    return token.startswith("~") or any(marker in token for marker in PATH_MARKERS)


def extract_paths(command: str) -> Iterator[str]:
    """
    Yield candidate path tokens from a command.

    Skips the program name, flags (``-x``, ``--long``), pipes, and redirection
    operators together with their target. Remaining tokens that look like
    paths are candidates; flag values are not paired with their flag, so the
    ``out.txt`` in ``-o out.txt`` is reported too. Plain words such as
    ``status`` are not.
    """
    tokens = command.split()[1:]
    skip_next = False

    for token in tokens:
        if skip_next:
            skip_next = False
            continue
        if token.startswith("-"):
            continue
        if token in REDIRECTION_OPERATORS:
            skip_next = True
            continue
        if token == PIPE_OPERATOR:
            continue
        candidate = _strip_quotes(token)
        if looks_like_path(candidate):
            yield candidate


def is_path_authorized(path: str, config: PolicyConfig) -> bool:
    """
    Check if a path lies under one of the allowed roots.

    Normalization is textual only; symlinks and the working directory are
    not consulted. Matches must fall on a separator boundary, so ``/tmp2``
    is not under ``/tmp``.
    """
    normalized = os.path.normpath(path)

    for root in config.allowed_paths:
        allowed = os.path.normpath(root)
        if normalized == allowed:
            return True
        prefix = allowed if allowed.endswith(os.sep) else allowed + os.sep
        if normalized.startswith(prefix):
            return True

    return False


def check_path_security(command: str, config: PolicyConfig) -> PathCheckResult:
    """Check every candidate path in a command against the allowed roots."""
    if not config.allowed_paths:
        return PathCheckResult(authorized=True)

    unauthorized = [
        path for path in extract_paths(command)
        if not is_path_authorized(path, config)
    ]

    return PathCheckResult(
        authorized=not unauthorized,
        unauthorized_paths=unauthorized,
    )
