"""guardrail - allowlist-guarded command execution over stdio."""

__version__ = "0.1.0"
__logo__ = "🛡️"
