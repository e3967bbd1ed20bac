"""CLI module for guardrail."""
