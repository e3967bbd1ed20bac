"""Entry point for running guardrail as a module."""

from guardrail.cli.commands import app

if __name__ == "__main__":
    app()
