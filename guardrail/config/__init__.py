"""Configuration module for guardrail."""

from guardrail.config.loader import load_config, parse_list
from guardrail.config.schema import GuardrailSettings

__all__ = ["GuardrailSettings", "load_config", "parse_list"]
