"""Configuration schema using Pydantic."""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from guardrail.exec.types import DEFAULT_ALLOWED_COMMANDS, ExecConfig, PolicyConfig


class ExecToolConfig(BaseModel):
    """Command execution configuration."""
    default_timeout_ms: int = Field(default=30_000, gt=0)  # 30 seconds
    max_timeout_ms: int = Field(default=600_000, gt=0)  # 10 minutes
    max_output_chars: int = Field(default=200_000, gt=0)  # 200KB

    def to_exec_config(self) -> ExecConfig:
        return ExecConfig(
            default_timeout_ms=self.default_timeout_ms,
            max_timeout_ms=self.max_timeout_ms,
            max_output_chars=self.max_output_chars,
        )


class GuardrailSettings(BaseSettings):
    """Root configuration for guardrail."""
    allowed_commands: list[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_COMMANDS))
    allowed_paths: list[str] = Field(default_factory=list)  # empty = unrestricted
    exec: ExecToolConfig = Field(default_factory=ExecToolConfig)

    model_config = SettingsConfigDict(
        env_prefix="GUARDRAIL_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    def to_policy(self) -> PolicyConfig:
        """Freeze the allowlists into an immutable policy."""
        return PolicyConfig.build(self.allowed_commands, self.allowed_paths)
