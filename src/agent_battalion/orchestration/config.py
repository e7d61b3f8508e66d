"""
Pipeline configuration.

The only external inputs a run needs, plus tuning read from AB_*
environment variables. Explicit overrides win over the environment.
"""

import os
from typing import Any

from pydantic import BaseModel, Field

from agent_battalion.core.exceptions import ConfigurationError

ENV_MAX_REPAIR_ATTEMPTS = "AB_MAX_REPAIR_ATTEMPTS"
ENV_ESCALATE_ON_FAILURE = "AB_ESCALATE_ON_FAILURE"
ENV_STAGE_TIMEOUT = "AB_STAGE_TIMEOUT"
ENV_CHECK_TIMEOUT = "AB_CHECK_TIMEOUT"
ENV_STATE_DIR = "AB_STATE_DIR"


def _env_int(name: str) -> int | None:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be an integer, got '{value}'", env_var=name
        ) from None
    if parsed < 0:
        raise ConfigurationError(f"{name} must be >= 0", env_var=name)
    return parsed


def _env_float(name: str) -> float | None:
    value = os.getenv(name, "").strip()
    if not value:
        return None
    try:
        parsed = float(value)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be a number of seconds, got '{value}'", env_var=name
        ) from None
    if parsed <= 0:
        raise ConfigurationError(f"{name} must be > 0", env_var=name)
    return parsed


def _env_bool(name: str) -> bool | None:
    value = os.getenv(name, "").strip().lower()
    if not value:
        return None
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{name} must be a boolean, got '{value}'", env_var=name)


class PipelineConfig(BaseModel):
    """Inputs required to start a pipeline run."""

    prompt: str = Field(description="Natural-language app description")
    project_name: str = Field(description="Name of the generated project")
    output_dir: str = Field(description="Directory the generated code is written to")
    max_repair_attempts: int = Field(default=3, ge=0)
    escalate_on_failure: bool = Field(
        default=True, description="Fail the run when repairs are exhausted"
    )
    stage_timeout: float | None = Field(
        default=None, gt=0, description="Per-stage timeout in seconds"
    )
    check_timeout: float | None = Field(
        default=None, gt=0, description="Per-verification-check timeout in seconds"
    )

    @classmethod
    def from_env(cls, **overrides: Any) -> "PipelineConfig":
        """
        Build a config from AB_* environment variables.

        Keyword overrides that are not None take precedence.

        Raises:
            ConfigurationError: If an environment value cannot be parsed
        """
        values: dict[str, Any] = {
            "max_repair_attempts": _env_int(ENV_MAX_REPAIR_ATTEMPTS),
            "escalate_on_failure": _env_bool(ENV_ESCALATE_ON_FAILURE),
            "stage_timeout": _env_float(ENV_STAGE_TIMEOUT),
            "check_timeout": _env_float(ENV_CHECK_TIMEOUT),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**{k: v for k, v in values.items() if v is not None})


def get_state_dir_override() -> str | None:
    """Return the AB_STATE_DIR override, if set."""
    return os.getenv(ENV_STATE_DIR) or None
