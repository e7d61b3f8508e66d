"""
Agent Battalion Exception Hierarchy.

Defines all custom exceptions used across the orchestration core.
Verification issues are data, not exceptions; only contract violations,
repair exhaustion and stage failures raise.
"""

from typing import Any


class BattalionError(Exception):
    """
    Base exception for all Agent Battalion errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a BattalionError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ContractViolationError(BattalionError):
    """
    Raised when an artifact write breaks an agent contract.

    Covers:
    - Artifact data failing structural or schema validation
    - Overwrites attempted without owner rights
    - Writes by agents holding read-only access
    - Missing required stage inputs

    Always fatal to the current stage; never retried by the enforcer.
    """

    def __init__(
        self,
        message: str,
        *,
        agent_id: str | None = None,
        artifact_type: str | None = None,
        rule: str | None = None,
        validation_errors: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ContractViolationError.

        Args:
            message: Human-readable error message
            agent_id: Agent that attempted the write
            artifact_type: Artifact type involved
            rule: Identifier of the violated rule
            validation_errors: Individual schema errors, as "path: message"
            details: Optional structured data for debugging
        """
        details = details or {}
        if agent_id:
            details["agent_id"] = agent_id
        if artifact_type:
            details["artifact_type"] = artifact_type
        if rule:
            details["rule"] = rule

        super().__init__(message, details=details)
        self.agent_id = agent_id
        self.artifact_type = artifact_type
        self.rule = rule
        self.validation_errors = validation_errors or []


class VerificationError(BattalionError):
    """Raised when a verification check cannot be located or configured."""

    def __init__(
        self,
        message: str,
        *,
        check_name: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if check_name:
            details["check_name"] = check_name
        super().__init__(message, details=details)
        self.check_name = check_name


class RepairExhaustedError(BattalionError):
    """
    Raised when the repair loop runs out of attempts and escalation is on.

    Carries the attempt count and the blocking issue messages that were
    never resolved.
    """

    def __init__(
        self,
        message: str,
        *,
        attempts: int = 0,
        blocking: list[str] | None = None,
    ):
        super().__init__(message, details={"attempts": attempts})
        self.attempts = attempts
        self.blocking = blocking or []


class PipelineError(BattalionError):
    """
    Errors raised by the pipeline orchestrator itself.

    Raised when:
    - A stage is misconfigured
    - A stage exceeds its timeout
    """

    def __init__(
        self,
        message: str,
        *,
        stage: str | None = None,
        run_id: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a PipelineError.

        Args:
            message: Human-readable error message
            stage: Name of the stage that failed
            run_id: Run the stage belonged to
            details: Optional structured data for debugging
        """
        details = details or {}
        if stage:
            details["stage"] = stage
        if run_id:
            details["run_id"] = run_id

        super().__init__(message, details=details)
        self.stage = stage
        self.run_id = run_id


class StageTimeoutError(PipelineError):
    """Raised when a stage does not finish within the configured timeout."""

    def __init__(
        self,
        message: str,
        *,
        timeout: float,
        **kwargs,
    ):
        details = kwargs.pop("details", {}) or {}
        details["timeout_seconds"] = timeout
        kwargs["details"] = details

        super().__init__(message, **kwargs)
        self.timeout = timeout


class ConfigurationError(BattalionError):
    """
    Configuration-related errors.

    Raised when environment variables or explicit settings hold
    values that cannot be parsed or are out of range.
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if env_var:
            details["env_var"] = env_var
        if config_key:
            details["config_key"] = config_key

        super().__init__(message, details=details)
        self.env_var = env_var
        self.config_key = config_key


def format_exception(error: BaseException) -> str:
    """
    Format an exception for user-friendly display.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, BattalionError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"
