"""
Agent Battalion Core Module.

Provides foundational types and the exception hierarchy.
"""

__all__ = [
    "ArtifactType",
    "OwnershipLevel",
    "Severity",
    "CheckStatus",
    "GateStatus",
    "RunStatus",
    "Issue",
    "CheckResult",
    "VerificationResult",
    "VerificationSummary",
    "GateResult",
    "BLOCKING_SEVERITIES",
    # Exceptions
    "BattalionError",
    "ContractViolationError",
    "VerificationError",
    "RepairExhaustedError",
    "PipelineError",
    "StageTimeoutError",
    "ConfigurationError",
]

from agent_battalion.core.exceptions import (
    BattalionError,
    ConfigurationError,
    ContractViolationError,
    PipelineError,
    RepairExhaustedError,
    StageTimeoutError,
    VerificationError,
)
from agent_battalion.core.models import (
    BLOCKING_SEVERITIES,
    ArtifactType,
    CheckResult,
    CheckStatus,
    GateResult,
    GateStatus,
    Issue,
    OwnershipLevel,
    RunStatus,
    Severity,
    VerificationResult,
    VerificationSummary,
)
