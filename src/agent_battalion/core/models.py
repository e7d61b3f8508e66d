"""
Core data models for Agent Battalion.

Enumerations shared by every layer plus the verification result
schemas consumed by the gate and the repair loop.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ArtifactType(str, Enum):
    """Closed set of artifact types a run can hold, one of each at most."""

    PRD = "prd"
    ARCHITECTURE = "architecture"
    API_CONTRACT = "api_contract"
    UI_SPEC = "ui_spec"
    BACKEND_SPEC = "backend_spec"
    MOBILE_SPEC = "mobile_spec"
    SECURITY_REPORT = "security_report"
    TEST_PLAN = "test_plan"
    VERIFICATION_RESULT = "verification_result"
    RUN_MANIFEST = "run_manifest"


class OwnershipLevel(str, Enum):
    """Write privilege an agent holds on an artifact type."""

    OWNER = "owner"
    PROPOSE_ONLY = "propose-only"
    READ_ONLY = "read-only"


class Severity(str, Enum):
    """Severity of a verification issue."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


BLOCKING_SEVERITIES = frozenset({Severity.HIGH, Severity.CRITICAL})


class CheckStatus(str, Enum):
    """Outcome of a single verification check."""

    PASS = "pass"
    FAIL = "fail"
    SKIP = "skip"


class GateStatus(str, Enum):
    """Outcome of the verification gate."""

    PASS = "pass"
    FAIL = "fail"


class RunStatus(str, Enum):
    """Lifecycle status of a pipeline run."""

    IN_PROGRESS = "in-progress"
    COMPLETE = "complete"
    FAILED = "failed"


class Issue(BaseModel):
    """A single problem reported by a verification check."""

    severity: Severity
    message: str
    file: str | None = None
    line: int | None = None
    column: int | None = None

    @property
    def is_blocking(self) -> bool:
        """Return True if this issue should block the gate."""
        return self.severity in BLOCKING_SEVERITIES


class CheckResult(BaseModel):
    """Result of one named verification check."""

    name: str
    status: CheckStatus
    issues: list[Issue] = Field(default_factory=list)
    duration: float | None = Field(default=None, description="Duration in ms")


class VerificationSummary(BaseModel):
    """Counts of check outcomes."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0


class VerificationResult(BaseModel):
    """Aggregate of every check run against the generated project."""

    status: CheckStatus
    checks: list[CheckResult] = Field(default_factory=list)
    summary: VerificationSummary = Field(default_factory=VerificationSummary)

    @classmethod
    def from_checks(cls, checks: list[CheckResult]) -> "VerificationResult":
        """Aggregate check results; fails if any check failed."""
        passed = sum(1 for c in checks if c.status == CheckStatus.PASS)
        failed = sum(1 for c in checks if c.status == CheckStatus.FAIL)
        skipped = sum(1 for c in checks if c.status == CheckStatus.SKIP)

        return cls(
            status=CheckStatus.FAIL if failed else CheckStatus.PASS,
            checks=list(checks),
            summary=VerificationSummary(
                total=len(checks),
                passed=passed,
                failed=failed,
                skipped=skipped,
            ),
        )

    def all_issues(self) -> list[Issue]:
        """Return issues from every check, in check order."""
        return [issue for check in self.checks for issue in check.issues]

    def failed_checks(self) -> list[CheckResult]:
        """Return checks whose status is fail."""
        return [c for c in self.checks if c.status == CheckStatus.FAIL]

    def to_artifact(self) -> dict[str, Any]:
        """Return the JSON-compatible payload stored as an artifact."""
        return self.model_dump(mode="json")


class GateResult(BaseModel):
    """Pass/fail decision derived from a verification result."""

    status: GateStatus
    blocking: list[Issue] = Field(default_factory=list)
    message: str | None = None

    @property
    def passed(self) -> bool:
        """Return True if the gate let the run continue."""
        return self.status == GateStatus.PASS
