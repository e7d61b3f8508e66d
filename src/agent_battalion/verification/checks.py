"""
Verification checks run against a generated project.

Each check is a small class with a ``name`` and an async ``run``. The
default checks report a clean pass: building, linting and testing the
generated code happens in an external sandbox, which plugs in here by
supplying its own check objects.
"""

from pathlib import Path
from typing import Protocol, runtime_checkable

from agent_battalion.core.models import CheckResult, CheckStatus


@runtime_checkable
class VerificationCheck(Protocol):
    """A single verification dimension."""

    name: str

    async def run(self, project_path: Path) -> CheckResult:
        """Run the check against the project and report issues."""
        ...


class StubCheck:
    """Check that always passes with a fixed nominal duration."""

    name = "Stub"
    nominal_duration_ms: float = 0.0

    async def run(self, project_path: Path) -> CheckResult:
        return CheckResult(
            name=self.name,
            status=CheckStatus.PASS,
            issues=[],
            duration=self.nominal_duration_ms,
        )


class TypeScriptBuildCheck(StubCheck):
    name = "TypeScript Build"
    nominal_duration_ms = 1000.0


class LintCheck(StubCheck):
    name = "ESLint"
    nominal_duration_ms = 500.0


class UnitTestCheck(StubCheck):
    name = "Unit Tests"
    nominal_duration_ms = 2000.0


class APISchemaCheck(StubCheck):
    name = "API Schema Validation"
    nominal_duration_ms = 300.0


class SecurityScanCheck(StubCheck):
    name = "Security Scan"
    nominal_duration_ms = 1500.0


def default_checks() -> list[VerificationCheck]:
    """Return the standard checks in their fixed run order."""
    return [
        TypeScriptBuildCheck(),
        LintCheck(),
        UnitTestCheck(),
        APISchemaCheck(),
        SecurityScanCheck(),
    ]
