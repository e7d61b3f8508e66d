"""Pytest configuration and fixtures."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from agent_battalion.core.models import CheckResult, CheckStatus, Issue, Severity, VerificationResult
from agent_battalion.orchestration.config import PipelineConfig

ENV_VARS = (
    "AB_MAX_REPAIR_ATTEMPTS",
    "AB_ESCALATE_ON_FAILURE",
    "AB_STAGE_TIMEOUT",
    "AB_CHECK_TIMEOUT",
    "AB_STATE_DIR",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep AB_* settings from the host environment out of tests."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Provide a temporary directory that is cleaned up after the test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def pipeline_config(temp_dir: Path) -> PipelineConfig:
    """Provide a config writing into a temporary output directory."""
    return PipelineConfig(
        prompt="A todo list with reminders",
        project_name="todo-app",
        output_dir=str(temp_dir / "output"),
    )


def make_check(
    name: str = "ESLint",
    status: CheckStatus = CheckStatus.PASS,
    severities: tuple[Severity, ...] = (),
) -> CheckResult:
    """Build a check result carrying one issue per given severity."""
    return CheckResult(
        name=name,
        status=status,
        issues=[Issue(severity=s, message=f"{s.value} issue") for s in severities],
        duration=1.0,
    )


def make_verification(*severities: Severity) -> VerificationResult:
    """Build a verification whose single check reports the given severities."""
    blocking = any(s in (Severity.HIGH, Severity.CRITICAL) for s in severities)
    status = CheckStatus.FAIL if blocking else CheckStatus.PASS
    return VerificationResult.from_checks([make_check(status=status, severities=severities)])


@pytest.fixture
def passing_verification() -> VerificationResult:
    """A verification with no issues."""
    return make_verification()


@pytest.fixture
def failing_verification() -> VerificationResult:
    """A verification with one high severity issue."""
    return make_verification(Severity.HIGH)
