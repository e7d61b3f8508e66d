"""
Verification Orchestrator - runs every check and aggregates the result.

Checks run sequentially in registration order so logs are deterministic.
A check that raises or times out becomes a failing CheckResult instead of
aborting the pass, keeping the aggregate report complete.
"""

import asyncio
import logging
import time
from pathlib import Path

from agent_battalion.core.exceptions import VerificationError
from agent_battalion.core.models import (
    CheckResult,
    CheckStatus,
    Issue,
    Severity,
    VerificationResult,
)
from agent_battalion.verification.checks import VerificationCheck, default_checks

logger = logging.getLogger(__name__)


class VerificationOrchestrator:
    """Manages all verification checks for one generated project."""

    def __init__(
        self,
        project_path: Path | str,
        checks: list[VerificationCheck] | None = None,
        check_timeout: float | None = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            project_path: Root of the generated project
            checks: Checks to run, in order (default: the five standard checks)
            check_timeout: Per-check timeout in seconds (default: none)
        """
        self._project_path = Path(project_path)
        self._checks = list(checks) if checks is not None else default_checks()
        self._check_timeout = check_timeout

        names = [c.name for c in self._checks]
        if len(names) != len(set(names)):
            raise VerificationError(
                "Verification check names must be unique",
                details={"checks": names},
            )

    @property
    def project_path(self) -> Path:
        return self._project_path

    @property
    def check_names(self) -> list[str]:
        return [c.name for c in self._checks]

    async def run_all(self) -> VerificationResult:
        """Run every check and aggregate the results."""
        results = []
        for check in self._checks:
            results.append(await self._execute(check))

        verification = VerificationResult.from_checks(results)
        logger.info(
            f"Verification {verification.status.value}: "
            f"{verification.summary.passed}/{verification.summary.total} checks passed"
        )
        return verification

    async def run_check(self, check_name: str) -> CheckResult:
        """
        Run a single named check in isolation.

        Raises:
            VerificationError: If no check has that name
        """
        for check in self._checks:
            if check.name == check_name:
                return await self._execute(check)

        raise VerificationError(
            f"Unknown verification check: {check_name}",
            check_name=check_name,
            details={"available": self.check_names},
        )

    async def _execute(self, check: VerificationCheck) -> CheckResult:
        """Run one check, converting timeouts and errors into failures."""
        start_time = time.perf_counter()
        try:
            if self._check_timeout is not None:
                result = await asyncio.wait_for(
                    check.run(self._project_path), timeout=self._check_timeout
                )
            else:
                result = await check.run(self._project_path)
        except asyncio.TimeoutError:
            logger.warning(f"Check '{check.name}' timed out after {self._check_timeout}s")
            result = self._failure(
                check.name, f"Check timed out after {self._check_timeout}s"
            )
        except Exception as e:
            logger.warning(f"Check '{check.name}' raised {type(e).__name__}: {e}")
            result = self._failure(check.name, f"Check crashed: {e}")

        if result.duration is None:
            result = result.model_copy(
                update={"duration": (time.perf_counter() - start_time) * 1000}
            )

        logger.debug(f"Check '{check.name}': {result.status.value}")
        return result

    @staticmethod
    def _failure(check_name: str, message: str) -> CheckResult:
        return CheckResult(
            name=check_name,
            status=CheckStatus.FAIL,
            issues=[Issue(severity=Severity.HIGH, message=message)],
        )


def create_verification_orchestrator(
    project_path: Path | str,
    checks: list[VerificationCheck] | None = None,
    check_timeout: float | None = None,
) -> VerificationOrchestrator:
    """Create a new VerificationOrchestrator instance."""
    return VerificationOrchestrator(project_path, checks, check_timeout)
