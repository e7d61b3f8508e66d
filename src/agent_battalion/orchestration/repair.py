"""
Repair Controller - bounded self-correction after a failed gate.

The controller does not know how to fix anything. It drives a
RepairStrategy, whose single method remediates and re-verifies, and
stops on the first passing verification or once attempts run out.

State machine: idle -> repairing -> repaired | escalated | exhausted.
"""

import inspect
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Protocol, Union, runtime_checkable

from agent_battalion.core.exceptions import RepairExhaustedError
from agent_battalion.core.models import CheckStatus, GateResult, VerificationResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_RETRIES = 3


@runtime_checkable
class RepairStrategy(Protocol):
    """Capability that remediates a project and re-verifies it."""

    async def attempt_repair(self) -> VerificationResult:
        ...


RepairFn = Callable[[], Awaitable[VerificationResult]]


class CallableRepairStrategy:
    """Adapts a plain async callable to the RepairStrategy protocol."""

    def __init__(self, repair_fn: RepairFn):
        if not callable(repair_fn):
            raise TypeError("repair_fn must be callable")
        self._repair_fn = repair_fn

    async def attempt_repair(self) -> VerificationResult:
        result = self._repair_fn()
        if inspect.isawaitable(result):
            result = await result
        return result


class RepairState(Enum):
    """States of one controller's remediation attempts."""

    IDLE = "idle"
    REPAIRING = "repairing"
    REPAIRED = "repaired"
    ESCALATED = "escalated"
    EXHAUSTED = "exhausted"


@dataclass
class RepairOptions:
    """Retry bound and escalation policy."""

    max_retries: int = DEFAULT_MAX_RETRIES
    escalate_on_failure: bool = True

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")


@dataclass
class RepairResult:
    """Outcome of a repair loop."""

    success: bool
    attempts: int
    final_verification: VerificationResult | None = None
    error: str | None = None


def _as_strategy(
    repair: Union[RepairStrategy, RepairFn, None],
) -> RepairStrategy | None:
    if repair is None:
        return None
    # Checked on the type: instance lookup succeeds on any Mock
    if hasattr(type(repair), "attempt_repair"):
        return repair
    return CallableRepairStrategy(repair)


class RepairController:
    """Manages the repair loop for a single run's failed verification."""

    def __init__(
        self,
        max_retries: int | None = None,
        escalate_on_failure: bool = True,
    ):
        """
        Initialize the controller.

        Args:
            max_retries: Attempts before giving up (default: 3)
            escalate_on_failure: Raise on exhaustion instead of returning
                a failed RepairResult
        """
        self._options = RepairOptions(
            max_retries=DEFAULT_MAX_RETRIES if max_retries is None else max_retries,
            escalate_on_failure=escalate_on_failure,
        )
        self._state = RepairState.IDLE
        self._attempts = 0

    @property
    def state(self) -> RepairState:
        return self._state

    @property
    def attempts(self) -> int:
        return self._attempts

    async def repair_until_pass_or_escalate(
        self,
        gate_result: GateResult,
        current_verification: VerificationResult,
        repair: Union[RepairStrategy, RepairFn, None] = None,
    ) -> RepairResult:
        """
        Attempt repairs until verification passes or retries run out.

        Args:
            gate_result: Gate decision for the current verification
            current_verification: The verification that failed the gate
            repair: Strategy (or async callable) that remediates and
                re-verifies; without one nothing can be attempted

        Returns:
            RepairResult describing the outcome

        Raises:
            RepairExhaustedError: If retries are exhausted and escalation
                is enabled
        """
        self._attempts = 0
        last_verification = current_verification

        if gate_result.passed:
            self._state = RepairState.IDLE
            return RepairResult(
                success=True, attempts=0, final_verification=current_verification
            )

        strategy = _as_strategy(repair)
        if strategy is None:
            logger.warning("Gate failed but no repair strategy is configured")
        else:
            self._state = RepairState.REPAIRING
            while self._attempts < self._options.max_retries:
                self._attempts += 1
                logger.info(
                    f"Repair attempt {self._attempts}/{self._options.max_retries}"
                )

                try:
                    last_verification = await strategy.attempt_repair()
                except Exception as e:
                    logger.warning(
                        f"Repair attempt {self._attempts} failed: {e}", exc_info=True
                    )
                    continue

                if last_verification.status == CheckStatus.PASS:
                    self._state = RepairState.REPAIRED
                    logger.info(f"Repair succeeded after {self._attempts} attempt(s)")
                    return RepairResult(
                        success=True,
                        attempts=self._attempts,
                        final_verification=last_verification,
                    )

        blocking = [issue.message for issue in gate_result.blocking]

        if self._options.escalate_on_failure:
            self._state = RepairState.ESCALATED
            raise RepairExhaustedError(
                f"Verification failed after {self._attempts} repair attempt(s). "
                f"Blocking issues: {'; '.join(blocking) or 'Unknown'}",
                attempts=self._attempts,
                blocking=blocking,
            )

        self._state = RepairState.EXHAUSTED
        return RepairResult(
            success=False,
            attempts=self._attempts,
            final_verification=last_verification,
            error="Max repair attempts exceeded",
        )

    def get_options(self) -> RepairOptions:
        """Return a copy of the repair options."""
        return RepairOptions(
            max_retries=self._options.max_retries,
            escalate_on_failure=self._options.escalate_on_failure,
        )

    def set_max_retries(self, max_retries: int) -> None:
        """Change the retry bound for subsequent loops."""
        self._options = RepairOptions(
            max_retries=max_retries,
            escalate_on_failure=self._options.escalate_on_failure,
        )


def create_repair_controller(
    max_retries: int | None = None, escalate_on_failure: bool = True
) -> RepairController:
    """Create a new RepairController instance."""
    return RepairController(max_retries, escalate_on_failure)
