"""
Gate logic - decides whether verification results let a run continue.

Pure functions only: no state, no I/O.
"""

from agent_battalion.core.models import GateResult, GateStatus, VerificationResult


def gate_from_verification(verification: VerificationResult) -> GateResult:
    """
    Gate based on verification results.

    Fails if any check reports a high or critical issue; low and medium
    issues never block.
    """
    blocking = [
        issue
        for check in verification.checks
        for issue in check.issues
        if issue.is_blocking
    ]

    if blocking:
        return GateResult(
            status=GateStatus.FAIL,
            blocking=blocking,
            message=(
                f"Found {len(blocking)} blocking issue(s) with high or critical severity"
            ),
        )

    return GateResult(
        status=GateStatus.PASS,
        message="All verification checks passed or had only low/medium severity issues",
    )


def always_pass_gate() -> GateResult:
    """Gate that always passes."""
    return GateResult(status=GateStatus.PASS, message="Gate bypassed")


def always_fail_gate(reason: str = "Gate forced to fail") -> GateResult:
    """Gate that always fails."""
    return GateResult(status=GateStatus.FAIL, message=reason)
