"""
Agent Battalion Verification Module.

Runs build, lint, test, schema and security checks against a generated
project and aggregates their issues.
"""

__all__ = [
    "VerificationCheck",
    "StubCheck",
    "TypeScriptBuildCheck",
    "LintCheck",
    "UnitTestCheck",
    "APISchemaCheck",
    "SecurityScanCheck",
    "default_checks",
    "VerificationOrchestrator",
    "create_verification_orchestrator",
]

from agent_battalion.verification.checks import (
    APISchemaCheck,
    LintCheck,
    SecurityScanCheck,
    StubCheck,
    TypeScriptBuildCheck,
    UnitTestCheck,
    VerificationCheck,
    default_checks,
)
from agent_battalion.verification.orchestrator import (
    VerificationOrchestrator,
    create_verification_orchestrator,
)
