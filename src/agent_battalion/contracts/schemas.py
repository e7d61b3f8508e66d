"""
Pydantic schemas for each artifact type.

One model per ArtifactType, registered in ARTIFACT_SCHEMAS. Payloads are
checked for field presence and types; unknown fields are kept so agents
may enrich artifacts without a schema change. Agents emit camelCase keys,
so aliases are accepted alongside the snake_case field names.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agent_battalion.core.models import (
    ArtifactType,
    CheckResult,
    CheckStatus,
    RunStatus,
    Severity,
    VerificationSummary,
)


class ArtifactSchema(BaseModel):
    """Base for artifact payload schemas."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class PRDSchema(ArtifactSchema):
    title: str = Field(min_length=1)
    description: str
    requirements: list[Any] = Field(default_factory=list)
    acceptance_criteria: list[Any] = Field(
        default_factory=list, alias="acceptanceCriteria"
    )


class ArchitectureSchema(ArtifactSchema):
    type: str = Field(min_length=1, description="Architecture style, e.g. jamstack")
    components: list[Any] = Field(default_factory=list)
    data_flow: list[Any] = Field(default_factory=list, alias="dataFlow")


class EndpointSchema(ArtifactSchema):
    method: str
    path: str
    description: str | None = None


class APIContractSchema(ArtifactSchema):
    endpoints: list[EndpointSchema] = Field(default_factory=list)
    version: str = "1.0.0"


class UISpecSchema(ArtifactSchema):
    pages: list[Any] = Field(default_factory=list)
    components: list[Any] = Field(default_factory=list)
    theme: dict[str, Any] = Field(default_factory=dict)


class BackendSpecSchema(ArtifactSchema):
    services: list[Any] = Field(default_factory=list)
    database: dict[str, Any] = Field(default_factory=dict)


class MobileSpecSchema(ArtifactSchema):
    screens: list[Any] = Field(default_factory=list)
    navigation: dict[str, Any] = Field(default_factory=dict)


class VulnerabilitySchema(ArtifactSchema):
    severity: Severity
    description: str


class SecurityReportSchema(ArtifactSchema):
    vulnerabilities: list[VulnerabilitySchema] = Field(default_factory=list)
    recommendations: list[Any] = Field(default_factory=list)


class TestPlanSchema(ArtifactSchema):
    test_cases: list[Any] = Field(default_factory=list, alias="testCases")
    coverage: dict[str, Any] = Field(default_factory=dict)


class VerificationResultSchema(ArtifactSchema):
    status: CheckStatus
    checks: list[CheckResult]
    summary: VerificationSummary


class RunManifestSchema(ArtifactSchema):
    run_id: str = Field(alias="runId")
    artifacts: list[ArtifactType]
    created_at: str = Field(alias="createdAt")
    status: RunStatus


ARTIFACT_SCHEMAS: dict[ArtifactType, type[ArtifactSchema]] = {
    ArtifactType.PRD: PRDSchema,
    ArtifactType.ARCHITECTURE: ArchitectureSchema,
    ArtifactType.API_CONTRACT: APIContractSchema,
    ArtifactType.UI_SPEC: UISpecSchema,
    ArtifactType.BACKEND_SPEC: BackendSpecSchema,
    ArtifactType.MOBILE_SPEC: MobileSpecSchema,
    ArtifactType.SECURITY_REPORT: SecurityReportSchema,
    ArtifactType.TEST_PLAN: TestPlanSchema,
    ArtifactType.VERIFICATION_RESULT: VerificationResultSchema,
    ArtifactType.RUN_MANIFEST: RunManifestSchema,
}


def get_schema(artifact_type: ArtifactType | str) -> type[ArtifactSchema]:
    """Return the schema model registered for an artifact type."""
    return ARTIFACT_SCHEMAS[ArtifactType(artifact_type)]
