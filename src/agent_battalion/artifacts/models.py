"""
Pydantic models for run-scoped artifact storage.

Defines the stored artifact record and the run manifest produced at the
end of every pipeline run.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from agent_battalion.core.models import ArtifactType, RunStatus


def utc_now() -> str:
    """Return the current time as an ISO timestamp in UTC."""
    return datetime.now(timezone.utc).isoformat()


class StoredArtifact(BaseModel):
    """Complete artifact record held by a RunStore."""

    type: ArtifactType = Field(description="Type of artifact")
    data: Any = Field(description="Opaque artifact payload")
    created_by: str = Field(description="Agent that last wrote the artifact")
    created_at: str = Field(
        default_factory=utc_now, description="ISO timestamp of first write"
    )
    updated_at: str = Field(
        default_factory=utc_now, description="ISO timestamp of last write"
    )
    version: int = Field(default=1, ge=1, description="Bumped on every overwrite")

    def metadata(self) -> dict[str, Any]:
        """Return every field except the payload."""
        return self.model_dump(exclude={"data"})


class RunManifest(BaseModel):
    """Summary record of a run's artifact set and status."""

    run_id: str = Field(description="Run identifier")
    artifacts: list[ArtifactType] = Field(
        default_factory=list, description="Stored artifact types, in write order"
    )
    created_at: str = Field(description="ISO timestamp of run creation")
    status: RunStatus = Field(description="Run status when the manifest was built")
    completed_at: str | None = Field(
        default=None, description="ISO timestamp the run finished"
    )
    versions: dict[str, int] = Field(
        default_factory=dict, description="Artifact type -> stored version"
    )
    error: str | None = Field(default=None, description="Failure reason, if any")

    def to_artifact(self) -> dict[str, Any]:
        """Return the JSON-compatible payload stored as an artifact."""
        return self.model_dump(mode="json")
