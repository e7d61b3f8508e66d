"""
Agent collaborators invoked by the pipeline.

The pipeline reaches agents only through the AgentRunner protocol; how
an agent produces its payload (LLM call, template, human) is opaque.
StubAgentRunner returns minimal schema-valid payloads so a pipeline can
run end to end without any provider configured.
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from agent_battalion.core.models import ArtifactType

if TYPE_CHECKING:
    from agent_battalion.artifacts.store import RunStore
    from agent_battalion.orchestration.config import PipelineConfig
    from agent_battalion.orchestration.repair import RepairController
    from agent_battalion.verification.orchestrator import VerificationOrchestrator

logger = logging.getLogger(__name__)


@dataclass
class StageContext:
    """Everything a collaborator may consult during a run."""

    run_store: "RunStore"
    verifier: "VerificationOrchestrator"
    repair_controller: "RepairController"
    config: "PipelineConfig"

    @property
    def run_id(self) -> str:
        return self.run_store.run_id


class AgentRunner(Protocol):
    """Interface to the agents that produce artifacts and code."""

    async def run_agent_to_artifact(
        self, agent_id: str, artifact_type: ArtifactType, context: StageContext
    ) -> dict[str, Any]:
        """Produce the payload for one artifact type."""
        ...

    async def run_implementation_agents(self, context: StageContext) -> None:
        """Generate source files from the stored specs into the output dir."""
        ...


class StubAgentRunner:
    """Runner returning minimal valid artifacts and generating no code."""

    async def run_agent_to_artifact(
        self, agent_id: str, artifact_type: ArtifactType, context: StageContext
    ) -> dict[str, Any]:
        logger.info(f"Running agent {agent_id} to produce {artifact_type.value}")
        config = context.config

        match artifact_type:
            case ArtifactType.PRD:
                return {
                    "title": config.project_name,
                    "description": config.prompt,
                    "requirements": [],
                    "acceptanceCriteria": [],
                }
            case ArtifactType.ARCHITECTURE:
                return {"type": "jamstack", "components": [], "dataFlow": []}
            case ArtifactType.API_CONTRACT:
                return {"endpoints": [], "version": "1.0.0"}
            case ArtifactType.UI_SPEC:
                return {"pages": [], "components": [], "theme": {}}
            case ArtifactType.BACKEND_SPEC:
                return {"services": [], "database": {}}
            case ArtifactType.MOBILE_SPEC:
                return {"screens": [], "navigation": {}}
            case ArtifactType.SECURITY_REPORT:
                return {"vulnerabilities": [], "recommendations": []}
            case ArtifactType.TEST_PLAN:
                return {"testCases": [], "coverage": {}}
            case _:
                return {}

    async def run_implementation_agents(self, context: StageContext) -> None:
        logger.info(
            f"Running implementation agents for {context.config.project_name} "
            f"into {context.config.output_dir}"
        )
