"""
Contract Registry - static table of agent contracts and stage IO.

Maps each agent persona to the artifact types it may read and produce
and to its ownership level on each type. The tables are built once at
import time and exposed through read-only mappings; they must never be
mutated at runtime, which is what makes them safe to share across
concurrent runs.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from agent_battalion.core.models import ArtifactType, OwnershipLevel

SYSTEM_AGENT = "system"


@dataclass(frozen=True)
class ArtifactRef:
    """Reference to an artifact type an agent reads or writes."""

    type: ArtifactType
    required: bool = True


@dataclass(frozen=True)
class Ownership:
    """Ownership level an agent holds on one artifact type."""

    artifact_type: ArtifactType
    level: OwnershipLevel


@dataclass(frozen=True)
class AgentContract:
    """Inputs, outputs and ownership declared for an agent.

    ``invariants`` and ``forbidden_actions`` are documentation only;
    they are not mechanically checked.
    """

    agent_id: str
    inputs: tuple[ArtifactRef, ...] = ()
    outputs: tuple[ArtifactRef, ...] = ()
    invariants: tuple[str, ...] = ()
    forbidden_actions: tuple[str, ...] = ()
    ownership: tuple[Ownership, ...] = ()

    def level_for(self, artifact_type: ArtifactType) -> OwnershipLevel | None:
        """Return the declared ownership level for a type, if any."""
        for entry in self.ownership:
            if entry.artifact_type == artifact_type:
                return entry.level
        return None

    def required_inputs(self) -> tuple[ArtifactType, ...]:
        """Return the input types this agent cannot run without."""
        return tuple(ref.type for ref in self.inputs if ref.required)


@dataclass(frozen=True)
class StageIO:
    """Artifact types a pipeline stage requires and produces."""

    stage_name: str
    requires: tuple[ArtifactType, ...] = ()
    produces: tuple[ArtifactType, ...] = ()


def schema_ref(artifact_type: ArtifactType | str) -> str:
    """Return the logical JSON schema path for an artifact type."""
    return f"/schemas/{ArtifactType(artifact_type).value}.schema.json"


_A = ArtifactType
_OWNER = OwnershipLevel.OWNER

_CONTRACTS = (
    AgentContract(
        agent_id="alex_pm",
        outputs=(ArtifactRef(_A.PRD),),
        invariants=(
            "PRD must include clear acceptance criteria",
            "PRD must be validated against schema",
        ),
        forbidden_actions=(
            "Cannot modify architecture",
            "Cannot modify code",
        ),
        ownership=(Ownership(_A.PRD, _OWNER),),
    ),
    AgentContract(
        agent_id="sam_architect",
        inputs=(ArtifactRef(_A.PRD),),
        outputs=(ArtifactRef(_A.ARCHITECTURE), ArtifactRef(_A.API_CONTRACT)),
        invariants=(
            "Architecture must be consistent with PRD requirements",
            "API contract must follow RESTful principles",
        ),
        forbidden_actions=(
            "Cannot modify PRD",
            "Cannot implement code directly",
        ),
        ownership=(
            Ownership(_A.ARCHITECTURE, _OWNER),
            Ownership(_A.API_CONTRACT, _OWNER),
        ),
    ),
    AgentContract(
        agent_id="dana_designer",
        inputs=(ArtifactRef(_A.PRD), ArtifactRef(_A.ARCHITECTURE, required=False)),
        outputs=(ArtifactRef(_A.UI_SPEC),),
        invariants=(
            "UI spec must follow design system guidelines",
            "UI spec must be consistent with PRD",
        ),
        forbidden_actions=("Cannot modify backend implementation",),
        ownership=(Ownership(_A.UI_SPEC, _OWNER),),
    ),
    AgentContract(
        agent_id="frontend_engineer",
        inputs=(ArtifactRef(_A.UI_SPEC), ArtifactRef(_A.API_CONTRACT)),
        invariants=(
            "Code must match UI spec",
            "Code must integrate with API contract",
        ),
        forbidden_actions=(
            "Cannot modify API contract",
            "Cannot modify UI spec without approval",
        ),
    ),
    AgentContract(
        agent_id="backend_engineer",
        inputs=(ArtifactRef(_A.ARCHITECTURE), ArtifactRef(_A.API_CONTRACT)),
        outputs=(ArtifactRef(_A.BACKEND_SPEC),),
        invariants=(
            "Implementation must match architecture",
            "APIs must match contract",
        ),
        forbidden_actions=("Cannot modify architecture without approval",),
        ownership=(Ownership(_A.BACKEND_SPEC, _OWNER),),
    ),
    AgentContract(
        agent_id="mobile_engineer",
        inputs=(ArtifactRef(_A.UI_SPEC), ArtifactRef(_A.API_CONTRACT)),
        outputs=(ArtifactRef(_A.MOBILE_SPEC),),
        invariants=(
            "Mobile app must match UI spec",
            "Mobile app must integrate with API contract",
        ),
        forbidden_actions=("Cannot modify backend implementation",),
        ownership=(Ownership(_A.MOBILE_SPEC, _OWNER),),
    ),
    AgentContract(
        agent_id="security_analyst",
        inputs=(
            ArtifactRef(_A.ARCHITECTURE),
            ArtifactRef(_A.BACKEND_SPEC, required=False),
        ),
        outputs=(ArtifactRef(_A.SECURITY_REPORT),),
        invariants=("Security report must identify all critical vulnerabilities",),
        forbidden_actions=("Cannot modify code directly",),
        ownership=(Ownership(_A.SECURITY_REPORT, _OWNER),),
    ),
    AgentContract(
        agent_id="qa_engineer",
        inputs=(ArtifactRef(_A.PRD), ArtifactRef(_A.ARCHITECTURE, required=False)),
        outputs=(ArtifactRef(_A.TEST_PLAN),),
        invariants=("Test plan must cover all PRD requirements",),
        forbidden_actions=("Cannot modify implementation",),
        ownership=(Ownership(_A.TEST_PLAN, _OWNER),),
    ),
    AgentContract(
        agent_id=SYSTEM_AGENT,
        inputs=(ArtifactRef(_A.TEST_PLAN, required=False),),
        outputs=(ArtifactRef(_A.VERIFICATION_RESULT), ArtifactRef(_A.RUN_MANIFEST)),
        invariants=("Verification result reflects the latest check run",),
        forbidden_actions=("Cannot author design or planning artifacts",),
        ownership=(
            Ownership(_A.VERIFICATION_RESULT, _OWNER),
            Ownership(_A.RUN_MANIFEST, _OWNER),
        ),
    ),
)

AGENT_CONTRACTS: Mapping[str, AgentContract] = MappingProxyType(
    {contract.agent_id: contract for contract in _CONTRACTS}
)

STAGE_IO: tuple[StageIO, ...] = (
    StageIO("prd_creation", (), (_A.PRD,)),
    StageIO("architecture_design", (_A.PRD,), (_A.ARCHITECTURE, _A.API_CONTRACT)),
    StageIO("ui_design", (_A.PRD, _A.ARCHITECTURE), (_A.UI_SPEC,)),
    StageIO("backend_spec", (_A.ARCHITECTURE, _A.API_CONTRACT), (_A.BACKEND_SPEC,)),
    StageIO("mobile_spec", (_A.UI_SPEC, _A.API_CONTRACT), (_A.MOBILE_SPEC,)),
    StageIO("security_review", (_A.ARCHITECTURE, _A.BACKEND_SPEC), (_A.SECURITY_REPORT,)),
    StageIO("test_planning", (_A.PRD, _A.ARCHITECTURE), (_A.TEST_PLAN,)),
    StageIO("implementation", (_A.UI_SPEC, _A.BACKEND_SPEC, _A.API_CONTRACT), ()),
    StageIO("verification", (_A.TEST_PLAN,), (_A.VERIFICATION_RESULT,)),
    StageIO("manifest_generation", (_A.VERIFICATION_RESULT,), (_A.RUN_MANIFEST,)),
)


def get_contract(agent_id: str) -> AgentContract | None:
    """Get an agent contract by id."""
    return AGENT_CONTRACTS.get(agent_id)


def list_contracts() -> list[AgentContract]:
    """List all registered contracts."""
    return list(AGENT_CONTRACTS.values())


def owners_of(artifact_type: ArtifactType | str) -> list[str]:
    """Return ids of agents holding owner rights on an artifact type."""
    artifact_type = ArtifactType(artifact_type)
    return [
        contract.agent_id
        for contract in AGENT_CONTRACTS.values()
        if contract.level_for(artifact_type) == OwnershipLevel.OWNER
    ]


def get_stage_io(stage_name: str) -> StageIO | None:
    """Get the IO declaration for a named stage."""
    for stage in STAGE_IO:
        if stage.stage_name == stage_name:
            return stage
    return None
