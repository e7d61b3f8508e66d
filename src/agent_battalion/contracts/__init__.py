"""
Agent Battalion Contracts Module.

Provides the static contract registry, per-type artifact schemas and
the enforcement functions that guard every artifact write.
"""

__all__ = [
    "AGENT_CONTRACTS",
    "STAGE_IO",
    "SYSTEM_AGENT",
    "AgentContract",
    "ArtifactRef",
    "Ownership",
    "StageIO",
    "get_contract",
    "get_stage_io",
    "list_contracts",
    "owners_of",
    "schema_ref",
    # Schemas
    "ARTIFACT_SCHEMAS",
    "get_schema",
    # Enforcement
    "ArtifactValidation",
    "check_artifact",
    "check_stage_inputs",
    "enforce_ownership",
    "enforce_stage_inputs",
    "get_ownership_level",
    "has_ownership",
    "validate_artifact",
]

from agent_battalion.contracts.enforcement import (
    ArtifactValidation,
    check_artifact,
    check_stage_inputs,
    enforce_ownership,
    enforce_stage_inputs,
    get_ownership_level,
    has_ownership,
    validate_artifact,
)
from agent_battalion.contracts.registry import (
    AGENT_CONTRACTS,
    STAGE_IO,
    SYSTEM_AGENT,
    AgentContract,
    ArtifactRef,
    Ownership,
    StageIO,
    get_contract,
    get_stage_io,
    list_contracts,
    owners_of,
    schema_ref,
)
from agent_battalion.contracts.schemas import ARTIFACT_SCHEMAS, get_schema
