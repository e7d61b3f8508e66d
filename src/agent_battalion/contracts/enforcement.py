"""
Contract Enforcement - artifact validation and ownership rules.

Invoked by the pipeline before any artifact is persisted. Every
violation raises ContractViolationError; nothing here retries.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from agent_battalion.contracts.registry import get_contract
from agent_battalion.contracts.schemas import get_schema
from agent_battalion.core.exceptions import ContractViolationError
from agent_battalion.core.models import ArtifactType, OwnershipLevel

if TYPE_CHECKING:
    from agent_battalion.artifacts.store import RunStore

logger = logging.getLogger(__name__)


@dataclass
class ArtifactValidation:
    """Outcome of validating one artifact payload."""

    valid: bool
    errors: list[str] = field(default_factory=list)


def _format_pydantic_errors(error: ValidationError) -> list[str]:
    """Render pydantic errors as "/path: message" strings."""
    messages = []
    for item in error.errors():
        path = "/" + "/".join(str(part) for part in item["loc"])
        messages.append(f"{path}: {item['msg']}")
    return messages


def check_artifact(artifact_type: ArtifactType | str, data: Any) -> ArtifactValidation:
    """
    Validate artifact data against its type schema without raising.

    The payload must first be a mapping; it is then validated against
    the pydantic schema registered for the type.
    """
    if data is None or not isinstance(data, Mapping):
        return ArtifactValidation(
            valid=False, errors=["/: Artifact data must be an object"]
        )

    schema = get_schema(artifact_type)
    try:
        schema.model_validate(dict(data))
    except ValidationError as e:
        return ArtifactValidation(valid=False, errors=_format_pydantic_errors(e))

    return ArtifactValidation(valid=True)


def validate_artifact(artifact_type: ArtifactType | str, data: Any) -> None:
    """
    Validate an artifact against its schema.

    Raises:
        ContractViolationError: If the data is not an object or does not
            satisfy the type's schema
    """
    artifact_type = ArtifactType(artifact_type)
    result = check_artifact(artifact_type, data)

    if not result.valid:
        messages = "; ".join(result.errors) or "Unknown error"
        raise ContractViolationError(
            f"Artifact validation failed for type '{artifact_type.value}': {messages}",
            artifact_type=artifact_type.value,
            rule="schema",
            validation_errors=result.errors,
        )


def get_ownership_level(
    agent_id: str, artifact_type: ArtifactType | str
) -> OwnershipLevel | None:
    """Get the ownership level an agent declares for an artifact type."""
    contract = get_contract(agent_id)
    if contract is None:
        return None
    return contract.level_for(ArtifactType(artifact_type))


def has_ownership(agent_id: str, artifact_type: ArtifactType | str) -> bool:
    """Check if an agent has owner rights on an artifact type."""
    return get_ownership_level(agent_id, artifact_type) == OwnershipLevel.OWNER


def enforce_ownership(
    agent_id: str, artifact_type: ArtifactType | str, is_overwrite: bool
) -> None:
    """
    Enforce ownership rules before writing an artifact.

    Overwriting an existing artifact requires owner rights. Creating one
    is only refused to agents that explicitly hold read-only access.

    Raises:
        ContractViolationError: If the write is not permitted
    """
    artifact_type = ArtifactType(artifact_type)

    if is_overwrite and not has_ownership(agent_id, artifact_type):
        raise ContractViolationError(
            f"Agent '{agent_id}' does not have owner rights to overwrite "
            f"artifact type '{artifact_type.value}'",
            agent_id=agent_id,
            artifact_type=artifact_type.value,
            rule="overwrite_requires_owner",
        )

    level = get_ownership_level(agent_id, artifact_type)
    if level == OwnershipLevel.READ_ONLY:
        raise ContractViolationError(
            f"Agent '{agent_id}' has read-only access to artifact type "
            f"'{artifact_type.value}'",
            agent_id=agent_id,
            artifact_type=artifact_type.value,
            rule="read_only",
        )

    if level is None:
        logger.debug(
            f"Agent '{agent_id}' creating '{artifact_type.value}' without declared access"
        )


def check_stage_inputs(agent_id: str, store: "RunStore") -> list[ArtifactType]:
    """Return required inputs of an agent's contract missing from the store."""
    contract = get_contract(agent_id)
    if contract is None:
        return []
    return [t for t in contract.required_inputs() if not store.has(t)]


def enforce_stage_inputs(agent_id: str, store: "RunStore") -> None:
    """
    Ensure every required input of the agent's contract has been produced.

    Raises:
        ContractViolationError: If any required input is missing
    """
    missing = check_stage_inputs(agent_id, store)
    if missing:
        names = ", ".join(t.value for t in missing)
        raise ContractViolationError(
            f"Agent '{agent_id}' is missing required inputs: {names}",
            agent_id=agent_id,
            rule="required_inputs",
            details={"missing": [t.value for t in missing]},
        )
