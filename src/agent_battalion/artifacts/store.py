"""
Run-scoped artifact store.

Holds at most one artifact per type for a single pipeline run, with
version tracking on overwrite. The store never rejects a write; callers
run contract enforcement first.
"""

import logging
import threading
import uuid
from typing import Any

from agent_battalion.artifacts.models import RunManifest, StoredArtifact, utc_now
from agent_battalion.contracts.registry import get_contract
from agent_battalion.core.models import ArtifactType, OwnershipLevel, RunStatus

logger = logging.getLogger(__name__)


def _as_artifact_type(value: ArtifactType | str) -> ArtifactType | None:
    try:
        return ArtifactType(value)
    except ValueError:
        return None


class RunStore:
    """
    In-memory artifact storage for one pipeline run.

    Keyed by artifact type, so a run cannot hold two artifacts of the
    same type. Reads always observe the latest write. A re-entrant lock
    serialises access when collaborators touch the store from worker
    threads.
    """

    def __init__(self, run_id: str | None = None):
        """
        Initialize an empty store.

        Args:
            run_id: Run identifier (default: a fresh UUID4)
        """
        self._run_id = run_id or str(uuid.uuid4())
        self._created_at = utc_now()
        self._completed_at: str | None = None
        self._status = RunStatus.IN_PROGRESS
        self._error: str | None = None
        self._artifacts: dict[ArtifactType, StoredArtifact] = {}
        self._lock = threading.RLock()

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def created_at(self) -> str:
        return self._created_at

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def error(self) -> str | None:
        return self._error

    def put(self, artifact_type: ArtifactType | str, data: Any, created_by: str) -> StoredArtifact:
        """
        Store an artifact, replacing any previous value entirely.

        A first write creates version 1; each overwrite keeps the original
        creation time and bumps the version by one. The payload is stored
        as given.

        Raises:
            ValueError: If artifact_type is not a known artifact type name
        """
        artifact_type = ArtifactType(artifact_type)
        with self._lock:
            existing = self._artifacts.get(artifact_type)
            now = utc_now()
            artifact = StoredArtifact(
                type=artifact_type,
                data=data,
                created_by=created_by,
                created_at=existing.created_at if existing else now,
                updated_at=now,
                version=existing.version + 1 if existing else 1,
            )
            self._artifacts[artifact_type] = artifact

        logger.debug(
            f"Run {self._run_id}: stored {artifact_type.value} "
            f"v{artifact.version} from {created_by}"
        )
        return artifact

    def get(self, artifact_type: ArtifactType | str) -> Any | None:
        """Retrieve an artifact's data, or None if it was never written."""
        artifact = self._lookup(artifact_type)
        return artifact.data if artifact else None

    def has(self, artifact_type: ArtifactType | str) -> bool:
        """Check if an artifact of this type exists in the run."""
        return self._lookup(artifact_type) is not None

    def get_access(
        self, agent_id: str, artifact_type: ArtifactType | str
    ) -> OwnershipLevel:
        """
        Get the access level an agent holds on an artifact type.

        Reads the static contract registry; unknown agents and undeclared
        types default to read-only.
        """
        contract = get_contract(agent_id)
        known = _as_artifact_type(artifact_type)
        if contract is None or known is None:
            return OwnershipLevel.READ_ONLY
        return contract.level_for(known) or OwnershipLevel.READ_ONLY

    def get_all(self) -> dict[ArtifactType, Any]:
        """Return a copy of every artifact's data, in write order."""
        with self._lock:
            return {t: a.data for t, a in self._artifacts.items()}

    def get_metadata(self, artifact_type: ArtifactType | str) -> dict[str, Any] | None:
        """Return an artifact's record without its data."""
        artifact = self._lookup(artifact_type)
        return artifact.metadata() if artifact else None

    def get_version(self, artifact_type: ArtifactType | str) -> int:
        """Return the stored version of an artifact, 0 if absent."""
        artifact = self._lookup(artifact_type)
        return artifact.version if artifact else 0

    def mark_complete(self) -> None:
        """Record that the run finished successfully."""
        self._status = RunStatus.COMPLETE
        self._completed_at = utc_now()

    def mark_failed(self, error: str) -> None:
        """Record that the run failed, with the reason."""
        self._status = RunStatus.FAILED
        self._error = error
        self._completed_at = utc_now()

    def build_manifest(self) -> RunManifest:
        """Build a manifest of every artifact currently in this run."""
        with self._lock:
            return RunManifest(
                run_id=self._run_id,
                artifacts=list(self._artifacts.keys()),
                created_at=self._created_at,
                status=self._status,
                completed_at=self._completed_at,
                versions={t.value: a.version for t, a in self._artifacts.items()},
                error=self._error,
            )

    def clear(self) -> None:
        """Drop every artifact and return the run to in-progress."""
        with self._lock:
            self._artifacts.clear()
            self._status = RunStatus.IN_PROGRESS
            self._error = None
            self._completed_at = None

    def _lookup(self, artifact_type: ArtifactType | str) -> StoredArtifact | None:
        known = _as_artifact_type(artifact_type)
        if known is None:
            return None
        with self._lock:
            return self._artifacts.get(known)

    def __len__(self) -> int:
        with self._lock:
            return len(self._artifacts)


def create_run_store(run_id: str | None = None) -> RunStore:
    """Create a new RunStore instance."""
    return RunStore(run_id)
