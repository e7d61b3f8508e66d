"""
State Manager - persistent cross-run history.

Stores:
- One record per pipeline run
- A global index of run ids, newest first

Artifacts themselves live with the generated project, under
<output_dir>/.battalion/<run_id>/.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from agent_battalion.core.models import RunStatus
from agent_battalion.orchestration.config import PipelineConfig, get_state_dir_override
from agent_battalion.orchestration.pipeline import PipelineResult

logger = logging.getLogger(__name__)

ARTIFACT_DIR_NAME = ".battalion"
MAX_INDEXED_RUNS = 1000


class RunRecord(BaseModel):
    """Record of a pipeline run."""

    run_id: str
    project_name: str
    prompt: str
    output_dir: str
    status: RunStatus
    started_at: str
    completed_at: str | None = None
    execution_time_ms: float | None = None
    artifacts: list[str] = Field(default_factory=list)
    error: str | None = None
    repair_attempts: int = 0
    gate_status: str | None = None

    def to_summary(self) -> dict[str, Any]:
        """Convert to summary for listing."""
        return {
            "run_id": self.run_id,
            "project": self.project_name,
            "status": self.status.value,
            "started_at": self.started_at,
            "artifacts": len(self.artifacts),
            "duration_ms": self.execution_time_ms,
        }


class StateManager:
    """
    Manager for persistent run history.

    State is stored in var/state/ (or AB_STATE_DIR):
    - runs/<run_id>.json - Individual run records
    - index.json - Global index
    """

    def __init__(self, state_dir: Path | None = None):
        """Initialize state manager with storage directory."""
        override = get_state_dir_override()
        self._state_dir = Path(state_dir or override or "var/state")
        self._runs_dir = self._state_dir / "runs"
        self._index_file = self._state_dir / "index.json"

        self._runs_dir.mkdir(parents=True, exist_ok=True)
        self._index = self._load_index()

    @property
    def state_dir(self) -> Path:
        return self._state_dir

    def _load_index(self) -> dict[str, Any]:
        """Load global index."""
        if self._index_file.exists():
            try:
                return json.loads(self._index_file.read_text())
            except json.JSONDecodeError:
                logger.warning(f"Ignoring corrupt state index at {self._index_file}")
        return {"runs": []}

    def _save_index(self) -> None:
        """Save global index."""
        self._index_file.write_text(json.dumps(self._index, indent=2))

    def record_run(self, config: PipelineConfig, result: PipelineResult) -> RunRecord:
        """
        Record a pipeline run.

        Creates a RunRecord from the result, saves it, and puts it at the
        head of the index.
        """
        manifest = result.manifest
        record = RunRecord(
            run_id=result.run_id,
            project_name=config.project_name,
            prompt=config.prompt,
            output_dir=str(Path(config.output_dir).absolute()),
            status=manifest.status,
            started_at=manifest.created_at,
            completed_at=manifest.completed_at,
            execution_time_ms=sum(s.duration_ms or 0 for s in result.stage_results),
            artifacts=[t.value for t in result.artifacts],
            error=result.error,
            repair_attempts=result.repair.attempts if result.repair else 0,
            gate_status=result.gate.status.value if result.gate else None,
        )

        run_file = self._runs_dir / f"{record.run_id}.json"
        run_file.write_text(record.model_dump_json(indent=2))

        runs = self._index.setdefault("runs", [])
        if record.run_id in runs:
            runs.remove(record.run_id)
        runs.insert(0, record.run_id)
        self._index["runs"] = runs[:MAX_INDEXED_RUNS]
        self._save_index()

        logger.debug(f"Recorded run {record.run_id} in {self._state_dir}")
        return record

    def get_run(self, run_id: str) -> RunRecord | None:
        """Get a run record by ID."""
        run_file = self._runs_dir / f"{run_id}.json"
        if run_file.exists():
            try:
                return RunRecord.model_validate_json(run_file.read_text())
            except ValueError:
                logger.warning(f"Ignoring unreadable run record {run_file}")
        return None

    def list_runs(self, limit: int = 50) -> list[RunRecord]:
        """List recent runs, newest first."""
        runs = []
        for run_id in self._index.get("runs", [])[:limit]:
            run = self.get_run(run_id)
            if run:
                runs.append(run)
        return runs

    def cleanup_old_runs(self, keep_count: int = 100) -> int:
        """Remove old run records, keeping the most recent."""
        run_ids = self._index.get("runs", [])
        to_remove = run_ids[keep_count:]

        removed = 0
        for run_id in to_remove:
            run_file = self._runs_dir / f"{run_id}.json"
            if run_file.exists():
                run_file.unlink()
                removed += 1

        self._index["runs"] = run_ids[:keep_count]
        self._save_index()

        return removed

    def persist_artifacts(self, result: PipelineResult, output_dir: Path | str) -> Path:
        """
        Write every artifact of a run to disk as JSON.

        Returns:
            The run's artifact directory, <output_dir>/.battalion/<run_id>
        """
        run_dir = Path(output_dir) / ARTIFACT_DIR_NAME / result.run_id
        run_dir.mkdir(parents=True, exist_ok=True)

        for artifact_type, data in result.artifacts.items():
            (run_dir / f"{artifact_type.value}.json").write_text(json.dumps(data, indent=2))

        # A failed run never stores its own manifest artifact
        (run_dir / "manifest.json").write_text(result.manifest.model_dump_json(indent=2))
        (run_dir / "result.json").write_text(
            json.dumps(
                {
                    "success": result.success,
                    "error": result.error,
                    "persisted_at": datetime.now(timezone.utc).isoformat(),
                },
                indent=2,
            )
        )

        logger.info(f"Persisted {len(result.artifacts)} artifact(s) to {run_dir}")
        return run_dir

