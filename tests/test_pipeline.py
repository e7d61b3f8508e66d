"""Tests for the pipeline orchestrator."""

import asyncio
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from agent_battalion.artifacts.store import RunStore
from agent_battalion.contracts.registry import SYSTEM_AGENT
from agent_battalion.core.models import (
    ArtifactType,
    CheckStatus,
    GateStatus,
    RunStatus,
    Severity,
    VerificationResult,
)
from agent_battalion.orchestration.agents import StageContext, StubAgentRunner
from agent_battalion.orchestration.config import PipelineConfig
from agent_battalion.orchestration.pipeline import (
    Pipeline,
    PipelineDefinition,
    StageDefinition,
    StageKind,
    StageResult,
    StageStatus,
    create_app_pipeline,
    pipeline_summary,
)
from conftest import make_verification

EARLY_ARTIFACTS = [
    ArtifactType.PRD,
    ArtifactType.ARCHITECTURE,
    ArtifactType.API_CONTRACT,
    ArtifactType.UI_SPEC,
    ArtifactType.BACKEND_SPEC,
]


class FailingAtRunner(StubAgentRunner):
    """Runner whose given agent raises."""

    def __init__(self, agent_id: str):
        self.agent_id = agent_id

    async def run_agent_to_artifact(
        self, agent_id: str, artifact_type: ArtifactType, context: StageContext
    ) -> dict[str, Any]:
        if agent_id == self.agent_id:
            raise RuntimeError(f"{agent_id} crashed")
        return await super().run_agent_to_artifact(agent_id, artifact_type, context)


class BlockingRunner(StubAgentRunner):
    """Runner that hangs while producing the PRD."""

    def __init__(self) -> None:
        self.started = asyncio.Event()
        self.store: RunStore | None = None

    async def run_agent_to_artifact(
        self, agent_id: str, artifact_type: ArtifactType, context: StageContext
    ) -> dict[str, Any]:
        self.store = context.run_store
        self.started.set()
        await asyncio.sleep(10)
        return {}


def mock_verifier(result: VerificationResult) -> MagicMock:
    verifier = MagicMock()
    verifier.run_all = AsyncMock(return_value=result)
    return verifier


class TestPipelineDefinition:
    """Tests for the stage list."""

    def test_create_app_stages(self) -> None:
        """The standard pipeline has ten stages in fixed order."""
        definition = PipelineDefinition.create_app()
        assert [s.name for s in definition.stages] == [
            "prd_creation",
            "architecture_design",
            "ui_design",
            "backend_spec",
            "mobile_spec",
            "security_review",
            "test_planning",
            "implementation",
            "verification",
            "manifest_generation",
        ]

    def test_stage_agents(self) -> None:
        """Each artifact stage names its authoring agent."""
        stages = {s.name: s for s in PipelineDefinition.create_app().stages}
        assert stages["prd_creation"].agent_id == "alex_pm"
        assert stages["architecture_design"].produces == (
            ArtifactType.ARCHITECTURE,
            ArtifactType.API_CONTRACT,
        )
        assert stages["implementation"].kind == StageKind.IMPLEMENTATION
        assert stages["verification"].agent_id == SYSTEM_AGENT

    def test_every_type_produced_once(self) -> None:
        """Across all stages, every artifact type is produced exactly once."""
        produced = [t for s in PipelineDefinition.create_app().stages for t in s.produces]
        assert sorted(produced) == sorted(ArtifactType)


class TestPipelineRun:
    """End-to-end pipeline runs."""

    @pytest.mark.asyncio
    async def test_successful_run(self, pipeline_config: PipelineConfig) -> None:
        """A clean run completes with all ten artifact types."""
        result = await create_app_pipeline(pipeline_config)

        assert result.success is True
        assert result.error is None
        assert result.manifest.status == RunStatus.COMPLETE
        assert set(result.artifacts) == set(ArtifactType)
        assert result.manifest.run_id == result.run_id
        assert result.gate.status == GateStatus.PASS
        assert result.repair is None

    @pytest.mark.asyncio
    async def test_prd_uses_config(self, pipeline_config: PipelineConfig) -> None:
        """The stub PRD carries the project name and prompt."""
        result = await create_app_pipeline(pipeline_config)
        prd = result.artifacts[ArtifactType.PRD]
        assert prd["title"] == "todo-app"
        assert prd["description"] == "A todo list with reminders"

    @pytest.mark.asyncio
    async def test_stage_results(self, pipeline_config: PipelineConfig) -> None:
        """Every stage reports completion to the callback."""
        seen: list[StageResult] = []
        pipeline = Pipeline(pipeline_config, on_stage_complete=seen.append)

        result = await pipeline.run()

        assert [s.name for s in seen] == [s.name for s in pipeline.definition.stages]
        assert all(s.status == StageStatus.COMPLETED for s in seen)
        assert seen[1].artifacts == [ArtifactType.ARCHITECTURE, ArtifactType.API_CONTRACT]
        assert result.stage_results == seen

    @pytest.mark.asyncio
    async def test_low_severity_issues_do_not_trigger_repair(
        self, pipeline_config: PipelineConfig
    ) -> None:
        """Only low-severity issues pass the gate and repair is never called."""
        repair = AsyncMock()
        verifier = mock_verifier(make_verification(Severity.LOW, Severity.MEDIUM))

        result = await create_app_pipeline(pipeline_config, verifier=verifier, repair=repair)

        assert result.success
        assert result.manifest.status == RunStatus.COMPLETE
        repair.assert_not_called()

    @pytest.mark.asyncio
    async def test_run_id(self, pipeline_config: PipelineConfig) -> None:
        """An explicit run id is used."""
        result = await Pipeline(pipeline_config).run(run_id="run-42")
        assert result.run_id == "run-42"

    @pytest.mark.asyncio
    async def test_independent_runs(self, pipeline_config: PipelineConfig) -> None:
        """Concurrent runs do not share state."""
        first, second = await asyncio.gather(
            create_app_pipeline(pipeline_config), create_app_pipeline(pipeline_config)
        )
        assert first.success and second.success
        assert first.run_id != second.run_id

    @pytest.mark.asyncio
    async def test_implementation_agents_called(self, pipeline_config: PipelineConfig) -> None:
        """The implementation stage delegates to the runner."""
        runner = StubAgentRunner()
        runner.run_implementation_agents = AsyncMock()  # type: ignore[method-assign]

        await create_app_pipeline(pipeline_config, runner=runner)

        runner.run_implementation_agents.assert_awaited_once()
        context = runner.run_implementation_agents.await_args.args[0]
        assert context.config is pipeline_config

    @pytest.mark.asyncio
    async def test_definition_without_manifest_stage(
        self, pipeline_config: PipelineConfig
    ) -> None:
        """A custom pipeline with no manifest stage still returns a manifest."""
        definition = PipelineDefinition(
            name="prd-only",
            description="Write the PRD and stop",
            stages=[
                StageDefinition("prd_creation", StageKind.ARTIFACT, "alex_pm", (ArtifactType.PRD,)),
            ],
        )

        result = await Pipeline(pipeline_config, definition=definition).run()

        assert result.success is True
        assert result.manifest.status == RunStatus.COMPLETE
        assert result.manifest.artifacts == [ArtifactType.PRD]
        assert result.manifest.completed_at is not None
        assert ArtifactType.RUN_MANIFEST not in result.artifacts


class TestPipelineFailures:
    """Failure handling keeps partial results."""

    @pytest.mark.asyncio
    async def test_failure_preserves_earlier_artifacts(
        self, pipeline_config: PipelineConfig
    ) -> None:
        """A crash in mobile_spec keeps artifacts from earlier stages."""
        result = await create_app_pipeline(
            pipeline_config, runner=FailingAtRunner("mobile_engineer")
        )

        assert result.success is False
        assert "mobile_engineer crashed" in result.error
        assert list(result.artifacts) == EARLY_ARTIFACTS
        assert result.manifest.status == RunStatus.FAILED
        assert result.manifest.error == result.error
        assert result.manifest.artifacts == EARLY_ARTIFACTS
        assert result.stage_results[-1].name == "mobile_spec"
        assert result.stage_results[-1].status == StageStatus.FAILED

    @pytest.mark.asyncio
    async def test_invalid_artifact_fails_run(self, pipeline_config: PipelineConfig) -> None:
        """Schema violations abort the run before the artifact is stored."""
        runner = StubAgentRunner()
        runner.run_agent_to_artifact = AsyncMock(return_value={"description": "no title"})  # type: ignore[method-assign]

        result = await create_app_pipeline(pipeline_config, runner=runner)

        assert result.success is False
        assert "Artifact validation failed for type 'prd'" in result.error
        assert result.artifacts == {}

    @pytest.mark.asyncio
    async def test_ownership_violation_fails_run(
        self, pipeline_config: PipelineConfig
    ) -> None:
        """An agent overwriting an artifact it does not own aborts the run."""
        definition = PipelineDefinition(
            name="rogue",
            description="architect rewrites the PRD",
            stages=[
                StageDefinition("prd_creation", StageKind.ARTIFACT, "alex_pm", (ArtifactType.PRD,)),
                StageDefinition(
                    "rewrite", StageKind.ARTIFACT, "sam_architect", (ArtifactType.PRD,)
                ),
            ],
        )

        result = await Pipeline(pipeline_config, definition=definition).run()

        assert result.success is False
        assert "does not have owner rights" in result.error
        assert result.stage_results[-1].name == "rewrite"

    @pytest.mark.asyncio
    async def test_missing_inputs_fail_run(self, pipeline_config: PipelineConfig) -> None:
        """A stage whose agent lacks required inputs fails."""
        definition = PipelineDefinition(
            name="out_of_order",
            description="backend before architecture",
            stages=[
                StageDefinition(
                    "backend_spec",
                    StageKind.ARTIFACT,
                    "backend_engineer",
                    (ArtifactType.BACKEND_SPEC,),
                ),
            ],
        )

        result = await Pipeline(pipeline_config, definition=definition).run()

        assert result.success is False
        assert "missing required inputs" in result.error

    @pytest.mark.asyncio
    async def test_stage_timeout(self, pipeline_config: PipelineConfig) -> None:
        """A stage exceeding the timeout fails the run."""
        config = pipeline_config.model_copy(update={"stage_timeout": 0.05})

        result = await create_app_pipeline(config, runner=BlockingRunner())

        assert result.success is False
        assert "Stage 'prd_creation' exceeded" in result.error
        assert result.manifest.status == RunStatus.FAILED

    @pytest.mark.asyncio
    async def test_cancellation_marks_failed(self, pipeline_config: PipelineConfig) -> None:
        """Cancelling a run marks it failed and propagates."""
        runner = BlockingRunner()
        task = asyncio.create_task(create_app_pipeline(pipeline_config, runner=runner))
        await runner.started.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert runner.store is not None
        assert runner.store.status == RunStatus.FAILED
        assert "cancelled" in runner.store.error


class TestPipelineRepair:
    """Gate and repair behaviour inside a run."""

    @pytest.mark.asyncio
    async def test_repair_success_overwrites_verification(
        self, pipeline_config: PipelineConfig, failing_verification: VerificationResult
    ) -> None:
        """A successful repair stores the passing verification as a new version."""
        passing = make_verification(Severity.LOW)
        repair = AsyncMock(return_value=passing)
        pipeline = Pipeline(
            pipeline_config,
            verifier=mock_verifier(failing_verification),
            repair=repair,
        )
        result = await pipeline.run()

        assert result.success
        assert result.gate.status == GateStatus.FAIL
        assert result.repair.success
        assert result.repair.attempts == 1
        assert result.artifacts[ArtifactType.VERIFICATION_RESULT]["status"] == "pass"
        assert result.manifest.versions["verification_result"] == 2

    @pytest.mark.asyncio
    async def test_repair_exhausted_fails_run(
        self, pipeline_config: PipelineConfig, failing_verification: VerificationResult
    ) -> None:
        """Exhausted repairs with escalation abort the run."""
        config = pipeline_config.model_copy(update={"max_repair_attempts": 2})
        repair = AsyncMock(return_value=failing_verification)

        result = await create_app_pipeline(
            config, verifier=mock_verifier(failing_verification), repair=repair
        )

        assert result.success is False
        assert "Verification failed after 2 repair attempt(s)" in result.error
        assert repair.await_count == 2
        assert result.repair.success is False
        assert result.repair.attempts == 2
        assert ArtifactType.VERIFICATION_RESULT in result.artifacts
        assert ArtifactType.RUN_MANIFEST not in result.artifacts
        assert result.manifest.status == RunStatus.FAILED

    @pytest.mark.asyncio
    async def test_repair_exhausted_without_escalation(
        self, pipeline_config: PipelineConfig, failing_verification: VerificationResult
    ) -> None:
        """Without escalation the run completes and reports the failed repair."""
        config = pipeline_config.model_copy(
            update={"max_repair_attempts": 1, "escalate_on_failure": False}
        )

        result = await create_app_pipeline(
            config,
            verifier=mock_verifier(failing_verification),
            repair=AsyncMock(return_value=failing_verification),
        )

        assert result.success is True
        assert result.repair.success is False
        assert result.repair.error == "Max repair attempts exceeded"
        assert result.artifacts[ArtifactType.VERIFICATION_RESULT]["status"] == CheckStatus.FAIL.value


class TestPipelineSummary:
    """Tests for summaries and serialisation."""

    @pytest.mark.asyncio
    async def test_summary_success(self, pipeline_config: PipelineConfig) -> None:
        """Summary lists every stage."""
        result = await create_app_pipeline(pipeline_config)
        summary = pipeline_summary(result)

        assert f"Run: {result.run_id}" in summary
        assert "Status: complete" in summary
        assert "[1] ✓ prd_creation: completed" in summary
        assert "Gate: pass" in summary

    @pytest.mark.asyncio
    async def test_summary_failure(self, pipeline_config: PipelineConfig) -> None:
        """Failed stages and the error are shown."""
        result = await create_app_pipeline(
            pipeline_config, runner=FailingAtRunner("alex_pm")
        )
        summary = pipeline_summary(result)

        assert "✗ prd_creation: failed" in summary
        assert "Error: RuntimeError: alex_pm crashed" in summary

    @pytest.mark.asyncio
    async def test_to_dict(self, pipeline_config: PipelineConfig) -> None:
        """Results serialise to plain values."""
        result = await create_app_pipeline(pipeline_config)
        data = result.to_dict()

        assert data["success"] is True
        assert data["manifest"]["status"] == "complete"
        assert "prd" in data["artifacts"]
        assert data["stages"][0]["status"] == "completed"
        assert data["gate"]["status"] == "pass"
        assert data["repair"] is None
