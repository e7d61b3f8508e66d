"""
Pipeline Orchestrator - drives the ten-stage app generation pipeline.

Stages run strictly in order. Every artifact an agent returns is
validated and ownership-checked before it reaches the run store. Any
error aborts the run with the artifacts produced so far preserved; the
only retry path is the gate -> repair loop after verification.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from agent_battalion.artifacts.models import RunManifest
from agent_battalion.artifacts.store import RunStore
from agent_battalion.contracts.enforcement import (
    enforce_ownership,
    enforce_stage_inputs,
    validate_artifact,
)
from agent_battalion.contracts.registry import SYSTEM_AGENT
from agent_battalion.core.exceptions import (
    PipelineError,
    RepairExhaustedError,
    StageTimeoutError,
    format_exception,
)
from agent_battalion.core.models import ArtifactType, GateResult
from agent_battalion.orchestration.agents import AgentRunner, StageContext, StubAgentRunner
from agent_battalion.orchestration.config import PipelineConfig
from agent_battalion.orchestration.gate import gate_from_verification
from agent_battalion.orchestration.repair import (
    RepairController,
    RepairFn,
    RepairResult,
    RepairStrategy,
)
from agent_battalion.verification.orchestrator import VerificationOrchestrator

logger = logging.getLogger(__name__)


class StageKind(Enum):
    """What a stage does."""

    ARTIFACT = "artifact"
    IMPLEMENTATION = "implementation"
    VERIFICATION = "verification"
    MANIFEST = "manifest"


class StageStatus(Enum):
    """Outcome of one stage."""

    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class StageDefinition:
    """A single step of the pipeline."""

    name: str
    kind: StageKind
    agent_id: str = SYSTEM_AGENT
    produces: tuple[ArtifactType, ...] = ()


@dataclass
class PipelineDefinition:
    """Ordered stages of a pipeline."""

    name: str
    description: str
    stages: list[StageDefinition]

    @classmethod
    def create_app(cls) -> "PipelineDefinition":
        """Create the standard app generation pipeline."""
        A = ArtifactType
        return cls(
            name="create_app",
            description="Turn an app description into specs, code and a verified manifest",
            stages=[
                StageDefinition("prd_creation", StageKind.ARTIFACT, "alex_pm", (A.PRD,)),
                StageDefinition(
                    "architecture_design",
                    StageKind.ARTIFACT,
                    "sam_architect",
                    (A.ARCHITECTURE, A.API_CONTRACT),
                ),
                StageDefinition("ui_design", StageKind.ARTIFACT, "dana_designer", (A.UI_SPEC,)),
                StageDefinition(
                    "backend_spec", StageKind.ARTIFACT, "backend_engineer", (A.BACKEND_SPEC,)
                ),
                StageDefinition(
                    "mobile_spec", StageKind.ARTIFACT, "mobile_engineer", (A.MOBILE_SPEC,)
                ),
                StageDefinition(
                    "security_review",
                    StageKind.ARTIFACT,
                    "security_analyst",
                    (A.SECURITY_REPORT,),
                ),
                StageDefinition("test_planning", StageKind.ARTIFACT, "qa_engineer", (A.TEST_PLAN,)),
                StageDefinition("implementation", StageKind.IMPLEMENTATION),
                StageDefinition(
                    "verification", StageKind.VERIFICATION, produces=(A.VERIFICATION_RESULT,)
                ),
                StageDefinition(
                    "manifest_generation", StageKind.MANIFEST, produces=(A.RUN_MANIFEST,)
                ),
            ],
        )


@dataclass
class StageResult:
    """Record of one executed stage."""

    name: str
    status: StageStatus
    artifacts: list[ArtifactType] = field(default_factory=list)
    duration_ms: float | None = None
    error: str | None = None


@dataclass
class PipelineResult:
    """Result of a pipeline run, consumed by the CLI."""

    success: bool
    run_id: str
    artifacts: dict[ArtifactType, dict[str, Any]]
    manifest: RunManifest
    error: str | None = None
    stage_results: list[StageResult] = field(default_factory=list)
    gate: GateResult | None = None
    repair: RepairResult | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-compatible dictionary."""
        return {
            "success": self.success,
            "run_id": self.run_id,
            "error": self.error,
            "manifest": self.manifest.to_artifact(),
            "artifacts": {t.value: data for t, data in self.artifacts.items()},
            "stages": [
                {
                    "name": s.name,
                    "status": s.status.value,
                    "artifacts": [t.value for t in s.artifacts],
                    "duration_ms": s.duration_ms,
                    "error": s.error,
                }
                for s in self.stage_results
            ],
            "gate": self.gate.model_dump(mode="json") if self.gate else None,
            "repair": (
                {
                    "success": self.repair.success,
                    "attempts": self.repair.attempts,
                    "error": self.repair.error,
                }
                if self.repair
                else None
            ),
        }


@dataclass
class _RunOutcome:
    gate: GateResult | None = None
    repair: RepairResult | None = None


class Pipeline:
    """
    Ten-stage app generation orchestrator.

    Each call to run() owns a fresh RunStore and RepairController, so
    independent runs may execute concurrently; only the read-only
    contract registry is shared.
    """

    def __init__(
        self,
        config: PipelineConfig,
        runner: AgentRunner | None = None,
        verifier: VerificationOrchestrator | None = None,
        repair: RepairStrategy | RepairFn | None = None,
        definition: PipelineDefinition | None = None,
        on_stage_complete: Callable[[StageResult], None] | None = None,
    ):
        """
        Initialize the pipeline.

        Args:
            config: Run inputs and tuning
            runner: Agent collaborator (default: StubAgentRunner)
            verifier: Verification orchestrator (default: standard checks
                against config.output_dir)
            repair: Remediation strategy used when the gate fails
            definition: Stage list (default: PipelineDefinition.create_app())
            on_stage_complete: Optional callback after each stage
        """
        self._config = config
        self._runner = runner or StubAgentRunner()
        self._verifier = verifier or VerificationOrchestrator(
            config.output_dir, check_timeout=config.check_timeout
        )
        self._repair = repair
        self._definition = definition or PipelineDefinition.create_app()
        self._on_stage_complete = on_stage_complete

    @property
    def definition(self) -> PipelineDefinition:
        return self._definition

    async def run(self, run_id: str | None = None) -> PipelineResult:
        """
        Execute every stage in order.

        Returns:
            PipelineResult; failures are reported in the result, never raised

        Raises:
            asyncio.CancelledError: If the run is cancelled; the run is
                marked failed before the cancellation propagates
        """
        store = RunStore(run_id)
        controller = RepairController(
            max_retries=self._config.max_repair_attempts,
            escalate_on_failure=self._config.escalate_on_failure,
        )
        context = StageContext(
            run_store=store,
            verifier=self._verifier,
            repair_controller=controller,
            config=self._config,
        )
        outcome = _RunOutcome()
        stage_results: list[StageResult] = []
        total = len(self._definition.stages)

        logger.info(f"Starting run {store.run_id} for project '{self._config.project_name}'")

        for index, stage in enumerate(self._definition.stages, start=1):
            logger.info(f"Run {store.run_id}: stage {index}/{total} {stage.name}")
            start_time = time.perf_counter()

            try:
                produced = await self._with_timeout(
                    self._execute_stage(stage, context, outcome), stage, store.run_id
                )
            except asyncio.CancelledError:
                store.mark_failed(f"Run cancelled during stage '{stage.name}'")
                logger.warning(f"Run {store.run_id} cancelled during stage {stage.name}")
                raise
            except Exception as e:
                error = format_exception(e)
                logger.error(f"Run {store.run_id} failed at stage {stage.name}: {error}")
                store.mark_failed(error)
                self._record(
                    stage_results,
                    StageResult(
                        name=stage.name,
                        status=StageStatus.FAILED,
                        duration_ms=_elapsed_ms(start_time),
                        error=error,
                    ),
                )
                return PipelineResult(
                    success=False,
                    run_id=store.run_id,
                    artifacts=store.get_all(),
                    manifest=store.build_manifest(),
                    error=error,
                    stage_results=stage_results,
                    gate=outcome.gate,
                    repair=outcome.repair,
                )

            self._record(
                stage_results,
                StageResult(
                    name=stage.name,
                    status=StageStatus.COMPLETED,
                    artifacts=produced,
                    duration_ms=_elapsed_ms(start_time),
                ),
            )

        stored_manifest = store.get(ArtifactType.RUN_MANIFEST)
        if stored_manifest is None:
            store.mark_complete()
            manifest = store.build_manifest()
        else:
            manifest = RunManifest.model_validate(stored_manifest)
        logger.info(f"Run {store.run_id} completed successfully")

        return PipelineResult(
            success=True,
            run_id=store.run_id,
            artifacts=store.get_all(),
            manifest=manifest,
            stage_results=stage_results,
            gate=outcome.gate,
            repair=outcome.repair,
        )

    async def _with_timeout(
        self, stage_call: Awaitable[list[ArtifactType]], stage: StageDefinition, run_id: str
    ) -> list[ArtifactType]:
        timeout = self._config.stage_timeout
        if timeout is None:
            return await stage_call
        try:
            return await asyncio.wait_for(stage_call, timeout=timeout)
        except asyncio.TimeoutError:
            raise StageTimeoutError(
                f"Stage '{stage.name}' exceeded {timeout}s",
                timeout=timeout,
                stage=stage.name,
                run_id=run_id,
            ) from None

    async def _execute_stage(
        self, stage: StageDefinition, context: StageContext, outcome: _RunOutcome
    ) -> list[ArtifactType]:
        match stage.kind:
            case StageKind.ARTIFACT:
                return await self._run_artifact_stage(stage, context)
            case StageKind.IMPLEMENTATION:
                await self._runner.run_implementation_agents(context)
                return []
            case StageKind.VERIFICATION:
                return await self._run_verification_stage(context, outcome)
            case StageKind.MANIFEST:
                return self._run_manifest_stage(context)
            case _:
                raise PipelineError(
                    f"Unsupported stage kind: {stage.kind}",
                    stage=stage.name,
                    run_id=context.run_id,
                )

    async def _run_artifact_stage(
        self, stage: StageDefinition, context: StageContext
    ) -> list[ArtifactType]:
        enforce_stage_inputs(stage.agent_id, context.run_store)

        produced = []
        for artifact_type in stage.produces:
            data = await self._runner.run_agent_to_artifact(
                stage.agent_id, artifact_type, context
            )
            self._store_artifact(context.run_store, stage.agent_id, artifact_type, data)
            produced.append(artifact_type)
        return produced

    async def _run_verification_stage(
        self, context: StageContext, outcome: _RunOutcome
    ) -> list[ArtifactType]:
        store = context.run_store
        verification = await context.verifier.run_all()
        self._store_artifact(
            store, SYSTEM_AGENT, ArtifactType.VERIFICATION_RESULT, verification.to_artifact()
        )

        gate = gate_from_verification(verification)
        outcome.gate = gate
        if gate.passed:
            return [ArtifactType.VERIFICATION_RESULT]

        logger.warning(f"Run {store.run_id}: gate failed ({gate.message}), attempting repair")
        try:
            repair_result = await context.repair_controller.repair_until_pass_or_escalate(
                gate, verification, self._repair
            )
        except RepairExhaustedError as e:
            outcome.repair = RepairResult(success=False, attempts=e.attempts, error=e.message)
            raise
        outcome.repair = repair_result

        final = repair_result.final_verification
        if final is not None and final is not verification:
            self._store_artifact(
                store, SYSTEM_AGENT, ArtifactType.VERIFICATION_RESULT, final.to_artifact()
            )
        if not repair_result.success:
            logger.warning(
                f"Run {store.run_id}: continuing after failed repair ({repair_result.error})"
            )
        return [ArtifactType.VERIFICATION_RESULT]

    def _run_manifest_stage(self, context: StageContext) -> list[ArtifactType]:
        store = context.run_store
        store.mark_complete()
        manifest = store.build_manifest()
        self._store_artifact(
            store, SYSTEM_AGENT, ArtifactType.RUN_MANIFEST, manifest.to_artifact()
        )
        return [ArtifactType.RUN_MANIFEST]

    @staticmethod
    def _store_artifact(
        store: RunStore, agent_id: str, artifact_type: ArtifactType, data: Any
    ) -> None:
        validate_artifact(artifact_type, data)
        enforce_ownership(agent_id, artifact_type, store.has(artifact_type))
        store.put(artifact_type, dict(data), agent_id)

    def _record(self, stage_results: list[StageResult], result: StageResult) -> None:
        stage_results.append(result)
        if self._on_stage_complete:
            self._on_stage_complete(result)


def _elapsed_ms(start_time: float) -> float:
    return (time.perf_counter() - start_time) * 1000


async def create_app_pipeline(
    config: PipelineConfig,
    runner: AgentRunner | None = None,
    verifier: VerificationOrchestrator | None = None,
    repair: RepairStrategy | RepairFn | None = None,
) -> PipelineResult:
    """Create and execute the application generation pipeline."""
    pipeline = Pipeline(config, runner=runner, verifier=verifier, repair=repair)
    return await pipeline.run()


def pipeline_summary(result: PipelineResult) -> str:
    """Generate a human-readable summary of a pipeline run."""
    lines = [
        f"Run: {result.run_id}",
        f"Status: {result.manifest.status.value}",
        f"Artifacts: {len(result.artifacts)}",
    ]

    for i, stage in enumerate(result.stage_results):
        status_symbol = "✓" if stage.status == StageStatus.COMPLETED else "✗"
        lines.append(f"  [{i+1}] {status_symbol} {stage.name}: {stage.status.value}")
        if stage.artifacts:
            lines.append(f"      Produced: {', '.join(t.value for t in stage.artifacts)}")
        if stage.duration_ms is not None:
            lines.append(f"      Time: {stage.duration_ms:.0f}ms")
        if stage.error:
            lines.append(f"      Error: {stage.error}")

    if result.gate is not None:
        lines.append(f"Gate: {result.gate.status.value}")
    if result.repair is not None:
        lines.append(
            f"Repair: {'succeeded' if result.repair.success else 'failed'} "
            f"after {result.repair.attempts} attempt(s)"
        )
    if result.error:
        lines.append(f"Error: {result.error}")

    return "\n".join(lines)
