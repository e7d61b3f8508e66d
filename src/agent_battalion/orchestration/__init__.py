"""Pipeline orchestration: stages, gate and repair loop."""

from agent_battalion.orchestration.agents import AgentRunner, StageContext, StubAgentRunner
from agent_battalion.orchestration.config import PipelineConfig
from agent_battalion.orchestration.gate import (
    always_fail_gate,
    always_pass_gate,
    gate_from_verification,
)
from agent_battalion.orchestration.pipeline import (
    Pipeline,
    PipelineDefinition,
    PipelineResult,
    StageDefinition,
    StageKind,
    StageResult,
    StageStatus,
    create_app_pipeline,
    pipeline_summary,
)
from agent_battalion.orchestration.repair import (
    CallableRepairStrategy,
    RepairController,
    RepairOptions,
    RepairResult,
    RepairState,
    RepairStrategy,
    create_repair_controller,
)

__all__ = [
    "AgentRunner",
    "StageContext",
    "StubAgentRunner",
    "PipelineConfig",
    "always_fail_gate",
    "always_pass_gate",
    "gate_from_verification",
    "Pipeline",
    "PipelineDefinition",
    "PipelineResult",
    "StageDefinition",
    "StageKind",
    "StageResult",
    "StageStatus",
    "create_app_pipeline",
    "pipeline_summary",
    "CallableRepairStrategy",
    "RepairController",
    "RepairOptions",
    "RepairResult",
    "RepairState",
    "RepairStrategy",
    "create_repair_controller",
]
