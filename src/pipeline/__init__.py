"""Translation pipeline: orchestration and job wiring."""

from src.pipeline.job import clear_all_state, default_output_path, run_translation_job
from src.pipeline.orchestrator import JobState, PipelineOrchestrator

__all__ = [
    "JobState",
    "PipelineOrchestrator",
    "clear_all_state",
    "default_output_path",
    "run_translation_job",
]
