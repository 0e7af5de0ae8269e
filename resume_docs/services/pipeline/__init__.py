from .flattening import FlattenedFields, flatten_resume_data
from .generation_service import GenerationOutcome, ResumeGenerationService
from .pipeline_orchestrator import PipelineOrchestrator, PipelineReport, PipelineSettings, PipelineStageEnum

__all__ = [
    "FlattenedFields",
    "GenerationOutcome",
    "PipelineOrchestrator",
    "PipelineReport",
    "PipelineSettings",
    "PipelineStageEnum",
    "ResumeGenerationService",
    "flatten_resume_data",
]
