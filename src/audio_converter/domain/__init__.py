"""Domain layer containing business logic and models."""

from .models import (
    ConvertedAudio,
    FailureKind,
    PipelineFailure,
    PipelineResult,
    PipelineStage,
    PipelineState,
    ToolInvocationResult,
    Transcript,
    UploadedAudio,
)
from .pipeline import ConversionPipeline
from .workspace import Workspace, WorkspaceManager

__all__ = [
    "ConversionPipeline",
    "ConvertedAudio",
    "FailureKind",
    "PipelineFailure",
    "PipelineResult",
    "PipelineStage",
    "PipelineState",
    "ToolInvocationResult",
    "Transcript",
    "UploadedAudio",
    "Workspace",
    "WorkspaceManager",
]
