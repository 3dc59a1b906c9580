"""
Generation Pipeline

Upload → validation → Character Generation (optional) → Video Generation,
with a bounded exponential-backoff retry per step.
"""

from .orchestrator import GenerationPipeline, build_steps
from .gateway import UploadGateway
from .routes import upload_router
from .models import PipelineResult, StepName

__all__ = [
    "GenerationPipeline",
    "build_steps",
    "UploadGateway",
    "upload_router",
    "PipelineResult",
    "StepName",
]
