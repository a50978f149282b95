from .dedupe import dedupe_and_validate
from .pipeline import InputError, PipelineError, StoreError, UploadedWorkbook, run_pipeline
from .summary import render_summary_line

__all__ = [
    "InputError",
    "PipelineError",
    "StoreError",
    "UploadedWorkbook",
    "dedupe_and_validate",
    "render_summary_line",
    "run_pipeline",
]
