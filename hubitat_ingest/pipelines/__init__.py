"""Pipeline de procesamiento: decode → classify → filter → forward."""

from .processor import EventPipeline, PipelineOutcome, PipelineStats

__all__ = ["EventPipeline", "PipelineOutcome", "PipelineStats"]
