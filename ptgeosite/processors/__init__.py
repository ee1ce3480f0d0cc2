"""
Processors Package

Contains the run orchestration pipeline.
"""

from .pipeline import GeoSitePipeline, PipelineState, RunResult, run_pipeline

__all__ = ['GeoSitePipeline', 'PipelineState', 'RunResult', 'run_pipeline']
