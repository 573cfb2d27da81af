"""Orchestration package."""

from engines.orchestration.analysis_gate import AnalysisGate
from engines.orchestration.pipeline_runner import MonitoringLoop, SentinelPipeline

__all__ = [
    "AnalysisGate",
    "MonitoringLoop",
    "SentinelPipeline",
]
