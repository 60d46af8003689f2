"""Run accumulation and session bookkeeping."""

from .manager import ActiveRun, RunSessionManager, RunSink, RunValidationResult

__all__ = ["ActiveRun", "RunSessionManager", "RunSink", "RunValidationResult"]
