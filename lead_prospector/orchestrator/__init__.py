"""Workflow orchestration for the acquisition loop and operator commands."""

from .console import OperatorConsole
from .service import AcquisitionEngine, RunStats

__all__ = ["AcquisitionEngine", "OperatorConsole", "RunStats"]
