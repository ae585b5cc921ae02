"""
Orchestrator Module for CFDI Validation System.

Combines extraction, parsing, reconciliation and the SAT query into the
validation flows used by applications.
"""

from .decision import ValidationStage, ValidationDecision
from .pipeline import ValidationOrchestrator, ValidationRun

__all__ = [
    'ValidationStage',
    'ValidationDecision',
    'ValidationOrchestrator',
    'ValidationRun',
]
