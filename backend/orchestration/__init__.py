"""Orchestration of verification and persistence for invoice submissions."""

from .verification import VerificationOrchestrator, VerificationRun
from .persistence import PersistenceOrchestrator
from .fallbacks import fallback_work_order, fallback_photo_analysis

__all__ = [
    "VerificationOrchestrator",
    "VerificationRun",
    "PersistenceOrchestrator",
    "fallback_work_order",
    "fallback_photo_analysis",
]
