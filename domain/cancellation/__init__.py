"""Cancellation domain exports."""
from .entity import CancellationRequest, CancellationStatus
from .repository import CancellationRequestRepository

__all__ = ["CancellationRequest", "CancellationStatus", "CancellationRequestRepository"]
