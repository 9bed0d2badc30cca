"""Fund release domain exports."""
from .entity import FundRelease, FundReleaseStatus
from .repository import FundReleaseRepository

__all__ = ["FundRelease", "FundReleaseStatus", "FundReleaseRepository"]
