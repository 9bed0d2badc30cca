"""Payment domain exports."""
from .entity import Payment, PaymentProof, PaymentStatus, ProofStatus
from .repository import PaymentProofRepository, PaymentRepository

__all__ = [
    "Payment",
    "PaymentProof",
    "PaymentStatus",
    "ProofStatus",
    "PaymentProofRepository",
    "PaymentRepository",
]
