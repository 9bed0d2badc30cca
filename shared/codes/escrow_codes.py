"""
Escrow specific business codes, in the 6xxxx range.
"""
from __future__ import annotations

from shared.codes import StatusCode


class EscrowCode(StatusCode):
    # orders (60xxx)
    ORDER_NOT_FOUND = 60001, 404
    ORDER_STATE_CONFLICT = 60002, 409
    ORDER_COOLDOWN = 60003, 429

    # payments and proofs (61xxx)
    PAYMENT_NOT_FOUND = 61001, 404
    PROOF_NOT_FOUND = 61002, 404
    PROOF_ALREADY_REVIEWED = 61003, 409

    # cancellation (62xxx)
    CANCELLATION_NOT_FOUND = 62001, 404
    CANCELLATION_ALREADY_PENDING = 62002, 409
    CANCELLATION_ALREADY_PROCESSED = 62003, 409

    # fund release (63xxx)
    FUND_RELEASE_NOT_FOUND = 63001, 404
    FUND_RELEASE_ALREADY_COMPLETED = 63002, 409

    # QRIS (64xxx)
    QRIS_INVALID = 64001, 400
    QRIS_INVALID_INPUT = 64002, 400
    QRIS_NOT_CONFIGURED = 64003, 404
    QRIS_TRANSACTION_NOT_FOUND = 64004, 404

    # notifications (65xxx)
    NOTIFICATION_NOT_FOUND = 65001, 404
