"""Infrastructure models package exports."""
from .base import Base, metadata
from .order import OrderModel
from .payment import PaymentModel, PaymentProofModel
from .cancellation import CancellationRequestModel
from .fund_release import FundReleaseModel
from .qris import QrisSettingModel, QrisTransactionModel
from .notification import NotificationModel, DeviceTokenModel

__all__ = [
    "Base",
    "metadata",
    "OrderModel",
    "PaymentModel",
    "PaymentProofModel",
    "CancellationRequestModel",
    "FundReleaseModel",
    "QrisSettingModel",
    "QrisTransactionModel",
    "NotificationModel",
    "DeviceTokenModel",
]
