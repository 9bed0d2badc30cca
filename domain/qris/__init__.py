"""QRIS domain exports."""
from .codec import (
    InvalidInput,
    InvalidQRISError,
    MerchantInfo,
    crc16,
    extract_merchant_info,
    generate_dynamic,
    validate_format,
    verify_checksum,
)
from .entity import QrisSetting, QrisTransaction
from .repository import QrisSettingRepository, QrisTransactionRepository

__all__ = [
    "InvalidInput",
    "InvalidQRISError",
    "MerchantInfo",
    "crc16",
    "extract_merchant_info",
    "generate_dynamic",
    "validate_format",
    "verify_checksum",
    "QrisSetting",
    "QrisTransaction",
    "QrisSettingRepository",
    "QrisTransactionRepository",
]
