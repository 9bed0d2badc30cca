"""
QRIS codec - static merchant payload to amount-bound dynamic payload.

Pure functions only. The dynamic payload is the static one with:
  - the point-of-initiation field switched from static (``010211``) to
    dynamic (``010212``);
  - a transaction amount field (tag 54) inserted before the country code;
  - a freshly computed CRC-16/CCITT-FALSE checksum.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from domain.common.exceptions import DomainValidationException
from shared.codes.escrow_codes import EscrowCode
from .tlv import MAX_VALUE_LENGTH, encode_field, find_field


VERSION_PREFIX = "00020101"
STATIC_MARKER = "010211"
DYNAMIC_MARKER = "010212"
COUNTRY_CODE_FIELD = "5802ID"
AMOUNT_TAG = "54"
MERCHANT_NAME_TAG = "59"
MERCHANT_CITY_TAG = "60"
CRC_LENGTH = 4
MIN_PAYLOAD_LENGTH = 100

_CRC_POLYNOMIAL = 0x1021
_CRC_INITIAL = 0xFFFF


class InvalidInput(DomainValidationException):
    """Codec called with a non-string payload or a non-positive amount."""

    code = EscrowCode.QRIS_INVALID_INPUT
    error_type = "InvalidInput"


class InvalidQRISError(DomainValidationException):
    """Payload does not have the structure the codec relies on."""

    code = EscrowCode.QRIS_INVALID
    error_type = "InvalidQRIS"

    def __init__(self, message: str):
        super().__init__(message, field="qris_data")


@dataclass(frozen=True)
class MerchantInfo:
    merchant_name: Optional[str] = None
    merchant_city: Optional[str] = None


def crc16(data: str) -> str:
    """CRC-16/CCITT-FALSE as 4 uppercase hex digits."""
    crc = _CRC_INITIAL
    for ch in data:
        crc ^= ord(ch) << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ _CRC_POLYNOMIAL) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
    return f"{crc & 0xFFFF:04X}"


def validate_format(payload) -> bool:
    if not isinstance(payload, str):
        return False
    if len(payload) < MIN_PAYLOAD_LENGTH:
        return False
    if not payload.startswith(VERSION_PREFIX):
        return False
    return COUNTRY_CODE_FIELD in payload


def build_amount_field(amount: int) -> str:
    """``54`` + two digit length + digits, e.g. 50000 -> ``540550000``."""
    return encode_field(AMOUNT_TAG, str(amount))


def generate_dynamic(static_payload, amount) -> str:
    """Bind ``amount`` (IDR, positive integer) into a static QRIS payload."""
    if not isinstance(static_payload, str) or not static_payload:
        raise InvalidInput("Invalid QRIS string", field="qris_data")
    # bool is an int subclass; True must not become Rp 1
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidInput("Amount must be a positive integer", field="amount")
    if len(str(amount)) > MAX_VALUE_LENGTH:
        raise InvalidInput(f"Amount must have at most {MAX_VALUE_LENGTH} digits", field="amount")

    body = static_payload[:-CRC_LENGTH]

    if STATIC_MARKER not in body:
        raise InvalidQRISError("Invalid QRIS format: static point-of-initiation marker not found")
    body = body.replace(STATIC_MARKER, DYNAMIC_MARKER, 1)

    parts = body.split(COUNTRY_CODE_FIELD)
    if len(parts) != 2:
        raise InvalidQRISError("Invalid QRIS format: country code not found")
    head, tail = parts

    payload = head + build_amount_field(amount) + COUNTRY_CODE_FIELD + tail
    return payload + crc16(payload)


def verify_checksum(payload: str) -> bool:
    if not isinstance(payload, str) or len(payload) <= CRC_LENGTH:
        return False
    return crc16(payload[:-CRC_LENGTH]) == payload[-CRC_LENGTH:].upper()


def extract_merchant_info(payload) -> MerchantInfo:
    """Best-effort merchant name (tag 59) and city (tag 60); advisory only."""
    if not isinstance(payload, str):
        return MerchantInfo()
    name = find_field(payload, MERCHANT_NAME_TAG)
    city = find_field(payload, MERCHANT_CITY_TAG)
    return MerchantInfo(
        merchant_name=name.value if name else None,
        merchant_city=city.value if city else None,
    )
