"""
Response-message localisation.

Messages are looked up by key in the catalog of the request locale
(``en`` or ``id``); a missing entry falls back to the caller's default.
"""
from __future__ import annotations

import gettext
from contextvars import ContextVar

from core.logging_config import get_logger

DEFAULT_LOCALE = "en"

_current_locale: ContextVar[str] = ContextVar("current_locale", default=DEFAULT_LOCALE)
logger = get_logger(__name__)


_CATALOGS: dict[str, dict[str, str]] = {
    "id": {
        "welcome": "Selamat datang di layanan rekber",
        "health.ok": "OK",
        "order.created": "Pesanan berhasil dibuat",
        "order.status.updated": "Status pesanan diperbarui",
        "order.completed": "Pesanan selesai",
        "order.delivered": "Pesanan ditandai sudah diterima",
        "payment.proof.submitted": "Bukti pembayaran terkirim, menunggu verifikasi",
        "payment.proof.approved": "Pembayaran terverifikasi",
        "payment.proof.rejected": "Bukti pembayaran ditolak",
        "cancellation.resolved": "Permintaan pembatalan telah diproses",
        "fund_release.completed": "Dana telah dicairkan",
        "qris.uploaded": "QRIS berhasil diunggah",
        "qris.deleted": "QRIS dihapus",
        "notification.read": "Notifikasi ditandai sudah dibaca",
        "notification.subscribed": "Perangkat terdaftar",
        "notification.broadcast": "Notifikasi terkirim ke {count} pengguna",
        "auth.unauthorized": "Silakan login terlebih dahulu",
        "auth.token.expired": "Sesi telah berakhir, silakan login kembali",
        "rate.limited": "Terlalu banyak permintaan, silakan coba lagi nanti",
        "validation.failed": "Validasi gagal: {reason}",
        "error.internal": "Terjadi kesalahan pada server",
    },
}

SUPPORTED_LOCALES = frozenset({DEFAULT_LOCALE, *_CATALOGS})


class CatalogTranslations(gettext.NullTranslations):
    """gettext translations backed by an in-memory catalog."""

    def __init__(self, catalog: dict[str, str]):
        super().__init__()
        self._catalog = catalog

    def gettext(self, message: str) -> str:
        return self._catalog.get(message, message)


_translators: dict[str, gettext.NullTranslations] = {
    locale: CatalogTranslations(catalog) for locale, catalog in _CATALOGS.items()
}
_fallback = gettext.NullTranslations()


def set_locale(locale: str) -> None:
    _current_locale.set(locale if locale in SUPPORTED_LOCALES else DEFAULT_LOCALE)


def get_locale() -> str:
    return _current_locale.get()


def t(msgid: str, default: str | None = None, **params) -> str:
    """Translate ``msgid`` for the current locale and format it with ``params``."""
    text = _translators.get(get_locale(), _fallback).gettext(msgid)
    if text == msgid and default is not None:
        text = default
    if not params:
        return text
    try:
        return text.format(**params)
    except (KeyError, IndexError, ValueError) as exc:
        logger.warning("i18n_format_failed", msgid=msgid, params=sorted(params), error=str(exc))
        return text
