"""Pytest bootstrap configuration.

Ensure mandatory environment variables are set before test collection
and module imports that depend on application settings.
"""
import os

# Mandatory secret key for settings validation
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")
# the module-level engine must not need a running Postgres
os.environ.setdefault("DATABASE__URL", "sqlite+aiosqlite:///:memory:")

import pytest  # noqa: E402

from application.services.notification_service import NotificationApplicationService  # noqa: E402
from tests.fakes import InMemoryUoWFactory, RecordingPushNotifier, build_static_qris  # noqa: E402


@pytest.fixture
def uow_factory():
    return InMemoryUoWFactory()


@pytest.fixture
def push():
    return RecordingPushNotifier()


@pytest.fixture
def notifications(uow_factory, push):
    return NotificationApplicationService(uow_factory, push)


@pytest.fixture
def static_qris():
    return build_static_qris()
