"""
API dependencies - bearer authentication and service wiring.
"""
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from application.dtos.base import CurrentUser
from application.ports.notifications import PushNotifier
from application.services.cancellation_service import CancellationApplicationService
from application.services.expiry_service import OrderExpiryService
from application.services.fund_release_service import FundReleaseApplicationService
from application.services.notification_service import NotificationApplicationService
from application.services.order_service import OrderApplicationService
from application.services.payment_proof_service import PaymentProofApplicationService
from application.services.qris_service import QrisApplicationService
from application.services.stats_service import StatsApplicationService
from core.config import settings
from core.exceptions import TokenExpiredException, UnauthorizedException
from core.logging_config import get_logger
from domain.common.exceptions import ForbiddenException
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

logger = get_logger(__name__)

# HTTP Bearer for tokens issued by the identity provider
http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="JWT bearer token issued by the identity provider",
    auto_error=False,
)


def decode_access_token(token: str) -> CurrentUser:
    """Verify signature and expiry; ``sub`` is the user id."""
    options = {"verify_aud": settings.auth.audience is not None}
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            audience=settings.auth.audience,
            leeway=settings.auth.leeway_seconds,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredException()
    except jwt.PyJWTError as e:
        logger.warning("invalid_access_token", error=str(e))
        raise UnauthorizedException("Invalid authentication credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedException("Token has no subject")
    role = payload.get(settings.auth.role_claim)
    return CurrentUser(
        id=str(user_id),
        role=role,
        is_admin=role == settings.auth.admin_role,
    )


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> Optional[CurrentUser]:
    """Anonymous callers get ``None``; a present but invalid token is still a 401."""
    if credentials is None or not credentials.credentials:
        return None
    user = decode_access_token(credentials.credentials)
    request.state.user_id = user.id
    return user


async def get_current_user(user: Optional[CurrentUser] = Depends(get_optional_user)) -> CurrentUser:
    if user is None:
        raise UnauthorizedException("Authentication credentials were not provided")
    return user


async def get_current_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise ForbiddenException("Admin role required")
    return user


# ----------------------------------------------------------------------
# Service wiring
# ----------------------------------------------------------------------
def get_uow_factory():
    return SQLAlchemyUnitOfWork


def get_push_notifier() -> Optional[PushNotifier]:
    if not settings.push.enabled:
        return None
    from infrastructure.adapters.push_notifier import CeleryPushNotifier

    return CeleryPushNotifier()


def get_notification_service(
    uow_factory=Depends(get_uow_factory),
    push: Optional[PushNotifier] = Depends(get_push_notifier),
) -> NotificationApplicationService:
    return NotificationApplicationService(
        uow_factory,
        push,
        list_limit=settings.escrow.notification_list_limit,
        broadcast_url=settings.push.broadcast_url,
    )


def get_order_service(
    uow_factory=Depends(get_uow_factory),
    notifications: NotificationApplicationService = Depends(get_notification_service),
) -> OrderApplicationService:
    return OrderApplicationService(uow_factory, notifications)


def get_payment_proof_service(
    uow_factory=Depends(get_uow_factory),
    notifications: NotificationApplicationService = Depends(get_notification_service),
) -> PaymentProofApplicationService:
    return PaymentProofApplicationService(uow_factory, notifications)


def get_cancellation_service(
    uow_factory=Depends(get_uow_factory),
    notifications: NotificationApplicationService = Depends(get_notification_service),
) -> CancellationApplicationService:
    return CancellationApplicationService(uow_factory, notifications)


def get_fund_release_service(
    uow_factory=Depends(get_uow_factory),
    notifications: NotificationApplicationService = Depends(get_notification_service),
) -> FundReleaseApplicationService:
    return FundReleaseApplicationService(uow_factory, notifications)


def get_expiry_service(
    uow_factory=Depends(get_uow_factory),
    notifications: NotificationApplicationService = Depends(get_notification_service),
) -> OrderExpiryService:
    return OrderExpiryService(uow_factory, notifications)


def get_qris_service(uow_factory=Depends(get_uow_factory)) -> QrisApplicationService:
    return QrisApplicationService(uow_factory)


def get_stats_service(uow_factory=Depends(get_uow_factory)) -> StatsApplicationService:
    return StatsApplicationService(uow_factory)
