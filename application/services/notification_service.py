"""
Notification application service.

Turns committed order lifecycle events into in-app notifications and push
messages, and serves the notification inbox and device registration
endpoints. Fan-out is best-effort: the business write has already committed
by the time ``dispatch`` runs, so failures are logged and swallowed here.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from application.dtos.notifications import (
    BroadcastDTO,
    BroadcastResultDTO,
    DeviceDTO,
    DeviceSubscribeDTO,
    NotificationDTO,
    UnreadCountDTO,
)
from application.ports.notifications import NullPushNotifier, PushNotifier
from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException, ResourceNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.notification.entity import DeviceToken, Notification, NotificationType
from domain.order.events import (
    CancellationRequested,
    CancellationResolved,
    FundReleased,
    OrderCancelled,
    OrderCompleted,
    OrderCreated,
    OrderDelivered,
    OrderEvent,
    OrderStatusChanged,
    PaymentApproved,
    PaymentRejected,
    ProofSubmitted,
)
from shared.codes.escrow_codes import EscrowCode


logger = get_logger(__name__)


@dataclass
class _Draft:
    user_id: str
    type: NotificationType
    title: str
    message: str
    metadata: dict = field(default_factory=dict)


def _format_idr(amount: Optional[int]) -> str:
    if amount is None:
        return "-"
    return "Rp " + f"{amount:,}".replace(",", ".")


def build_drafts(event: OrderEvent) -> List[_Draft]:
    """Recipients and wording for one lifecycle event."""
    n = event.order_number
    drafts: List[_Draft] = []

    def to(user_id: Optional[str], type_: NotificationType, title: str, message: str, **metadata) -> None:
        if user_id:
            drafts.append(_Draft(user_id, type_, title, message, metadata))

    if isinstance(event, OrderCreated):
        to(event.seller_id, NotificationType.ORDER_CREATED, "Order created",
           f"Order {n} was created for {_format_idr(event.total_amount)}. Share the order number with your buyer.",
           total_amount=event.total_amount)
    elif isinstance(event, ProofSubmitted):
        to(event.seller_id, NotificationType.PAYMENT_PROOF_SUBMITTED, "Payment proof submitted",
           f"The buyer submitted a payment proof for order {n}. It is waiting for verification.",
           proof_id=event.proof_id)
        to(event.buyer_id, NotificationType.PAYMENT_PROOF_SUBMITTED, "Payment proof received",
           f"Your payment proof for order {n} is being verified.",
           proof_id=event.proof_id)
    elif isinstance(event, PaymentApproved):
        to(event.seller_id, NotificationType.PAYMENT_VERIFIED, "Payment verified",
           f"Payment for order {n} was verified. You can ship the item now.",
           proof_id=event.proof_id)
        to(event.buyer_id, NotificationType.PAYMENT_VERIFIED, "Payment verified",
           f"Your payment for order {n} was verified.",
           proof_id=event.proof_id)
    elif isinstance(event, PaymentRejected):
        reason = event.reason or "no reason given"
        to(event.buyer_id, NotificationType.PAYMENT_REJECTED, "Payment rejected",
           f"Your payment proof for order {n} was rejected: {reason}.",
           proof_id=event.proof_id, reason=event.reason)
        to(event.seller_id, NotificationType.PAYMENT_REJECTED, "Payment rejected",
           f"The payment proof for order {n} was rejected.",
           proof_id=event.proof_id, reason=event.reason)
    elif isinstance(event, OrderStatusChanged):
        to(event.buyer_id, NotificationType.ORDER_STATUS_CHANGED, "Order updated",
           f"Order {n} is now {event.current}.",
           previous=event.previous, current=event.current)
    elif isinstance(event, CancellationRequested):
        to(event.seller_id, NotificationType.CANCELLATION_REQUESTED, "Cancellation requested",
           f"Your cancellation request for order {n} is waiting for admin review.",
           request_id=event.request_id)
    elif isinstance(event, CancellationResolved):
        if event.approved:
            to(event.seller_id, NotificationType.CANCELLATION_APPROVED, "Cancellation approved",
               f"Your cancellation request for order {n} was approved.",
               request_id=event.request_id, admin_notes=event.admin_notes)
        else:
            to(event.seller_id, NotificationType.CANCELLATION_REJECTED, "Cancellation rejected",
               f"Your cancellation request for order {n} was rejected.",
               request_id=event.request_id, admin_notes=event.admin_notes)
    elif isinstance(event, OrderCancelled):
        if event.automatic:
            to(event.seller_id, NotificationType.ORDER_AUTO_CANCELLED, "Order cancelled",
               f"Order {n} was cancelled because no payment arrived before the deadline.",
               reason=event.reason)
        else:
            to(event.buyer_id, NotificationType.ORDER_CANCELLED, "Order cancelled",
               f"Order {n} was cancelled by the seller.",
               reason=event.reason)
    elif isinstance(event, OrderDelivered):
        to(event.buyer_id, NotificationType.ORDER_DELIVERED, "Order delivered",
           f"Order {n} was marked as delivered. Please confirm once you receive it.")
        to(event.seller_id, NotificationType.ORDER_DELIVERED, "Order delivered",
           f"Order {n} was marked as delivered.")
    elif isinstance(event, OrderCompleted):
        to(event.seller_id, NotificationType.ORDER_COMPLETED, "Order completed",
           f"Order {n} is completed.")
        to(event.buyer_id, NotificationType.ORDER_COMPLETED, "Order completed",
           f"Order {n} is completed. Thank you for using escrow.")
    elif isinstance(event, FundReleased):
        to(event.seller_id, NotificationType.FUND_RELEASED, "Funds released",
           f"{_format_idr(event.amount)} for order {n} was transferred to you.",
           release_id=event.release_id, amount=event.amount)
    return drafts


class NotificationApplicationService:

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        push_notifier: Optional[PushNotifier] = None,
        *,
        list_limit: int = 50,
        broadcast_url: str = "/home",
    ):
        self._uow_factory = uow_factory
        self._push = push_notifier or NullPushNotifier()
        self._list_limit = list_limit
        self._broadcast_url = broadcast_url

    # ------------------------------------------------------------------
    # Fan-out
    # ------------------------------------------------------------------
    async def dispatch(self, events: Iterable[OrderEvent]) -> List[Notification]:
        """Persist and push notifications for committed events; never raises."""
        pending: List[Notification] = []
        for event in events:
            for draft in build_drafts(event):
                pending.append(Notification.new(
                    draft.user_id,
                    draft.type,
                    draft.title,
                    draft.message,
                    order_id=event.order_id,
                    order_number=event.order_number,
                    metadata=draft.metadata,
                ))
        if not pending:
            return []

        stored: List[Notification] = []
        try:
            async with self._uow_factory() as uow:
                for notification in pending:
                    stored.append(await uow.notification_repository.create(notification))
        except Exception as exc:
            logger.error(
                "notification_persist_failed",
                count=len(pending),
                error=str(exc),
                exc_info=True,
            )
            stored = []

        for notification in pending:
            try:
                await self._push.send(
                    notification.user_id,
                    notification.title,
                    notification.message,
                    {
                        "type": notification.type.value,
                        "order_id": notification.order_id or "",
                        "order_number": notification.order_number or "",
                        "notification_id": notification.id,
                    },
                )
            except Exception as exc:
                logger.warning(
                    "push_dispatch_failed",
                    user_id=notification.user_id,
                    notification_type=notification.type.value,
                    error=str(exc),
                )
        return stored

    async def broadcast(self, data: BroadcastDTO, admin_id: str) -> BroadcastResultDTO:
        """Announcement to every user with an active device: one inbox entry each, then a push."""
        title = (data.title or "").strip()
        message = (data.message or "").strip()
        if not title or not message:
            raise DomainValidationException(
                "Title and message are required",
                field="message" if title else "title",
            )
        url = data.url or self._broadcast_url
        metadata = {"url": url}
        if data.image:
            metadata["image"] = data.image

        async with self._uow_factory() as uow:
            user_ids = await uow.device_token_repository.list_active_user_ids()
            for user_id in user_ids:
                await uow.notification_repository.create(Notification.new(
                    user_id, NotificationType.BROADCAST, title, message, metadata=metadata,
                ))

        pushed = 0
        for user_id in user_ids:
            try:
                await self._push.send(user_id, title, message, {
                    "type": NotificationType.BROADCAST.value,
                    "url": url,
                    "click_action": url,
                    "image": data.image or "",
                })
                pushed += 1
            except Exception as exc:
                logger.warning(
                    "push_dispatch_failed",
                    user_id=user_id,
                    notification_type=NotificationType.BROADCAST.value,
                    error=str(exc),
                )

        logger.info("broadcast_sent", admin_id=admin_id, recipients=len(user_ids), pushed=pushed)
        return BroadcastResultDTO(recipients=len(user_ids), pushed=pushed)

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------
    async def list_notifications(self, user_id: str) -> List[NotificationDTO]:
        async with self._uow_factory(readonly=True) as uow:
            items = await uow.notification_repository.list_for_user(user_id, limit=self._list_limit)
            return [NotificationDTO.model_validate(item) for item in items]

    async def unread_count(self, user_id: str) -> UnreadCountDTO:
        async with self._uow_factory(readonly=True) as uow:
            count = await uow.notification_repository.count_unread(user_id)
            return UnreadCountDTO(count=count)

    async def mark_read(self, notification_id: str, user_id: str) -> None:
        async with self._uow_factory() as uow:
            found = await uow.notification_repository.mark_read(notification_id, user_id)
            if not found:
                raise ResourceNotFoundException(
                    "Notification", notification_id, code=EscrowCode.NOTIFICATION_NOT_FOUND
                )

    async def mark_all_read(self, user_id: str) -> int:
        async with self._uow_factory() as uow:
            return await uow.notification_repository.mark_all_read(user_id)

    # ------------------------------------------------------------------
    # Devices
    # ------------------------------------------------------------------
    async def subscribe(self, user_id: str, data: DeviceSubscribeDTO) -> DeviceDTO:
        async with self._uow_factory() as uow:
            token = await uow.device_token_repository.upsert(
                DeviceToken.new(user_id, data.token, data.device_type)
            )
            logger.info("device_subscribed", user_id=user_id, device_type=token.device_type)
            return DeviceDTO.model_validate(token)

    async def unsubscribe(self, user_id: str, token: str) -> int:
        async with self._uow_factory() as uow:
            removed = await uow.device_token_repository.deactivate([token], user_id=user_id)
            logger.info("device_unsubscribed", user_id=user_id, removed=removed)
            return removed

    async def list_devices(self, user_id: str) -> List[DeviceDTO]:
        async with self._uow_factory(readonly=True) as uow:
            tokens = await uow.device_token_repository.list_active_for_user(user_id)
            return [DeviceDTO.model_validate(t) for t in tokens]
