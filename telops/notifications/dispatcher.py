"""In-app notifications, one row per recipient."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog

from telops.db.models import NotificationModel
from telops.models import NotificationType

if TYPE_CHECKING:
    from telops.db.connection import Database

logger = structlog.get_logger(__name__)

DEFAULT_LOW_STOCK_ROLES = ("Admin", "Manager")


class NotificationDispatcher:
    """Inserts per-user notification rows.

    Best-effort: one insert attempt per recipient, no retries. Failures are
    logged and swallowed so they can never undo the operation that caused them.
    """

    def __init__(
        self,
        database: Database,
        low_stock_roles: Sequence[str] = DEFAULT_LOW_STOCK_ROLES,
    ) -> None:
        self.database = database
        self.low_stock_roles = tuple(low_stock_roles)

    async def notify(
        self,
        recipient_id: int,
        type: NotificationType | str,
        message: str,
        link: str | None = None,
    ) -> bool:
        """Store one notification for ``recipient_id``.

        Returns:
            bool: True if stored, False otherwise.
        """
        type_value = type.value if isinstance(type, NotificationType) else type
        try:
            async with self.database.unit_of_work() as uow:
                await uow.notifications.add(
                    NotificationModel(
                        user_id=recipient_id,
                        type=type_value,
                        message=message,
                        link=link,
                    )
                )
                await uow.commit()
        except Exception:
            logger.exception(
                "notification_failed", recipient_id=recipient_id, type=type_value
            )
            return False

        logger.debug("notification_sent", recipient_id=recipient_id, type=type_value)
        return True

    async def notify_low_stock(
        self,
        item_name: str,
        remaining: int,
        min_level: int,
        context: str,
    ) -> int:
        """Alert every active admin/manager that an item fell to its minimum.

        No de-duplication against earlier alerts for the same item.

        Args:
            item_name: Inventory item name
            remaining: Quantity left after the debit
            min_level: Item's reorder threshold
            context: What consumed the stock, e.g. "used by jdoe"

        Returns:
            Number of notifications stored.
        """
        try:
            async with self.database.unit_of_work() as uow:
                recipients = await uow.users.list_active_by_roles(self.low_stock_roles)
                recipient_ids = [user.id for user in recipients]
        except Exception:
            logger.exception("low_stock_recipients_failed", item=item_name)
            return 0

        message = (
            f"Low Stock Alert: {item_name} {context}. "
            f"Remaining: {remaining} (Min: {min_level})"
        )
        sent = 0
        for recipient_id in recipient_ids:
            if await self.notify(
                recipient_id, NotificationType.LOW_STOCK, message, "/inventory"
            ):
                sent += 1

        logger.info(
            "low_stock_alerted",
            item=item_name,
            remaining=remaining,
            recipients=len(recipient_ids),
            sent=sent,
        )
        return sent
