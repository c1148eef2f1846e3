import logging
from collections import defaultdict, deque

from kairos.models.notification import Notification
from kairos.models.notification_preference import NotificationPreference

logger = logging.getLogger(__name__)

MAX_TOASTS_PER_USER = 50


class Delivery:
    """
    Side effects for freshly created notifications.

    - App visible  -> in-app toast, queued per user until the client drains it
    - App hidden   -> native push, if the user granted permission and registered a device

    Both paths are best-effort: failures are logged, never raised.
    One instance lives on the FastAPI app and is handed to services explicitly.
    """

    def __init__(self, push_sender=None):
        self.push_sender = push_sender
        self._visible = {}
        self._toasts = defaultdict(lambda: deque(maxlen=MAX_TOASTS_PER_USER))

    # ---- presence ----

    def set_visible(self, user_id: int, visible: bool):
        self._visible[user_id] = visible

    def is_visible(self, user_id: int) -> bool:
        return self._visible.get(user_id, False)

    # ---- toasts ----

    def push_toast(self, user_id: int, notification: Notification):
        self._toasts[user_id].append({
            "notification_id": notification.id,
            "title": notification.title,
            "message": notification.message,
            "type": notification.type,
        })

    def drain_toasts(self, user_id: int) -> list:
        queue = self._toasts.get(user_id)
        if not queue:
            return []
        items = list(queue)
        queue.clear()
        return items

    # ---- dispatch ----

    async def deliver(self, notification: Notification, preferences: NotificationPreference) -> str | None:
        """Returns the channel used ("toast" / "push") or None."""
        user_id = notification.user_id
        try:
            if self.is_visible(user_id):
                self.push_toast(user_id, notification)
                return "toast"

            if not (preferences and preferences.push_enabled and preferences.fcm_token):
                return None
            if self.push_sender is None:
                return None

            data = {
                "type": notification.type,
                "notification_id": notification.id,
                "task_id": notification.task_id,
            }
            try:
                response = await self.push_sender.send_notification(
                    token=preferences.fcm_token,
                    title=notification.title,
                    body=notification.message,
                    data=data,
                )
            except ValueError as e:
                if str(e) == "STALE_TOKEN":
                    logger.info(f"🧹 Clearing stale FCM token for user {user_id}")
                    preferences.fcm_token = None
                    return None
                raise
            return "push" if response is not None else None
        except Exception as e:
            logger.error(f"❌ Delivery failed for notification {notification.id}: {e}")
            return None
