import asyncio
import json
import logging
import os

import firebase_admin
from firebase_admin import credentials, messaging

from kairos.core.config import settings

logger = logging.getLogger(__name__)


class PushSender:
    """Native OS notifications via Firebase Cloud Messaging.

    Firebase is initialized on first send, so processes that never push
    (tests, the offline client) don't need credentials.
    """

    def __init__(self):
        self._initialized = False

    def _initialize_firebase(self):
        """Initialize Firebase Admin SDK once with ENV or JSON file"""
        self._initialized = True
        if firebase_admin._apps:
            return

        try:
            if settings.FIREBASE_SERVICE_ACCOUNT:
                try:
                    cred = credentials.Certificate(json.loads(settings.FIREBASE_SERVICE_ACCOUNT))
                    firebase_admin.initialize_app(cred)
                    logger.info("✅ Firebase Admin SDK initialized from ENV")
                    return
                except ValueError as e:
                    logger.warning(f"⚠️ Failed to parse FIREBASE_SERVICE_ACCOUNT JSON: {e}")

            cred_path = os.path.join(
                os.path.dirname(__file__),
                "..",
                "..",
                settings.FIREBASE_CREDENTIALS
            )

            if os.path.exists(cred_path):
                firebase_admin.initialize_app(credentials.Certificate(cred_path))
                logger.info("✅ Firebase Admin SDK initialized from local file")
            else:
                logger.warning(f"⚠️ No Firebase credentials found (looked at {cred_path})")
        except Exception as e:
            logger.error(f"❌ Failed to initialize Firebase: {e}")

    async def send_notification(self, token: str, title: str, body: str, data: dict = None):
        """
        Send a data-only push to one device token.

        Returns the message id, or None when nothing was sent.
        Raises ValueError("STALE_TOKEN") when the token is no longer registered.
        """
        if not token:
            return None
        if not title or not title.strip() or not body or not body.strip():
            logger.warning("⚠️ Push skipped: empty title or body")
            return None

        if not self._initialized:
            self._initialize_firebase()

        # FCM data values must be strings
        data_payload = {k: str(v) for k, v in (data or {}).items() if v is not None}
        data_payload["notification_title"] = title
        data_payload["notification_body"] = body

        # Data-only message: the client renders it, so no AndroidNotification/APNS alert block
        message = messaging.Message(
            data=data_payload,
            token=token,
            android=messaging.AndroidConfig(priority="high"),
            apns=messaging.APNSConfig(headers={"apns-priority": "10"}),
        )

        try:
            response = await asyncio.to_thread(messaging.send, message)
            logger.info(f"✅ Push sent: {response}")
            return response
        except messaging.UnregisteredError:
            raise ValueError("STALE_TOKEN")
        except Exception as e:
            if "Requested entity was not found" in str(e):
                raise ValueError("STALE_TOKEN")
            logger.error(f"❌ Failed to send push: {e}")
            return None
