from apscheduler.schedulers.asyncio import AsyncIOScheduler
from kairos.core.config import settings
from kairos.core.database import AsyncSessionLocal
from kairos.services.delivery import Delivery
from kairos.services.notification_service import evaluate_all_users
import logging

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

async def scheduled_reminder_check(delivery: Delivery):
    """Background sweep that re-derives reminders for all users"""
    async with AsyncSessionLocal() as db:
        try:
            logger.info("⏰ Running scheduled reminder check...")
            created = await evaluate_all_users(db, delivery)
            if created:
                logger.info(f"🔔 Scheduled check created {created} notification(s)")
        except Exception as e:
            logger.error(f"❌ Error in scheduled reminder check: {e}")

def start_scheduler(delivery: Delivery):
    """Start the APScheduler background job"""
    if not scheduler.running:
        scheduler.add_job(
            scheduled_reminder_check,
            "interval",
            minutes=settings.REMINDER_CHECK_INTERVAL_MINUTES,
            args=[delivery],
            id="reminder_check_job",
            replace_existing=True
        )
        scheduler.start()
        logger.info(f"🚀 Background Scheduler started (runs every {settings.REMINDER_CHECK_INTERVAL_MINUTES} min)")

def shutdown_scheduler():
    """Shut down the scheduler on app exit"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("🛑 Background Scheduler stopped")
