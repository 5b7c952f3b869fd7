"""
Consultation Reminder Runner
Run this periodically (e.g. hourly from cron): python run_reminders.py
"""

import asyncio
import logging
import sys

from storefront.database import Base, SessionLocal, engine
from storefront.domain.consultations.reminders import send_due_reminders

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


async def main() -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        return await send_due_reminders(db)
    finally:
        db.close()


if __name__ == "__main__":
    logger.info("🚀 Starting consultation reminder run...")
    try:
        sent = asyncio.run(main())
        logger.info(f"✅ Reminder run finished: {sent} sent")
    except KeyboardInterrupt:
        logger.info("👋 Reminder run stopped by user")
    except Exception as e:
        logger.error(f"❌ Reminder run crashed: {e}")
        sys.exit(1)
