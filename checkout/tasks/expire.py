# checkout/tasks/expire.py
from datetime import datetime, timezone, timedelta

from checkout.celery_worker import celery_app
from checkout.data.database import SessionLocal
from checkout.repos.cart_repo import CartRepo
from checkout.utils.settings import CART_TTL_SECONDS
from checkout.utils.logging import get_logger

logger = get_logger(__name__)


def abandon_stale_carts(db, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(seconds=CART_TTL_SECONDS)

    repo = CartRepo(db)
    count = repo.abandon_carts_idle_since(cutoff)
    repo.commit()

    logger.info(f"Marked {count} carts idle since {cutoff.isoformat()} as abandoned")
    return count


@celery_app.task(name="checkout.tasks.expire.abandon_stale_carts_task")
def abandon_stale_carts_task():
    logger.info("Abandon stale carts task started")

    db = SessionLocal()
    try:
        return abandon_stale_carts(db)
    finally:
        db.close()
