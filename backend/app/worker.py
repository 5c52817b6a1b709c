"""
Background worker - reminder scheduling and email delivery.

Runs as its own process, separate from the API:

    arq app.worker.WorkerSettings

Two tasks share one arq queue:
- check_reminders: cron, daily at REMINDER_CRON_HOUR:REMINDER_CRON_MINUTE.
  The fixed job id keeps a restarted (or second) worker from queueing the
  same daily pass twice.
- send_reminder_email: one job per due reminder, enqueued by the pass.
  At most EMAIL_WORKER_CONCURRENCY run at once; failures are not retried.
"""

from zoneinfo import ZoneInfo

from arq import cron

from app.core.config import get_settings
from app.core.logging import setup_logging, get_logger
from app.db.session import AsyncSessionLocal, engine
from app.infrastructure.task_queue import ArqTaskQueue, get_redis_settings
from app.services.email_service import dispatch_reminder
from app.services.providers import build_mail_transport
from app.services.reminder_service import enqueue_due_reminders

settings = get_settings()
logger = get_logger(__name__)

REMINDER_CHECK_JOB_ID = "daily-reminder-check"


async def startup(ctx: dict) -> None:
    setup_logging()
    ctx["queue"] = ArqTaskQueue(ctx["redis"])
    ctx["transport"] = build_mail_transport()
    ctx["session_factory"] = AsyncSessionLocal
    logger.info(
        "worker_started",
        queue=settings.TASK_QUEUE_NAME,
        concurrency=settings.EMAIL_WORKER_CONCURRENCY,
        mail_backend=settings.MAIL_BACKEND,
    )


async def shutdown(ctx: dict) -> None:
    await engine.dispose()
    logger.info("worker_shutdown")


async def check_reminders(ctx: dict) -> int:
    """Daily pass: enqueue today's unsent reminders."""
    logger.info("reminder_check_started")
    async with ctx["session_factory"]() as db:
        return await enqueue_due_reminders(db, ctx["queue"])


async def send_reminder_email(ctx: dict, reminder: dict, event: dict) -> dict:
    return await dispatch_reminder(reminder, event, ctx["transport"])


class WorkerSettings:
    functions = [send_reminder_email]
    cron_jobs = [
        cron(
            check_reminders,
            hour=settings.REMINDER_CRON_HOUR,
            minute=settings.REMINDER_CRON_MINUTE,
            unique=True,
            job_id=REMINDER_CHECK_JOB_ID,
        ),
    ]
    queue_name = settings.TASK_QUEUE_NAME
    redis_settings = get_redis_settings()
    timezone = ZoneInfo(settings.REMINDER_TIMEZONE)
    max_jobs = settings.EMAIL_WORKER_CONCURRENCY
    max_tries = 1
    on_startup = startup
    on_shutdown = shutdown
