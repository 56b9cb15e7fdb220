"""ARQ worker entrypoint."""

from arq import cron
from arq.connections import RedisSettings

from app.core.config import get_settings
from app.workers.notifications import (
    run_daily_notifications,
    run_expiry_checks,
    send_notification_digest,
)


def _redis_settings() -> RedisSettings:
    """Parse REDIS_URL into ARQ RedisSettings."""
    return RedisSettings.from_dsn(get_settings().redis_url)


async def startup(ctx: dict) -> None:
    """Called when the worker starts."""
    from app.core.database import init_db
    from app.core.logging import configure_logging

    configure_logging()
    await init_db()


async def shutdown(ctx: dict) -> None:
    """Called when the worker shuts down."""


_settings = get_settings()


class WorkerSettings:
    """ARQ worker configuration."""
    functions = [run_expiry_checks, send_notification_digest]
    cron_jobs = [
        cron(
            run_daily_notifications,
            hour={_settings.notification_cron_hour},
            minute={_settings.notification_cron_minute},
            unique=True,
        ),
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = _redis_settings()
    max_jobs = 10
    job_timeout = 600  # 10 minutes per batch


if __name__ == "__main__":
    from arq import run_worker
    run_worker(WorkerSettings)  # type: ignore[arg-type]
