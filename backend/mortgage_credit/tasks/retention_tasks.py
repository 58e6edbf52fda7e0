"""Celery tasks for FCRA retention of credit reports."""

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from mortgage_credit.config import settings
from mortgage_credit.services.credit_reporting.retention import find_expiring_reports, purge_expired
from mortgage_credit.tasks import celery_app

logger = logging.getLogger(__name__)

__all__ = ["purge_expired_credit_reports", "warn_expiring_credit_reports"]


def get_async_session():
    engine = create_async_engine(settings.database_url)
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False), engine


async def run_purge() -> int:
    """One purge pass on a private engine bound to the current event loop."""
    session_factory, engine = get_async_session()
    try:
        async with session_factory() as session:
            return await purge_expired(session)
    finally:
        await engine.dispose()


async def run_expiry_warning() -> int:
    session_factory, engine = get_async_session()
    try:
        async with session_factory() as session:
            return len(await find_expiring_reports(session))
    finally:
        await engine.dispose()


@celery_app.task(name="mortgage_credit.tasks.retention_tasks.purge_expired_credit_reports")
def purge_expired_credit_reports():
    """Expire and redact credit reports past their retention window.

    Safe to run while another purge is in flight: each row is only claimed
    by the UPDATE that still sees it unexpired.
    """
    loop = asyncio.new_event_loop()
    try:
        purged = loop.run_until_complete(run_purge())
    finally:
        loop.close()
    logger.info("Retention purge task finished: %d reports expired", purged)
    return purged


@celery_app.task(name="mortgage_credit.tasks.retention_tasks.warn_expiring_credit_reports")
def warn_expiring_credit_reports():
    """Log completed credit reports that expire within the warning window."""
    loop = asyncio.new_event_loop()
    try:
        expiring = loop.run_until_complete(run_expiry_warning())
    finally:
        loop.close()
    logger.info("Expiry warning task finished: %d reports expiring soon", expiring)
    return expiring
