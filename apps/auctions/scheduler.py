"""
Server-side timers for auctions.

Auction expiry never depends on a client being online: a periodic sweep
finalizes every auction past its end date and an hourly pass penalizes
winners who abandoned their purchase. Finalization is idempotent, so
overlapping schedulers (or a cron running ``finalize_auctions``) are safe.
"""

import logging

from apscheduler.schedulers.blocking import BlockingScheduler
from django.conf import settings
from django.db import close_old_connections

from apps.auctions.services import finalize_expired_auctions, penalize_abandoned_auctions

logger = logging.getLogger(__name__)

FINALIZE_JOB_ID = 'finalize_expired_auctions'
PENALIZE_JOB_ID = 'penalize_abandoned_auctions'


def run_finalization_sweep():
    close_old_connections()
    try:
        results = finalize_expired_auctions()
    finally:
        close_old_connections()
    return len(results)


def run_penalty_pass():
    close_old_connections()
    try:
        return penalize_abandoned_auctions()
    finally:
        close_old_connections()


def build_scheduler(scheduler_class=BlockingScheduler):
    """Create a scheduler with both jobs registered but not started."""
    scheduler = scheduler_class(timezone='UTC')
    scheduler.add_job(
        run_finalization_sweep,
        'interval',
        seconds=settings.AUCTION_SWEEP_INTERVAL_SECONDS,
        id=FINALIZE_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.add_job(
        run_penalty_pass,
        'interval',
        hours=1,
        id=PENALIZE_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler
