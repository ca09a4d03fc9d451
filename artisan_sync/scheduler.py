"""
Scheduler for the artisan sync and call statistics push

Uses APScheduler to run both jobs on independent cron schedules.
"""
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
import asyncio
import pytz

from artisan_sync.api.sync import get_artisan_sync_service
from artisan_sync.api.sync_logs import get_call_stats_service
from artisan_sync.config import get_settings
from artisan_sync.utils.helpers import yesterday_and_today
from artisan_sync.utils.logger import log

settings = get_settings()
SYNC_TZ = pytz.timezone(settings.sync_timezone)

scheduler = AsyncIOScheduler(timezone=SYNC_TZ)


# Job Functions

async def sync_artisans():
    """Sync yesterday's artisans (daily)"""
    try:
        log.info("Starting scheduled artisan sync...")
        result = await get_artisan_sync_service().sync_daily()

        if result['success']:
            log.info(
                f"Artisan sync completed for {result['date']}: "
                f"{result['inserted']} inserted, {result['updated']} updated"
            )
        else:
            log.error(f"Artisan sync failed for {result['date']}: {result.get('error')}")

    except Exception as e:
        log.error(f"Artisan sync error: {str(e)}")


async def push_call_stats():
    """Push yesterday's call statistics (daily)"""
    try:
        yesterday, _ = yesterday_and_today()
        log.info(f"Starting scheduled call stats push for {yesterday}...")
        result = await get_call_stats_service().push_call_stats(yesterday)

        if result['success']:
            log.info(f"Call stats push completed: {result['count']} artisans ({result['message']})")
        else:
            log.error(f"Call stats push failed: {result.get('error')}")

    except Exception as e:
        log.error(f"Call stats push error: {str(e)}")


JOB_FUNCTIONS = {
    'artisan_sync': sync_artisans,
    'call_stats_push': push_call_stats,
}


def setup_scheduler():
    """
    Configure the scheduler.

    Cron expressions come from settings and run in settings.sync_timezone:
    - Artisan sync:     artisan_sync_schedule     (default 00:00, targets yesterday)
    - Call stats push:  call_stats_push_schedule  (default 01:00, pushes yesterday)
    """

    # ── Artisan sync ─────────────────────────────────────
    scheduler.add_job(
        sync_artisans,
        trigger=CronTrigger.from_crontab(settings.artisan_sync_schedule, timezone=SYNC_TZ),
        id='artisan_sync',
        name='Vishwakarma Artisan Daily Sync',
        replace_existing=True,
        max_instances=1
    )

    # ── Call statistics push ─────────────────────────────
    scheduler.add_job(
        push_call_stats,
        trigger=CronTrigger.from_crontab(settings.call_stats_push_schedule, timezone=SYNC_TZ),
        id='call_stats_push',
        name='Vishwakarma Call Stats Daily Push',
        replace_existing=True,
        max_instances=1
    )

    log.info(f"Scheduler configured with sync and push jobs (timezone: {settings.sync_timezone})")


def start_scheduler():
    """Start the scheduler"""
    setup_scheduler()
    scheduler.start()
    log.info("Scheduler started")


def stop_scheduler():
    """Stop the scheduler"""
    if scheduler.running:
        scheduler.shutdown()
        log.info("Scheduler stopped")


def run_job_now(job_name: str) -> dict:
    """
    Manually run a job outside its schedule

    Args:
        job_name: artisan_sync or call_stats_push

    Returns:
        Dict with trigger outcome
    """
    if job_name not in JOB_FUNCTIONS:
        return {
            'success': False,
            'error': f'Unknown job: {job_name}. Valid options: {", ".join(JOB_FUNCTIONS.keys())}'
        }

    try:
        log.info(f"Manually triggering {job_name}...")
        asyncio.run(JOB_FUNCTIONS[job_name]())

        return {
            'success': True,
            'message': f'{job_name} triggered successfully'
        }

    except Exception as e:
        log.error(f"Error triggering {job_name}: {str(e)}")
        return {
            'success': False,
            'error': str(e)
        }


def get_scheduled_jobs() -> list:
    """
    Get list of all scheduled jobs

    Returns:
        List of job info dicts
    """
    jobs = []

    for job in scheduler.get_jobs():
        next_run = getattr(job, 'next_run_time', None)

        jobs.append({
            'id': job.id,
            'name': job.name,
            'next_run': next_run.isoformat() if next_run else None,
            'trigger': str(job.trigger)
        })

    return jobs


def pause_job(job_id: str) -> bool:
    """Pause a scheduled job; False if it does not exist"""
    try:
        scheduler.pause_job(job_id)
        log.info(f"Paused job: {job_id}")
        return True

    except Exception as e:
        log.error(f"Error pausing job {job_id}: {str(e)}")
        return False


def resume_job(job_id: str) -> bool:
    """Resume a paused job; False if it does not exist"""
    try:
        scheduler.resume_job(job_id)
        log.info(f"Resumed job: {job_id}")
        return True

    except Exception as e:
        log.error(f"Error resuming job {job_id}: {str(e)}")
        return False


# CLI for manual runs

if __name__ == "__main__":
    import sys

    if len(sys.argv) < 2:
        print("Usage: python -m artisan_sync.scheduler <command> [job_name]")
        print("\nCommands:")
        print("  start           Start the scheduler")
        print("  run <job>       Manually run a job")
        print("  list            List all scheduled jobs")
        print("\nJobs:")
        print("  " + ", ".join(JOB_FUNCTIONS.keys()))
        sys.exit(1)

    command = sys.argv[1]

    if command == "start":
        print("Starting scheduler...")
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        start_scheduler()

        # Keep running
        try:
            loop.run_forever()
        except (KeyboardInterrupt, SystemExit):
            print("\nShutting down scheduler...")
            stop_scheduler()

    elif command == "run":
        if len(sys.argv) < 3:
            print("Error: Please specify a job name")
            print("Usage: python -m artisan_sync.scheduler run <job_name>")
            sys.exit(1)

        result = run_job_now(sys.argv[2])

        if result['success']:
            print(f"✓ {result['message']}")
        else:
            print(f"✗ Error: {result['error']}")
            sys.exit(1)

    elif command == "list":
        setup_scheduler()
        print("\nScheduled Jobs:")
        print("-" * 80)

        jobs = get_scheduled_jobs()

        if not jobs:
            print("No jobs scheduled")
        else:
            for job in jobs:
                print(f"\nID:       {job['id']}")
                print(f"Name:     {job['name']}")
                print(f"Next Run: {job['next_run']}")
                print(f"Trigger:  {job['trigger']}")

    else:
        print(f"Unknown command: {command}")
        sys.exit(1)
