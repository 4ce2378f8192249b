"""Reminder alarm daemon.

Starts the APScheduler event loop, rebuilds every daily alarm from the
record store (the job store is in memory and starts empty on each boot),
then waits for wake-ups.
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler

import config
from logger import logger
from alarms import build_runtime


async def run() -> None:
    scheduler = AsyncIOScheduler(timezone=config.ALARM_TIMEZONE)
    runtime = build_runtime(scheduler=scheduler)

    scheduler.start()
    logger.info(f"Scheduler started (exact alarms permitted: {runtime.backend.can_schedule_exact()})")

    # Restore alarms lost with the previous process
    try:
        restored = runtime.scheduler.restore_after_restart()
        logger.info(f"Scheduler has {len(scheduler.get_jobs())} jobs after restoring {restored} daily alarms")
    except Exception as e:
        logger.error(f"Failed to restore alarms: {e}")

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handlers
            pass

    await stop.wait()
    scheduler.shutdown(wait=False)
    logger.info("Reminder alarm daemon stopped")


def main():
    """Entry point."""
    logger.info("Starting reminder alarm daemon...")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
