"""Archival sweeper — moves rides that started long ago from active to archived.

A ride is stale once its start time is more than ``stale_after`` (24h by
default) in the past. Archiving is one bulk UPDATE restricted to active
rides, so re-running a sweep never touches a ride twice and archived rides
never come back.
"""
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.orm import Session

from groupride.models.ride import Ride, RideStatus

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL = timedelta(hours=24)
DEFAULT_STALE_AFTER = timedelta(hours=24)


def archive_stale_rides(
    db: Session,
    now: Optional[datetime] = None,
    stale_after: timedelta = DEFAULT_STALE_AFTER,
) -> int:
    """Archive every active ride that started before ``now - stale_after``.

    Returns the number of rides archived.
    """
    threshold = (now or datetime.now()) - stale_after
    archived = (
        db.query(Ride)
        .filter(Ride.status == RideStatus.active, Ride.date_time < threshold)
        .update({Ride.status: RideStatus.archived}, synchronize_session=False)
    )
    db.commit()
    return archived


class ArchivalSweeper:
    """
    Background task that runs the archival sweep on a fixed interval.

    Owned by the application lifecycle: ``start()`` on boot runs a sweep
    immediately and then every ``interval``; ``stop()`` on shutdown. Runs are
    serialized, the next wait only begins once the previous run has finished,
    and ``run_once()`` can be called directly to trigger a sweep.

    Attributes:
        last_run_at: When the last sweep finished (None before the first run)
        last_archived_count: Rides archived by the last successful sweep
        last_error: Exception raised by the last sweep, None if it succeeded
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        interval: timedelta = DEFAULT_SWEEP_INTERVAL,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._session_factory = session_factory
        self._interval = interval
        self._stale_after = stale_after
        self._clock = clock
        self._stop_event = threading.Event()
        self._run_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

        self.last_run_at: Optional[datetime] = None
        self.last_archived_count: Optional[int] = None
        self.last_error: Optional[Exception] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self, now: Optional[datetime] = None) -> int:
        """Run one sweep. Never raises; failures are logged and retried next run."""
        with self._run_lock:
            db = None
            try:
                db = self._session_factory()
                archived = archive_stale_rides(db, now or self._clock(), self._stale_after)
            except Exception as e:
                self.last_error = e
                logger.error("Archival sweep failed, will retry on the next run: %s", e, exc_info=True)
                return 0
            finally:
                if db is not None:
                    db.close()
                self.last_run_at = self._clock()

            self.last_error = None
            self.last_archived_count = archived
            logger.info("Archival sweep archived %d ride(s)", archived)
            return archived

    def start(self) -> None:
        if self.is_running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._loop, name="ride-archival-sweeper", daemon=True)
        self._thread.start()
        logger.info("Started archival sweeper (interval: %s, stale after: %s)", self._interval, self._stale_after)

    def stop(self, timeout: Optional[float] = 10.0) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logger.warning("Archival sweeper still finishing a sweep after %ss", timeout)
                return
            self._thread = None
        logger.info("Stopped archival sweeper")

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self.run_once()
            if self._stop_event.wait(self._interval.total_seconds()):
                break
