# supervisor.py

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

import backoff

from dashboard import DashboardBuilder
from results import FailureKind, Outcome, ScanReport
from scanner import Scanner
from sheets import a1

logger = logging.getLogger(__name__)


class Poller:
    """Runs a task on a fixed cadence, never two runs at once.

    Ticks are anchored to the start time. If a run overruns one or more
    ticks, those ticks are dropped instead of queued.

    `run_forever` calls `tick()` inline, so it can never overlap itself; the
    lock only rejects `tick()` calls made from inside the task or from another
    thread while a run is in flight.
    """

    def __init__(
        self,
        task: Callable[[], object],
        interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.task = task
        self.interval = interval
        self.clock = clock
        self._running = threading.Lock()
        self._stopped = threading.Event()

    def tick(self) -> bool:
        if not self._running.acquire(blocking=False):
            logger.warning("Previous scan still running, skipping this tick")
            return False
        try:
            self.task()
        except Exception:
            logger.exception("Scan cycle failed")
        finally:
            self._running.release()
        return True

    def stop(self) -> None:
        self._stopped.set()

    def run_forever(self) -> None:
        next_run = self.clock()
        while not self._stopped.is_set():
            self.tick()
            next_run += self.interval
            now = self.clock()
            missed = 0
            while next_run <= now:
                next_run += self.interval
                missed += 1
            if missed:
                logger.warning("Scan overran the interval, dropped %d tick(s)", missed)
            self._stopped.wait(next_run - now)


class Supervisor:
    """Bootstraps the sheet and drives the periodic scan.

    The loop is only scheduled once the spreadsheet has answered a read;
    everything after that reports failures back here instead of raising.
    """

    def __init__(
        self,
        store,
        scanner: Scanner,
        dashboard: DashboardBuilder,
        *,
        poll_interval: float = 30.0,
        startup_retries: int = 5,
        retry_factor: float = 1.0,
    ) -> None:
        self.store = store
        self.scanner = scanner
        self.dashboard = dashboard
        self.startup_retries = startup_retries
        self.retry_factor = retry_factor
        self.poller = Poller(self.run_cycle, poll_interval)

    def check_connection(self) -> Outcome:
        read_header = backoff.on_exception(
            backoff.expo,
            Exception,
            max_tries=self.startup_retries,
            max_value=30,
            factor=self.retry_factor,
            logger=logger,
        )(self.store.read_range)
        try:
            values = read_header(a1(self.scanner.responses_sheet, "A1:B1"))
        except Exception as exc:
            logger.error("Error connecting to Google Sheets: %s", exc)
            return Outcome.failed(FailureKind.CONNECTIVITY, str(exc))
        logger.info("Successfully connected to Google Sheets!")
        logger.info("Header row: %s", values[0] if values else [])
        return Outcome.success()

    def run_cycle(self) -> ScanReport:
        report = self.scanner.scan()
        if not report.aborted:
            totals = self.scanner.fill_totals()
            report.failures.extend(totals.failures)
        _log_report(report)
        return report

    def start(self) -> int:
        """Run until the process is stopped; returns an exit code."""
        if not self.check_connection().ok:
            logger.error("Not starting the scan loop without a working connection")
            return 1

        _log_outcome("headers", self.scanner.ensure_headers())
        _log_outcome("dashboard", self.dashboard.build())

        self.poller.run_forever()
        return 0


def _log_outcome(step: str, outcome: Outcome) -> None:
    if outcome.ok:
        logger.info("Startup step %s done", step)
    elif outcome.failure is not None:
        logger.error("Startup step %s failed, continuing: %s", step, outcome.failure.describe())


def _log_report(report: ScanReport) -> None:
    if report.aborted:
        logger.error("Scan aborted, retrying on the next tick")
    if report.writes:
        logger.info("Scan wrote %d score(s)", len(report.writes))
    for failure in report.failures:
        logger.warning(failure.describe())
