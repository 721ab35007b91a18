"""
Tests for startup and the polling loop.
"""

import logging
import threading

from dashboard import DashboardBuilder
from fakes import RESPONSES, FakeScorer
from results import FailureKind
from scanner import Scanner
from supervisor import Poller, Supervisor


def _supervisor(store, scorer=None, retries=1):
    scanner = Scanner(store, scorer or FakeScorer())
    return Supervisor(
        store,
        scanner,
        DashboardBuilder(store),
        poll_interval=0.01,
        startup_retries=retries,
        retry_factor=0,
    )


class TestPoller:
    def test_tick_runs_task(self):
        calls = []
        poller = Poller(lambda: calls.append(1), interval=1)

        assert poller.tick() is True
        assert calls == [1]

    def test_tick_from_another_thread_is_skipped_while_run_in_flight(self):
        started = threading.Event()
        release = threading.Event()
        calls = []

        def task():
            calls.append(1)
            started.set()
            release.wait(5)

        poller = Poller(task, interval=1)
        worker = threading.Thread(target=poller.tick)
        worker.start()
        assert started.wait(5)

        assert poller.tick() is False

        release.set()
        worker.join(5)
        assert calls == [1]
        assert poller.tick() is True

    def test_reentrant_tick_from_inside_task_is_skipped(self):
        results = []

        def task():
            results.append(poller.tick())

        poller = Poller(task, interval=1)
        poller.tick()

        assert results == [False]

    def test_task_exception_does_not_escape(self, caplog):
        def task():
            raise RuntimeError("boom")

        poller = Poller(task, interval=1)

        with caplog.at_level(logging.ERROR):
            assert poller.tick() is True
        assert "Scan cycle failed" in caplog.text

    def test_run_forever_until_stopped(self):
        calls = []

        def task():
            calls.append(1)
            if len(calls) == 3:
                poller.stop()

        poller = Poller(task, interval=0.001)
        poller.run_forever()

        assert len(calls) == 3

    def test_overrun_drops_missed_ticks(self, caplog):
        times = iter([0.0, 0.5])

        def task():
            poller.stop()

        poller = Poller(task, interval=0.1, clock=lambda: next(times))

        with caplog.at_level(logging.WARNING):
            poller.run_forever()
        assert "dropped" in caplog.text


class TestSupervisor:
    def test_check_connection_retries_then_succeeds(self, one_row_store):
        one_row_store.failing_reads = 2
        supervisor = _supervisor(one_row_store, retries=3)

        outcome = supervisor.check_connection()

        assert outcome.ok
        assert one_row_store.reads == [f"'{RESPONSES}'!A1:B1"] * 3

    def test_check_connection_gives_up(self, one_row_store):
        one_row_store.failing_reads = 5
        supervisor = _supervisor(one_row_store, retries=2)

        outcome = supervisor.check_connection()

        assert not outcome.ok
        assert outcome.failure.kind is FailureKind.CONNECTIVITY
        assert len(one_row_store.reads) == 2

    def test_start_without_connection_never_polls(self, one_row_store, monkeypatch):
        one_row_store.failing_reads = 1
        supervisor = _supervisor(one_row_store)
        polled = []
        monkeypatch.setattr(supervisor.poller, "run_forever", lambda: polled.append(True))

        assert supervisor.start() == 1
        assert polled == []
        assert one_row_store.writes == []
        assert one_row_store.added_sheets == []

    def test_start_bootstraps_then_polls(self, one_row_store, monkeypatch):
        supervisor = _supervisor(one_row_store)
        polled = []
        monkeypatch.setattr(supervisor.poller, "run_forever", lambda: polled.append(True))

        assert supervisor.start() == 0
        assert polled == [True]
        assert one_row_store.cell(RESPONSES, "M1") == "Total Score"
        assert one_row_store.cell("Dashboard", "A2") == "Alpha"

    def test_dashboard_failure_does_not_block_polling(self, one_row_store, monkeypatch):
        one_row_store.fail_batch_update = True
        supervisor = _supervisor(one_row_store)
        polled = []
        monkeypatch.setattr(supervisor.poller, "run_forever", lambda: polled.append(True))

        assert supervisor.start() == 0
        assert polled == [True]

    def test_run_cycle_scores_then_fills_totals(self, one_row_store):
        supervisor = _supervisor(one_row_store, scorer=FakeScorer(score=3))

        report = supervisor.run_cycle()

        assert [w.cell for w in report.writes] == ["H2", "I2", "J2", "K2", "L2"]
        assert one_row_store.written_cells() == ["H2", "I2", "J2", "K2", "L2", "M2"]
        assert one_row_store.cell(RESPONSES, "M2") == "=SUM(H2:L2)"

    def test_run_cycle_skips_totals_when_fetch_fails(self, one_row_store):
        one_row_store.failing_reads = 1
        supervisor = _supervisor(one_row_store)

        report = supervisor.run_cycle()

        assert report.aborted
        assert len(one_row_store.reads) == 1
        assert one_row_store.writes == []
