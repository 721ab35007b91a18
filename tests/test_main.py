"""
Tests for the process entry point.
"""

import main as main_module
import settings as settings_module
from fakes import FakeSheetStore
from scorer import RubricScorer
from settings import Settings
from supervisor import Supervisor


def test_missing_configuration_exits_with_status_2(monkeypatch):
    monkeypatch.setattr(settings_module, "load_dotenv", lambda: None)
    monkeypatch.delenv("SPREADSHEET_ID", raising=False)

    assert main_module.main() == 2


def test_build_supervisor_wires_settings(monkeypatch):
    store = FakeSheetStore()
    opened = []

    def fake_from_service_account(credentials_file, spreadsheet_id):
        opened.append((credentials_file, spreadsheet_id))
        return store

    monkeypatch.setattr(
        main_module.GoogleSheetStore, "from_service_account", staticmethod(fake_from_service_account)
    )
    settings = Settings.from_env(
        {
            "SPREADSHEET_ID": "sheet-123",
            "OPENAI_API_KEY": "sk-test",
            "RESPONSES_SHEET": "Answers",
            "DASHBOARD_SHEET": "Board",
            "POLL_INTERVAL_SECONDS": "10",
        }
    )

    supervisor = main_module.build_supervisor(settings)

    assert isinstance(supervisor, Supervisor)
    assert opened == [("credentials.json", "sheet-123")]
    assert supervisor.scanner.store is store
    assert supervisor.scanner.responses_sheet == "Answers"
    assert isinstance(supervisor.scanner.scorer, RubricScorer)
    assert supervisor.dashboard.dashboard_sheet == "Board"
    assert supervisor.poller.interval == 10.0


def test_main_returns_supervisor_exit_code(monkeypatch):
    monkeypatch.setattr(settings_module, "load_dotenv", lambda: None)
    monkeypatch.setenv("SPREADSHEET_ID", "sheet-123")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    class StubSupervisor:
        def start(self):
            return 1

    monkeypatch.setattr(main_module, "build_supervisor", lambda settings: StubSupervisor())

    assert main_module.main() == 1
