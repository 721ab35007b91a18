# settings.py

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List, Mapping

from dotenv import load_dotenv

from criteria_loader import load_criteria
from rubric import DEFAULT_CRITERIA, Criterion

PROVIDERS = ("openai", "ollama")


@dataclass(frozen=True)
class Settings:
    spreadsheet_id: str
    credentials_file: str = "credentials.json"
    openai_api_key: str | None = None
    provider: str = "openai"
    model: str = "gpt-4"
    ollama_base_url: str | None = None
    responses_sheet: str = "Form Responses 1"
    dashboard_sheet: str = "Dashboard"
    poll_interval: float = 30.0
    startup_retries: int = 5
    criteria_file: str | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from the process environment (after loading `.env`)."""
        if environ is None:
            load_dotenv()
            environ = os.environ

        def get(name: str) -> str | None:
            value = environ.get(name, "").strip()
            return value or None

        spreadsheet_id = get("SPREADSHEET_ID")
        if not spreadsheet_id:
            raise ValueError("SPREADSHEET_ID is not set")

        provider = (get("SCORER_PROVIDER") or "openai").lower()
        if provider not in PROVIDERS:
            raise ValueError(
                f"SCORER_PROVIDER must be one of {', '.join(PROVIDERS)}, got {provider!r}"
            )
        api_key = get("OPENAI_API_KEY")
        if provider == "openai" and not api_key:
            raise ValueError("OPENAI_API_KEY is required for the openai provider")

        try:
            poll_interval = float(get("POLL_INTERVAL_SECONDS") or 30)
            startup_retries = int(get("STARTUP_RETRIES") or 5)
        except ValueError as exc:
            raise ValueError(f"Invalid numeric setting: {exc}") from exc
        if poll_interval <= 0:
            raise ValueError("POLL_INTERVAL_SECONDS must be positive")
        if startup_retries < 1:
            raise ValueError("STARTUP_RETRIES must be at least 1")

        return cls(
            spreadsheet_id=spreadsheet_id,
            credentials_file=get("GOOGLE_APPLICATION_CREDENTIALS") or "credentials.json",
            openai_api_key=api_key,
            provider=provider,
            model=get("SCORER_MODEL") or "gpt-4",
            ollama_base_url=get("OLLAMA_BASE_URL"),
            responses_sheet=get("RESPONSES_SHEET") or "Form Responses 1",
            dashboard_sheet=get("DASHBOARD_SHEET") or "Dashboard",
            poll_interval=poll_interval,
            startup_retries=startup_retries,
            criteria_file=get("CRITERIA_FILE"),
            log_level=(get("LOG_LEVEL") or "INFO").upper(),
        )

    def load_criteria(self) -> List[Criterion]:
        if not self.criteria_file:
            return list(DEFAULT_CRITERIA)
        return load_criteria(self.criteria_file).criteria
