import logging
import sys

from dashboard import DashboardBuilder
from scanner import Scanner
from scorer import RubricScorer, build_chat_model
from settings import Settings
from sheets import GoogleSheetStore
from supervisor import Supervisor

logger = logging.getLogger(__name__)


def build_supervisor(settings: Settings) -> Supervisor:
    criteria = settings.load_criteria()

    store = GoogleSheetStore.from_service_account(
        settings.credentials_file, settings.spreadsheet_id
    )
    llm = build_chat_model(
        provider=settings.provider,
        model=settings.model,
        api_key=settings.openai_api_key,
        base_url=settings.ollama_base_url,
    )
    scanner = Scanner(
        store,
        RubricScorer(llm),
        responses_sheet=settings.responses_sheet,
        criteria=criteria,
    )
    dashboard = DashboardBuilder(
        store,
        responses_sheet=settings.responses_sheet,
        dashboard_sheet=settings.dashboard_sheet,
        criteria=criteria,
    )
    return Supervisor(
        store,
        scanner,
        dashboard,
        poll_interval=settings.poll_interval,
        startup_retries=settings.startup_retries,
    )


def main() -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # ------------------------------------------------------------
    # 1. Configuration (.env + environment, optional criteria file)
    # ------------------------------------------------------------
    try:
        settings = Settings.from_env()
        logging.getLogger().setLevel(settings.log_level)
        supervisor = build_supervisor(settings)
    except (ValueError, FileNotFoundError) as exc:
        logger.error("Configuration error: %s", exc)
        return 2

    # ------------------------------------------------------------
    # 2. Connect, write headers, build the dashboard, then poll
    # ------------------------------------------------------------
    logger.info(
        "Scoring %r every %.0fs with %s/%s",
        settings.responses_sheet,
        settings.poll_interval,
        settings.provider,
        settings.model,
    )
    try:
        return supervisor.start()
    except KeyboardInterrupt:
        logger.info("Stopped")
        return 0


if __name__ == "__main__":
    sys.exit(main())
