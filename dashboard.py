"""Leaderboard sheet built from the response table.

The dashboard is rebuilt in full every time: the team list is re-derived from
the response sheet, the target range is cleared, and the whole table is
written again as live formulas that look scores up in the response sheet.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Sequence

from results import FailureKind, Outcome
from rubric import DEFAULT_CRITERIA, TEAM_COLUMN, Criterion
from sheets import a1, column_index, column_letter, quote_sheet

logger = logging.getLogger(__name__)

DASHBOARD_ROWS = 50
DASHBOARD_COLUMNS = 12
TAB_COLOR = {"red": 0.2, "green": 0.7, "blue": 0.9}

HEADER_BACKGROUND = {"red": 0.2, "green": 0.2, "blue": 0.2}
HEADER_TEXT = {"red": 1, "green": 1, "blue": 1}
AVERAGE_BACKGROUND = {"red": 0.9, "green": 0.9, "blue": 0.9}


def unique_teams(values: Iterable[Sequence[Any]]) -> List[str]:
    """Non-empty team names in first-seen order."""
    teams: Dict[str, None] = {}
    for row in values:
        if row and row[0]:
            teams.setdefault(str(row[0]), None)
    return list(teams)


def _escape(team: str) -> str:
    return team.replace('"', '""')


def dashboard_rows(
    teams: Sequence[str],
    criteria: Sequence[Criterion] = DEFAULT_CRITERIA,
    *,
    responses_sheet: str = "Form Responses 1",
    team_column: str = TEAM_COLUMN,
) -> List[List[str]]:
    """Header, one formula row per team, then the Average row."""
    rounds = len(criteria)
    first_round = column_letter(1)
    last_round = column_letter(rounds)
    total = column_letter(rounds + 1)
    last_data_row = len(teams) + 1
    source = quote_sheet(responses_sheet)
    team_index = column_index(team_column)

    rows: List[List[str]] = [
        ["Team Name"]
        + [f"Round {n}" for n in range(1, rounds + 1)]
        + ["Total Score", "Rank"]
    ]

    for row_number, team in enumerate(teams, start=2):
        lookups = []
        for criterion in criteria:
            offset = column_index(criterion.score_column) - team_index + 1
            lookups.append(
                f'=IFERROR(VLOOKUP("{_escape(team)}",{source}!'
                f"{team_column}:{criterion.score_column},{offset},FALSE),0)"
            )
        rows.append(
            [team]
            + lookups
            + [
                f"=SUM({first_round}{row_number}:{last_round}{row_number})",
                f"=RANK({total}{row_number},${total}$2:${total}${last_data_row})",
            ]
        )

    # with no team rows an AVERAGE range would wrap onto the Average row itself
    averages = [
        f"=AVERAGE({column_letter(i)}2:{column_letter(i)}{last_data_row})" if teams else ""
        for i in range(1, rounds + 2)
    ]
    rows.append(["Average"] + averages + [""])
    return rows


def format_requests(sheet_id: int, row_count: int, column_count: int) -> List[Dict[str, Any]]:
    """Header, body, Average-row and border formatting sized to the table."""
    last_data_row = row_count - 1

    def grid(start_row: int, end_row: int, start_col: int = 0) -> Dict[str, int]:
        return {
            "sheetId": sheet_id,
            "startRowIndex": start_row,
            "endRowIndex": end_row,
            "startColumnIndex": start_col,
            "endColumnIndex": column_count,
        }

    solid = {"style": "SOLID"}
    requests: List[Dict[str, Any]] = [
        {
            "repeatCell": {
                "range": grid(0, 1),
                "cell": {
                    "userEnteredFormat": {
                        "backgroundColor": HEADER_BACKGROUND,
                        "textFormat": {"foregroundColor": HEADER_TEXT, "bold": True},
                        "horizontalAlignment": "CENTER",
                    }
                },
                "fields": "userEnteredFormat(backgroundColor,textFormat,horizontalAlignment)",
            }
        },
    ]
    if last_data_row > 1:
        requests.append(
            {
                "repeatCell": {
                    "range": grid(1, last_data_row, start_col=1),
                    "cell": {"userEnteredFormat": {"horizontalAlignment": "CENTER"}},
                    "fields": "userEnteredFormat.horizontalAlignment",
                }
            }
        )
    requests += [
        {
            "repeatCell": {
                "range": grid(last_data_row, row_count),
                "cell": {
                    "userEnteredFormat": {
                        "backgroundColor": AVERAGE_BACKGROUND,
                        "textFormat": {"bold": True},
                        "horizontalAlignment": "CENTER",
                    }
                },
                "fields": "userEnteredFormat(backgroundColor,textFormat,horizontalAlignment)",
            }
        },
        {
            "updateBorders": {
                "range": grid(0, row_count),
                "top": solid,
                "bottom": solid,
                "left": solid,
                "right": solid,
            }
        },
    ]
    return requests


class DashboardBuilder:
    def __init__(
        self,
        store,
        *,
        responses_sheet: str = "Form Responses 1",
        dashboard_sheet: str = "Dashboard",
        criteria: Sequence[Criterion] = DEFAULT_CRITERIA,
        team_column: str = TEAM_COLUMN,
    ) -> None:
        self.store = store
        self.responses_sheet = responses_sheet
        self.dashboard_sheet = dashboard_sheet
        self.criteria = list(criteria)
        self.team_column = team_column

    def ensure_sheet(self) -> int:
        sheet_id = self.store.find_sheet_id(self.dashboard_sheet)
        if sheet_id is not None:
            logger.info("Found existing %s sheet", self.dashboard_sheet)
            return sheet_id
        return self.store.add_sheet(
            self.dashboard_sheet,
            rows=DASHBOARD_ROWS,
            cols=DASHBOARD_COLUMNS,
            tab_color=TAB_COLOR,
        )

    def load_teams(self) -> List[str]:
        column = self.team_column
        values = self.store.read_range(a1(self.responses_sheet, f"{column}2:{column}"))
        return unique_teams(values)

    def build(self) -> Outcome:
        try:
            sheet_id = self.ensure_sheet()
            teams = self.load_teams()
            rows = dashboard_rows(
                teams,
                self.criteria,
                responses_sheet=self.responses_sheet,
                team_column=self.team_column,
            )
            last_column = column_letter(len(rows[0]) - 1)
            target = a1(self.dashboard_sheet, f"A1:{last_column}{len(rows)}")

            self.store.clear_range(target)
            self.store.write_range(target, rows, formulas=True)
            self.store.batch_update(format_requests(sheet_id, len(rows), len(rows[0])))
        except Exception as exc:
            logger.error("Error setting up dashboard: %s", exc)
            return Outcome.failed(FailureKind.DASHBOARD, str(exc), location=self.dashboard_sheet)

        logger.info("Dashboard rebuilt with %d teams", len(teams))
        return Outcome.success()
