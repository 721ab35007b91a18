# scanner.py

from __future__ import annotations

import logging
from typing import Any, Iterator, List, Sequence, Tuple

from results import CellWrite, FailureKind, Failure, Outcome, ScanReport
from rubric import DEFAULT_CRITERIA, TEAM_COLUMN, TOTAL_COLUMN, TOTAL_HEADER, Criterion
from scorer import RubricScorer
from sheets import a1, column_index, column_letter

logger = logging.getLogger(__name__)


def _cell(row: Sequence[Any], index: int) -> str:
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index])


def _contiguous(columns: Sequence[str]) -> Tuple[str, str] | None:
    indices = sorted(column_index(c) for c in columns)
    if indices != list(range(indices[0], indices[0] + len(indices))):
        return None
    return column_letter(indices[0]), column_letter(indices[-1])


class Scanner:
    """Finds unscored answers in the response sheet and scores them one by one.

    A score cell holding any value, "0" included, counts as scored, so running
    `scan()` repeatedly only ever touches new answers.
    """

    def __init__(
        self,
        store,
        scorer: RubricScorer,
        *,
        responses_sheet: str = "Form Responses 1",
        criteria: Sequence[Criterion] = DEFAULT_CRITERIA,
        team_column: str = TEAM_COLUMN,
        total_column: str = TOTAL_COLUMN,
    ) -> None:
        self.store = store
        self.scorer = scorer
        self.responses_sheet = responses_sheet
        self.criteria = list(criteria)
        self.team_column = team_column
        self.total_column = total_column

    # ---------- Layout ----------

    @property
    def table_range(self) -> str:
        columns = [self.team_column, self.total_column]
        for criterion in self.criteria:
            columns += [criterion.answer_column, criterion.score_column]
        last = max(column_index(c) for c in columns)
        return a1(self.responses_sheet, f"A:{column_letter(last)}")

    def total_formula(self, row_number: int) -> str:
        score_columns = [c.score_column for c in self.criteria]
        span = _contiguous(score_columns)
        if span:
            first, last = span
            return f"=SUM({first}{row_number}:{last}{row_number})"
        cells = ",".join(f"{column}{row_number}" for column in score_columns)
        return f"=SUM({cells})"

    def fetch_rows(self) -> List[List[Any]]:
        return self.store.read_range(self.table_range)

    def pending_cells(
        self, rows: Sequence[Sequence[Any]]
    ) -> Iterator[Tuple[int, Criterion, str]]:
        """Yield (sheet row, criterion, answer) for every answer without a score."""
        for offset, row in enumerate(rows[1:], start=2):
            for criterion in self.criteria:
                answer = _cell(row, column_index(criterion.answer_column))
                existing = _cell(row, column_index(criterion.score_column))
                if answer and existing == "":
                    yield offset, criterion, answer

    # ---------- Operations ----------

    def scan(self) -> ScanReport:
        logger.info("Checking for new responses...")
        report = ScanReport()
        try:
            rows = self.fetch_rows()
        except Exception as exc:
            logger.error("Error fetching responses: %s", exc)
            report.aborted = True
            report.failures.append(
                Failure(FailureKind.FETCH, str(exc), location=self.table_range)
            )
            return report

        if len(rows) < 2:
            return report

        for row_number, criterion, answer in list(self.pending_cells(rows)):
            cell = f"{criterion.score_column}{row_number}"
            logger.info("Processing response for row %d, %s", row_number, criterion.name)
            try:
                score = self.scorer.score(answer)
                self.store.write_range(a1(self.responses_sheet, cell), [[score]])
            except Exception as exc:
                logger.error("Error updating score in cell %s: %s", cell, exc)
                report.failures.append(Failure(FailureKind.CELL, str(exc), location=cell))
                continue
            logger.info("Updated score %d in cell %s", score, cell)
            report.writes.append(CellWrite(row=row_number, column=criterion.score_column, value=score))
        return report

    def fill_totals(self) -> ScanReport:
        """Put the total formula into every response row that lacks one."""
        report = ScanReport()
        try:
            rows = self.fetch_rows()
        except Exception as exc:
            logger.error("Error fetching responses: %s", exc)
            report.aborted = True
            report.failures.append(
                Failure(FailureKind.FETCH, str(exc), location=self.table_range)
            )
            return report

        total_index = column_index(self.total_column)
        content_columns = [self.team_column] + [c.answer_column for c in self.criteria]
        for row_number, row in enumerate(rows[1:], start=2):
            if _cell(row, total_index) != "":
                continue
            if not any(_cell(row, column_index(c)) for c in content_columns):
                continue
            cell = f"{self.total_column}{row_number}"
            formula = self.total_formula(row_number)
            try:
                self.store.write_range(a1(self.responses_sheet, cell), [[formula]], formulas=True)
            except Exception as exc:
                logger.error("Error writing total in cell %s: %s", cell, exc)
                report.failures.append(Failure(FailureKind.CELL, str(exc), location=cell))
                continue
            report.writes.append(CellWrite(row=row_number, column=self.total_column, value=formula))
        return report

    def ensure_headers(self) -> Outcome:
        """Write the score and total labels into row 1."""
        labels = {c.score_column: c.header for c in self.criteria}
        labels[self.total_column] = TOTAL_HEADER
        try:
            span = _contiguous(list(labels))
            if span:
                first, last = span
                ordered = sorted(labels, key=column_index)
                self.store.write_range(
                    a1(self.responses_sheet, f"{first}1:{last}1"),
                    [[labels[column] for column in ordered]],
                )
            else:
                for column, label in labels.items():
                    self.store.write_range(a1(self.responses_sheet, f"{column}1"), [[label]])
        except Exception as exc:
            logger.error("Error adding headers: %s", exc)
            return Outcome.failed(FailureKind.HEADERS, str(exc))
        return Outcome.success()
