"""Utilities for loading criterion layouts from JSON or YAML files."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Sequence

import yaml

from rubric import TEAM_COLUMN, TOTAL_COLUMN, Criterion
from sheets import column_index


@dataclass(frozen=True)
class CriteriaDefinition:
    """Complete criterion layout returned by loaders."""

    name: str
    description: str
    criteria: List[Criterion]


def _column(value: Any, field: str, idx: int) -> str:
    letter = str(value).strip().upper()
    if not letter.isalpha() or not letter.isascii():
        raise ValueError(f"Criterion #{idx} has an invalid {field}: {value!r}")
    return letter


def _check_reserved(criterion: Criterion, idx: int) -> None:
    reserved = {TEAM_COLUMN: "team", TOTAL_COLUMN: "total"}
    for field in ("answer_column", "score_column"):
        letter = getattr(criterion, field)
        if letter in reserved:
            raise ValueError(
                f"Criterion #{idx} uses the {reserved[letter]} column {letter} as its {field}"
            )
    # dashboard lookups search right of the team column
    if column_index(criterion.score_column) <= column_index(TEAM_COLUMN):
        raise ValueError(
            f"Criterion #{idx} score_column {criterion.score_column} must be right of "
            f"the team column {TEAM_COLUMN}"
        )


def _coerce_criteria(raw_items: Sequence[Mapping[str, Any]]) -> List[Criterion]:
    criteria: List[Criterion] = []
    for idx, item in enumerate(raw_items, start=1):
        missing = [
            key for key in ("name", "answer_column", "score_column") if key not in item
        ]
        if missing:
            raise ValueError(
                f"Criterion #{idx} is missing required fields: {', '.join(missing)}"
            )
        criterion = Criterion(
            name=str(item["name"]),
            answer_column=_column(item["answer_column"], "answer_column", idx),
            score_column=_column(item["score_column"], "score_column", idx),
        )
        _check_reserved(criterion, idx)
        criteria.append(criterion)
    if not criteria:
        raise ValueError("Criteria layout must include at least one criterion")

    answers = [c.answer_column for c in criteria]
    scores = [c.score_column for c in criteria]
    if len(set(answers)) != len(answers) or len(set(scores)) != len(scores):
        raise ValueError("Criteria layout reuses an answer or score column")
    if set(answers) & set(scores):
        raise ValueError("A column cannot be both an answer and a score column")
    return criteria


def _load_raw(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Criteria file not found: {path}")
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    if path.suffix.lower() in {".yaml", ".yml"}:
        return yaml.safe_load(text)
    raise ValueError(f"Unsupported criteria file type: {path.suffix}")


def load_criteria(path: str | Path) -> CriteriaDefinition:
    path = Path(path)
    raw = _load_raw(path)

    if isinstance(raw, Mapping):
        if "items" not in raw:
            raise ValueError("Criteria file must contain an 'items' list")
        name = str(raw.get("name") or path.stem)
        description = str(raw.get("description") or "")
        criteria = _coerce_criteria(raw["items"])
    elif isinstance(raw, Sequence) and not isinstance(raw, str):
        name = path.stem
        description = ""
        criteria = _coerce_criteria(raw)  # type: ignore[arg-type]
    else:
        raise ValueError("Criteria file must be a list or an object with an 'items' list")

    return CriteriaDefinition(name=name, description=description, criteria=criteria)
