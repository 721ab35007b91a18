# rubric.py

from __future__ import annotations
from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Criterion:
    name: str
    answer_column: str
    score_column: str

    @property
    def header(self) -> str:
        return f"Score - {self.name}"


# Criterion (scenario) -> answer column -> score column, in round order
DEFAULT_CRITERIA: List[Criterion] = [
    Criterion(name="Customer Centricity", answer_column="C", score_column="H"),
    Criterion(name="Time to Market", answer_column="D", score_column="I"),
    Criterion(name="Culture", answer_column="E", score_column="J"),
    Criterion(name="Process Changes", answer_column="F", score_column="K"),
    Criterion(name="Partner Selection", answer_column="G", score_column="L"),
]

TEAM_COLUMN = "B"
TOTAL_COLUMN = "M"
TOTAL_HEADER = "Total Score"

MIN_WORDS = 30
MIN_SCORE = 0
MAX_SCORE = 3


SYSTEM_PROMPT = (
    "You are an AI scoring responses for a business game. You should only return "
    "a single number (0, 1, 2, or 3) based on the scoring criteria."
)

SCORING_PROMPT = """Please score the following response on a scale of 0 to 3 based on these criteria:

0 points: If the answer is fairly general and short, does not go into details and does not point to specific ideas or actions.

1 point: If the answer is very specific, with details and is at least 2 sentences long but not actionable (e.g., it's not clear what could be done next). The response describes a situation or problem without concrete steps to address it.

2 points: If the answer is very specific, with details and is at least 2 sentences long and actionable (i.e., it provides clear, numbered or specific steps that should be done next).

3 points: If the answer is very specific, actionable, AND explicitly contains the word "hypothesis" followed by a testable assumption and method to validate it.

Important Notes:
- The response must be at least 30 words long to be eligible for a score of 1 or more points
- For 3 points, the word "hypothesis" MUST be present
- For 2 points, there must be clear, actionable steps, not just description
- For 1 point, the answer must be detailed but may lack concrete actions

Please analyze carefully and only respond with a single number (0, 1, 2, or 3).

Response to evaluate: """
