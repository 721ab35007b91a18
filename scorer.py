# scorer.py

from __future__ import annotations

import logging
import re
from typing import Any, Dict

from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import ChatPromptTemplate
from langchain_core.runnables import Runnable, RunnableSequence
from langchain_ollama import ChatOllama
from langchain_openai import ChatOpenAI

from rubric import MAX_SCORE, MIN_SCORE, MIN_WORDS, SCORING_PROMPT, SYSTEM_PROMPT

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def build_chat_model(
    *,
    provider: str = "openai",
    model: str = "gpt-4",
    api_key: str | None = None,
    base_url: str | None = None,
) -> Runnable:
    """Create a deterministic (temperature 0) chat model for the given provider."""
    if provider == "openai":
        llm_kwargs: Dict[str, Any] = {"model": model, "temperature": 0}
        if api_key is not None:
            llm_kwargs["api_key"] = api_key
        return ChatOpenAI(**llm_kwargs)
    if provider == "ollama":
        llm_kwargs = {"model": model, "temperature": 0}
        if base_url is not None:
            llm_kwargs["base_url"] = base_url
        return ChatOllama(**llm_kwargs)
    raise ValueError(f"Unknown scorer provider: {provider}")


def parse_score(reply: str) -> int | None:
    """Read a leading integer from a model reply; None unless it is 0-3."""
    match = _LEADING_INT.match(reply or "")
    if not match:
        return None
    score = int(match.group(1))
    if score < MIN_SCORE or score > MAX_SCORE:
        return None
    return score


def word_count(text: str) -> int:
    return len(text.split())


class RubricScorer:
    """Scores one free-text answer 0-3 against the fixed rubric.

    Never raises: a failed model call, an empty reply or anything that is not
    a 0-3 integer is logged and scored 0.
    """

    def __init__(self, llm: Runnable, *, min_words: int = MIN_WORDS) -> None:
        self._llm = llm
        self.min_words = min_words
        self._chain = self._build_chain()

    def _build_chain(self) -> RunnableSequence:
        prompt = ChatPromptTemplate.from_messages(
            [
                ("system", "{system_prompt}"),
                ("human", "{rubric}{response}"),
            ]
        )
        return prompt | self._llm | StrOutputParser()

    def score(self, text: str) -> int:
        words = word_count(text)
        if words < self.min_words:
            logger.debug("Answer has %d words, below the %d-word floor", words, self.min_words)
            return 0

        payload = {
            "system_prompt": SYSTEM_PROMPT,
            "rubric": SCORING_PROMPT,
            "response": text,
        }
        try:
            reply = self._chain.invoke(payload)
        except Exception as exc:
            logger.error("Error scoring response: %s", exc)
            return 0

        score = parse_score(reply)
        if score is None:
            logger.warning("Unparseable score reply %r, using 0", reply)
            return 0
        return score
