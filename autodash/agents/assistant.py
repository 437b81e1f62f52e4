"""Conversational chart assistant backed by a LangChain language model."""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from langchain_core.language_models import BaseLanguageModel
from langchain_openai import ChatOpenAI

from ..config import Settings
from ..domain.charts import ChartSpec
from ..domain.merge import merge_charts
from ..domain.records import Row
from .completion import PROMPT_SAMPLE_ROWS, build_completion_prompt, parse_completion_response

logger = logging.getLogger(__name__)

ERROR_MESSAGE = "I'm sorry, I encountered an error while processing your request. Please try again."


@dataclass
class AssistantReply:
    response: str
    charts: List[ChartSpec]
    proposals: List[ChartSpec] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def create_chat_model(settings: Settings) -> ChatOpenAI:
    if not settings.openai_api_key:
        raise RuntimeError("Missing required environment variable: OPENAI_API_KEY")
    return ChatOpenAI(
        model=settings.openai_model,
        temperature=settings.temperature,
        timeout=settings.completion_timeout,
        api_key=settings.openai_api_key,
    )


def _message_text(result: Any) -> str:
    content = getattr(result, "content", result)
    if isinstance(content, list):
        parts = [part.get("text", "") if isinstance(part, dict) else str(part) for part in content]
        return "".join(parts)
    return str(content or "")


class ChartAssistant:
    """Sends a question plus a row sample to the model and merges its charts."""

    def __init__(
        self,
        *,
        llm: BaseLanguageModel,
        timeout: Optional[float] = 60.0,
        sample_size: int = PROMPT_SAMPLE_ROWS,
    ) -> None:
        self.llm = llm
        self.timeout = timeout
        self.sample_size = sample_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChartAssistant":
        return cls(
            llm=create_chat_model(settings),
            timeout=settings.completion_timeout,
            sample_size=settings.sample_size,
        )

    # -----------------------------
    # Completion calls
    # -----------------------------
    def _invoke(self, prompt: str) -> str:
        if self.timeout is None:
            return _message_text(self.llm.invoke(prompt))
        pool = ThreadPoolExecutor(max_workers=1)
        try:
            future = pool.submit(self.llm.invoke, prompt)
            return _message_text(future.result(timeout=self.timeout))
        except FutureTimeout as exc:
            raise TimeoutError(f"Completion timed out after {self.timeout}s") from exc
        finally:
            pool.shutdown(wait=False)

    async def _ainvoke(self, prompt: str) -> str:
        try:
            result = await asyncio.wait_for(self.llm.ainvoke(prompt), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            raise TimeoutError(f"Completion timed out after {self.timeout}s") from exc
        return _message_text(result)

    # -----------------------------
    # Reconciliation
    # -----------------------------
    def _failure(self, charts: Sequence[ChartSpec], exc: Exception) -> AssistantReply:
        logger.error("Chart assistant request failed: %s", exc, exc_info=exc)
        return AssistantReply(response=ERROR_MESSAGE, charts=list(charts), error=str(exc) or type(exc).__name__)

    def _reconcile(self, raw: str, charts: Sequence[ChartSpec]) -> AssistantReply:
        if not raw.strip():
            return self._failure(charts, ValueError("Empty response from completion backend"))
        completion = parse_completion_response(raw)
        merged = merge_charts(charts, completion.charts) if completion.charts else list(charts)
        return AssistantReply(response=completion.response, charts=merged, proposals=completion.charts)

    # -----------------------------
    # Public API
    # -----------------------------
    def answer(self, query: str, rows: Sequence[Row], charts: Sequence[ChartSpec]) -> AssistantReply:
        if not query.strip():
            return AssistantReply(response="", charts=list(charts))
        prompt = build_completion_prompt(query, rows, self.sample_size)
        try:
            raw = self._invoke(prompt)
        except Exception as exc:
            return self._failure(charts, exc)
        return self._reconcile(raw, charts)

    async def aanswer(self, query: str, rows: Sequence[Row], charts: Sequence[ChartSpec]) -> AssistantReply:
        if not query.strip():
            return AssistantReply(response="", charts=list(charts))
        prompt = build_completion_prompt(query, rows, self.sample_size)
        try:
            raw = await self._ainvoke(prompt)
        except Exception as exc:
            return self._failure(charts, exc)
        return self._reconcile(raw, charts)
