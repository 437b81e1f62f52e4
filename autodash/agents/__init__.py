"""Conversational layer around the AI completion backend."""

from .assistant import AssistantReply, ChartAssistant, create_chat_model
from .completion import (
    ChartProposal,
    CompletionResponse,
    build_completion_prompt,
    parse_completion_response,
    suggest_queries,
)
from .context import DashboardContext

__all__ = [
    "AssistantReply",
    "ChartAssistant",
    "create_chat_model",
    "ChartProposal",
    "CompletionResponse",
    "build_completion_prompt",
    "parse_completion_response",
    "suggest_queries",
    "DashboardContext",
]
