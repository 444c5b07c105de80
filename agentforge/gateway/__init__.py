"""Reasoning gateway and reply parsing."""

from .parsing import (
    ResearchResult,
    TaskReply,
    interpret_research_reply,
    interpret_task_reply,
    parse_structured_reply,
)
from .reasoning import (
    FALLBACK_RESPONSE,
    CompletionOptions,
    ReasoningGateway,
    ReasoningReply,
    to_langchain_messages,
)

__all__ = [
    "FALLBACK_RESPONSE",
    "CompletionOptions",
    "ReasoningGateway",
    "ReasoningReply",
    "ResearchResult",
    "TaskReply",
    "interpret_research_reply",
    "interpret_task_reply",
    "parse_structured_reply",
    "to_langchain_messages",
]
