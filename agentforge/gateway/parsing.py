"""Lenient extraction of structured data from free-text model replies.

The reasoning collaborator is asked to answer in JSON but is never forced to.
Everything that turns its text into fields lives here, so call sites never
carry their own try/except parsing.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from json_repair import repair_json

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE = 50
DEFAULT_PREVIEW_CHARS = 200

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n?(.*?)```", re.DOTALL)
_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


@dataclass(frozen=True, slots=True)
class TaskReply:
    """Fields of a task execution reply."""

    success: bool
    output: str
    reasoning: str
    tools_used: Tuple[str, ...] = field(default_factory=tuple)
    learnings: Tuple[str, ...] = field(default_factory=tuple)
    suggested_improvements: Tuple[str, ...] = field(default_factory=tuple)
    structured: bool = True


@dataclass(frozen=True, slots=True)
class ResearchResult:
    """Outcome of researching one topic."""

    topic: str
    findings: Tuple[str, ...]
    recommendations: Tuple[str, ...]
    sources: Tuple[str, ...]
    confidence: int


def _candidates(text: str) -> List[str]:
    """Substrings that may hold the JSON object, most specific first."""
    candidates = [match.strip() for match in _FENCE_RE.findall(text)]
    stripped = text.strip()
    candidates.append(stripped)
    embedded = _OBJECT_RE.search(stripped)
    if embedded and embedded.group(0) != stripped:
        candidates.append(embedded.group(0))
    return [c for c in candidates if c]


def parse_structured_reply(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Extract a JSON object from a model reply.

    Accepts, in order: JSON inside a markdown code fence, a bare JSON object,
    a JSON object embedded in surrounding prose, and slightly broken JSON
    (trailing commas, single quotes, missing closing braces) repaired with
    json_repair.

    Returns:
        The parsed object, or None when no JSON object can be recovered
        (including replies that are valid JSON but not an object)
    """
    if not text or not isinstance(text, str):
        return None

    candidates = _candidates(text)

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(parsed, dict):
            return parsed

    for candidate in candidates:
        if "{" not in candidate:
            continue
        repaired = repair_json(candidate[candidate.index("{"):], return_objects=True)
        if isinstance(repaired, dict) and repaired:
            logger.debug("Recovered structured reply with json_repair")
            return repaired

    return None


def _string_list(value: Any) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(item) for item in value if item is not None and str(item).strip())
    if isinstance(value, str):
        return (value,) if value.strip() else ()
    return (str(value),)


def _flag(value: Any) -> bool:
    """Only an explicit false means failure."""
    if value is False:
        return False
    if isinstance(value, str) and value.strip().lower() in ("false", "no", "0"):
        return False
    return True


def _confidence(value: Any) -> int:
    if isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    try:
        number = float(str(value).strip().rstrip("%")) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if number != number:  # NaN
        return DEFAULT_CONFIDENCE
    return int(round(max(0.0, min(100.0, number))))


def interpret_task_reply(text: str) -> TaskReply:
    """Turn a task execution reply into TaskReply fields.

    Unparseable text counts as a completed task whose output is the raw text.
    """
    parsed = parse_structured_reply(text)
    if parsed is None:
        return TaskReply(
            success=True,
            output=text,
            reasoning="Task completed",
            structured=False,
        )

    output = parsed.get("output")
    if isinstance(output, (dict, list)):
        output = json.dumps(output, ensure_ascii=False)
    reasoning = parsed.get("reasoning")

    return TaskReply(
        success=_flag(parsed.get("success", True)),
        output=str(output) if output else text,
        reasoning=str(reasoning) if reasoning else "Task executed successfully",
        tools_used=_string_list(parsed.get("toolsUsed", parsed.get("tools_used"))),
        learnings=_string_list(parsed.get("learnings")),
        suggested_improvements=_string_list(
            parsed.get("suggestedImprovements", parsed.get("suggested_improvements"))
        ),
    )


def interpret_research_reply(topic: str, text: str, preview_chars: int = DEFAULT_PREVIEW_CHARS) -> ResearchResult:
    """Turn a research reply into a ResearchResult.

    Unparseable text becomes a single finding holding its first
    ``preview_chars`` characters, with confidence 50.
    """
    parsed = parse_structured_reply(text)
    if parsed is None:
        preview = (text or "").strip()[:preview_chars]
        return ResearchResult(
            topic=topic,
            findings=(preview,) if preview else (),
            recommendations=(),
            sources=(),
            confidence=DEFAULT_CONFIDENCE,
        )

    return ResearchResult(
        topic=topic,
        findings=_string_list(parsed.get("findings")),
        recommendations=_string_list(parsed.get("recommendations")),
        sources=_string_list(parsed.get("sources")),
        confidence=_confidence(parsed.get("confidence", DEFAULT_CONFIDENCE)),
    )
