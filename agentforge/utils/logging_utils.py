"""Logging utilities for AgentForge."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

# Default logs directory, created on first setup_logging() call
LOGS_DIR = Path("logs")


def setup_logging(
    level: int | str = logging.INFO,
    log_dir: Path | str | None = None,
) -> logging.Logger:
    """Setup logging configuration for AgentForge.

    Args:
        level: Console logging level (default: INFO)
        log_dir: Directory for the detailed log file (default: ./logs)

    Returns:
        Configured logger instance
    """
    logs_dir = Path(log_dir) if log_dir else LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / f"agentforge_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    # Root logger for the agentforge hierarchy
    logger = logging.getLogger("agentforge")
    logger.setLevel(logging.DEBUG)  # Capture all child logs; handlers filter
    logger.propagate = False

    logger.handlers = []

    # File handler (detailed logs)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    file_handler.setFormatter(file_formatter)

    # Console handler (user-friendly)
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_formatter = logging.Formatter("%(levelname)s: %(message)s")
    console_handler.setFormatter(console_formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    logger.info("=" * 80)
    logger.info("AgentForge session started")
    logger.info(f"Log file: {log_file}")
    logger.info("=" * 80)

    return logger


def log_gateway_call(
    logger: logging.Logger,
    provider: str,
    model_id: str,
    message_count: int,
    duration_ms: Optional[float] = None,
) -> None:
    """Log a reasoning provider call.

    Args:
        logger: Logger instance
        provider: Provider slot name (openai/claude)
        model_id: Model identifier sent to the provider
        message_count: Number of messages in the conversation
        duration_ms: Wall-clock duration, when the call has finished
    """
    if duration_ms is None:
        logger.info(f"Reasoning call: {provider}/{model_id} ({message_count} messages)")
    else:
        logger.info(f"Reasoning reply: {provider}/{model_id} in {duration_ms:.0f}ms")


def log_provider_failure(logger: logging.Logger, provider: str, reason: str, will_fallback: bool) -> None:
    """Log a failed provider attempt and whether another provider will be tried."""
    suffix = " - falling back" if will_fallback else ""
    logger.warning(f"Reasoning provider '{provider}' failed: {reason}{suffix}")


def log_task_execution(
    logger: logging.Logger,
    task_id: str,
    agent_name: str,
    success: bool,
    execution_time_ms: float,
    learnings: List[str],
    improvements: List[str],
) -> None:
    """Log the outcome of a task execution.

    Args:
        logger: Logger instance
        task_id: Task identifier
        agent_name: Executing agent's name
        success: Parsed success flag
        execution_time_ms: Total wall-clock duration
        learnings: Derived learnings
        improvements: Derived improvement suggestions
    """
    status = "✓ Success" if success else "✗ Failed"
    logger.info(f"Task {task_id} ({agent_name}) - {status} in {execution_time_ms:.0f}ms")
    logger.debug(f"  Learnings: {json.dumps(learnings, ensure_ascii=False)}")
    logger.debug(f"  Improvements: {json.dumps(improvements, ensure_ascii=False)}")


def log_research_topic(
    logger: logging.Logger,
    agent_name: str,
    topic: str,
    confidence: int,
    finding_count: int,
    recommendation_count: int,
) -> None:
    """Log the result of researching one topic."""
    logger.info(f"Research [{agent_name}] '{topic}': confidence {confidence}")
    logger.debug(f"  Findings: {finding_count}, recommendations: {recommendation_count}")


def log_triage_decision(
    logger: logging.Logger,
    agent_id: str,
    opportunity: Dict[str, Any],
    created: bool,
    reason: str = "",
) -> None:
    """Log whether an opportunity became an improvement request.

    Args:
        logger: Logger instance
        agent_id: Agent identifier
        opportunity: Opportunity summary (name, relevance, risk)
        created: Whether a pending request was created
        reason: Why the opportunity was skipped
    """
    name = str(opportunity.get("name", ""))[:60]
    if created:
        logger.info(
            f"Proposed improvement for {agent_id}: {name} "
            f"(relevance {opportunity.get('relevance')}, risk {opportunity.get('risk_level')})"
        )
    else:
        logger.debug(f"Skipped opportunity for {agent_id}: {name} - {reason}")


def log_error(logger: logging.Logger, error: Exception, context: str = "") -> None:
    """Log error with context.

    Args:
        logger: Logger instance
        error: Exception instance
        context: Additional context about where the error occurred
    """
    logger.error(f"Error occurred: {type(error).__name__}: {str(error)}")
    if context:
        logger.error(f"  Context: {context}")
    logger.exception("Full traceback:", exc_info=error)


def log_prompt(logger: logging.Logger, phase: str, prompt: str, max_length: int = 500) -> None:
    """Log a prompt being sent, truncated to max_length characters.

    Args:
        logger: Logger instance
        phase: Phase name (execute/research)
        prompt: Prompt content
        max_length: Maximum characters written to the log
    """
    preview = prompt if len(prompt) <= max_length else prompt[:max_length] + "... (truncated)"
    logger.debug(f"\n{'='*80}")
    logger.debug(f"Prompt for {phase}:")
    logger.debug(preview)
    logger.debug(f"{'='*80}\n")
