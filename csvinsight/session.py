"""Dataset session: holds the active profile across chat turns.

The session owns the re-profiling loop. An uploaded dataset is profiled, the
chat model's replies are scanned for payloads, and an accepted replacement
dataset swaps the profile out wholesale. A failed upload or rejected
replacement leaves the previous profile in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from langchain_core.messages import BaseMessage, HumanMessage

from csvinsight.config import DEFAULT_CONFIG, ProfilerConfig
from csvinsight.extractor import extract_payloads
from csvinsight.models import ChartSpec, DatasetProfile
from csvinsight.profiler import profile_csv
from csvinsight.tools.validation import summarize_issues

logger = logging.getLogger(__name__)

MAX_RETRIES = 3


@dataclass
class SessionReply:
    """What the UI shows for one model reply."""

    text: str
    chart: Optional[ChartSpec] = None
    dataset_replaced: bool = False
    notice: Optional[str] = None


def _message_text(message: Any) -> str:
    """Flatten a chat model reply into plain text."""
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    parts = []
    for part in content or []:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


class DatasetSession:
    """Current dataset and its profile, replaced as a whole on every change."""

    def __init__(self, config: Optional[ProfilerConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.name: Optional[str] = None
        self.profile: Optional[DatasetProfile] = None

    def upload(self, text: str, name: str = "dataset.csv") -> DatasetProfile:
        """Profile ``text`` and make it the active dataset.

        Raises:
            ParseFailure: If the text cannot be profiled; the previous
                dataset stays active.
        """
        profile = profile_csv(text, self.config)
        self.name = name
        self.profile = profile
        logger.info("Loaded %s with %d columns", name, len(profile.columns))
        return profile

    def can_analyze(self) -> bool:
        return self.profile is not None and self.profile.is_valid

    def gate_message(self) -> Optional[str]:
        """Message explaining why analysis is blocked, or None."""
        if self.profile is None:
            return "Upload a CSV file to begin."
        return summarize_issues(self.profile.issues, self.config.max_reported_issues)

    def apply_response(self, text: str) -> SessionReply:
        """Extract payloads from a model reply and apply any new dataset.

        A chart is withheld while the active dataset (after any replacement)
        has outstanding validation issues; the notice then carries the gate
        message.
        """
        extraction = extract_payloads(text, self.config)
        reply = SessionReply(text=extraction.text, chart=extraction.chart)

        if extraction.dataset_profile is not None:
            self.profile = extraction.dataset_profile
            reply.dataset_replaced = True
            logger.info("Dataset replaced from model reply (%d rows)", self.profile.row_count)
            reply.notice = summarize_issues(self.profile.issues, self.config.max_reported_issues)
        elif extraction.dataset_rejected:
            reply.notice = (
                "The updated dataset in this reply could not be parsed, so the current "
                f"dataset was kept ({extraction.dataset_error})."
            )

        if reply.chart is not None and self.profile is not None and not self.profile.is_valid:
            logger.info("Withholding chart: dataset has %d unresolved issue(s)", len(self.profile.issues))
            reply.chart = None
            reply.notice = reply.notice or self.gate_message()

        return reply

    def ask(self, llm: Any, messages: list[BaseMessage] | str) -> SessionReply:
        """Send ``messages`` to a chat model and apply its reply.

        Args:
            llm: A LangChain chat model (anything with ``invoke``).
            messages: Prepared messages, or a single user query.

        Raises:
            Exception: Whatever the model raised on its final attempt.
        """
        if isinstance(messages, str):
            messages = [HumanMessage(content=messages)]

        last_error: Exception | None = None
        for attempt in range(MAX_RETRIES):
            try:
                response = llm.invoke(messages)
                break
            except Exception as exc:
                last_error = exc
                logger.warning("Chat model call failed (attempt %d): %s", attempt + 1, exc)
        else:
            raise last_error  # type: ignore[misc]

        return self.apply_response(_message_text(response))
