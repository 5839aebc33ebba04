"""Preview and commit operations offered to the web layer."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol

import requests

from standup.arbitrator import extract
from standup.config import DEFAULT_MODEL, Config
from standup.errors import InvalidInput
from standup.generation import GenerationAdapter
from standup.models import ExtractionResult, RawInput, Report
from standup.sections import render_report

logger = logging.getLogger(__name__)

AVAILABLE_MODELS = [
    {"id": DEFAULT_MODEL, "name": "Llama 3.2 3B Instruct"},
    {"id": "Qwen/Qwen2.5-72B-Instruct", "name": "Qwen 2.5 72B Instruct"},
]


def list_models() -> list[dict]:
    """Return the selectable models, default first."""
    return [dict(m) for m in AVAILABLE_MODELS]


def default_title(date: datetime) -> str:
    return f"Daily Report - {date.month}/{date.day}/{date.year}"


class ReportSink(Protocol):
    """Persistence collaborator that receives committed reports."""

    def save(self, report: Report) -> dict:
        ...


class HttpReportSink:
    """Hand committed reports to a REST endpoint.

    Reads the endpoint and API key from config. Skips silently if not configured.
    """

    def __init__(self, endpoint: str, api_key: str = "", timeout: float = 10):
        self.endpoint = endpoint.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Config) -> HttpReportSink:
        return cls(config.reports_endpoint, config.reports_api_key)

    def save(self, report: Report) -> dict:
        if not self.endpoint:
            logger.debug("Report endpoint not configured, skipping save")
            return {"status": "skipped", "reason": "not configured"}

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        url = f"{self.endpoint}/reports"

        try:
            resp = requests.post(
                url,
                headers=headers,
                json=report.model_dump(mode="json"),
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Failed to store report %r: %s", report.title, e)
            return {"status": "error", "error": str(e)}

        return {"status": "saved", "code": resp.status_code}


async def preview(
    raw_input: str | RawInput,
    model: str | None = None,
    *,
    adapter: GenerationAdapter | None = None,
    config: Config | None = None,
) -> ExtractionResult:
    """Extract sections without persisting anything."""
    config = config or Config()
    return await extract(raw_input, model or config.model, adapter=adapter, config=config)


async def commit(
    raw_input: str | RawInput,
    model: str | None = None,
    *,
    sink: ReportSink,
    adapter: GenerationAdapter | None = None,
    config: Config | None = None,
    title: str | None = None,
    approved: ExtractionResult | None = None,
) -> tuple[Report, dict]:
    """
    Extract (or reuse an approved preview) and hand the report to the sink.

    Args:
        raw_input: The update text or RawInput
        model: Model identifier; defaults to config.model
        sink: Persistence collaborator
        adapter: Generation adapter, used only when nothing was approved
        config: Pipeline configuration
        title: Report title; defaults to "Daily Report - M/D/YYYY"
        approved: A preview result the user accepted; skips extraction

    Returns:
        Tuple of (report, sink status dict)

    Raises:
        InvalidInput: The update is empty or whitespace-only
    """
    config = config or Config()
    if isinstance(raw_input, str):
        raw_input = RawInput(accomplishments=raw_input)
    if not raw_input.accomplishments.strip():
        raise InvalidInput("accomplishments must not be empty")

    result = approved
    if result is None:
        result = await extract(
            raw_input, model or config.model, adapter=adapter, config=config
        )

    now = datetime.now()
    title = title or default_title(now)
    sections = result.sections
    report = Report(
        title=title,
        date=now,
        raw_inputs=raw_input,
        formatted_report=render_report(sections, title, now),
        completed=sections.completed,
        in_progress=sections.in_progress,
        support=sections.support,
        llm_model=result.model or model or config.model,
        method=result.method,
    )

    status = sink.save(report)
    logger.info(f"Committed {report.title!r} ({report.method}): {status.get('status')}")
    return report, status
