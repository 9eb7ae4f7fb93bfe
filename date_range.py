"""Turn a user-supplied date phrase into a concrete DateRange.

Explicit ``YYYY-MM-DD`` input is parsed directly. Anything else goes to the
oracle, and when that fails the input is matched against a handful of
deterministic rules so a fetch never blocks on the language model.
"""

from __future__ import annotations

import calendar
import logging
import re
from datetime import date, timedelta
from typing import Any

from errors import InvalidDateFormat, MalformedOracleResponse
from models import Confidence, DateRange, DateSource
from oracle import Oracle, parse_json_object

LOGGER = logging.getLogger(__name__)

DEFAULT_WINDOW_DAYS = 30

_EXPLICIT_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_LAST_N_MONTHS_RE = re.compile(r"last (\d+) months?")
_THIS_YEAR_RE = re.compile(r"this year")
# Keeps "last 99999 months" inside the representable date range.
_MAX_MONTHS_BACK = 12 * 100

_PROMPT_TEMPLATE = """You are a date parsing assistant. Parse the following natural language date expression into a structured date range.

Current date: {today_iso} ({today_long})
Input: "{user_input}"

Convert this to a date range suitable for querying work items. Consider:
- The user wants to see work completed within this time period
- For phrases like "last 3 months", calculate from the current date backwards
- For quarters, use standard Q1 (Jan-Mar), Q2 (Apr-Jun), Q3 (Jul-Sep), Q4 (Oct-Dec)
- For "this year" or a bare year such as "2025", use the full year
- For "first half" or "second half", split the year accordingly

Respond ONLY with JSON in this exact format, no prose:
{{
  "start_date": "YYYY-MM-DD",
  "end_date": "YYYY-MM-DD",
  "confidence": "high|medium|low",
  "explanation": "Brief explanation of how you interpreted the input"
}}

If the input is ambiguous or unclear, use "low" confidence and make a reasonable assumption.
Always ensure start_date is before or equal to end_date.
"""


def shift_months(day: date, months: int) -> date:
    """Move ``day`` back by ``months`` calendar months, clamping to month end."""
    month_index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def build_date_prompt(user_input: str, today: date) -> str:
    return _PROMPT_TEMPLATE.format(
        today_iso=today.isoformat(),
        today_long=today.strftime("%A, %B %d, %Y"),
        user_input=user_input,
    )


def parse_date_response(content: str) -> DateRange:
    """Validate an oracle reply and convert it into an llm_parsed DateRange."""
    data = parse_json_object(content)
    start = _as_date(data.get("start_date"), "start_date")
    end = _as_date(data.get("end_date"), "end_date")
    if start > end:
        raise MalformedOracleResponse(f"Invalid date range: start_date ({start}) is after end_date ({end})")

    raw_confidence = data.get("confidence")
    try:
        confidence = Confidence(str(raw_confidence).strip().lower())
    except ValueError as exc:
        raise MalformedOracleResponse(f"Unknown confidence value: {raw_confidence!r}") from exc

    explanation = data.get("explanation")
    return DateRange(
        start_date=start,
        end_date=end,
        source=DateSource.LLM_PARSED,
        confidence=confidence,
        explanation=explanation if isinstance(explanation, str) else None,
    )


def fallback_date_range(user_input: str, today: date) -> DateRange:
    """Deterministic rules used whenever the oracle path fails."""
    text = user_input.lower()

    match = _LAST_N_MONTHS_RE.search(text)
    if match:
        return DateRange(
            start_date=shift_months(today, min(int(match.group(1)), _MAX_MONTHS_BACK)),
            end_date=today,
            source=DateSource.FALLBACK_REGEX,
            confidence=Confidence.MEDIUM,
        )

    if _THIS_YEAR_RE.search(text):
        return DateRange(
            start_date=date(today.year, 1, 1),
            end_date=today,
            source=DateSource.FALLBACK_REGEX,
            confidence=Confidence.HIGH,
        )

    return DateRange(
        start_date=shift_months(today, 1),
        end_date=today,
        source=DateSource.FALLBACK_DEFAULT,
        confidence=Confidence.LOW,
    )


def _as_date(value: Any, field_name: str) -> date:
    if not isinstance(value, str):
        raise MalformedOracleResponse(f"{field_name} missing or not a string: {value!r}")
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise MalformedOracleResponse(f"{field_name} is not a calendar date: {value!r}") from exc


class DateRangeResolver:
    """Resolve date input; ``oracle`` may be None when no LLM is configured."""

    def __init__(self, oracle: Oracle | None, today: date | None = None) -> None:
        self.oracle = oracle
        self._today = today

    def today(self) -> date:
        return self._today or date.today()

    def resolve(self, user_input: str | None) -> DateRange:
        today = self.today()

        if user_input is None:
            return DateRange(
                start_date=today - timedelta(days=DEFAULT_WINDOW_DAYS),
                end_date=today,
                source=DateSource.DEFAULT,
                confidence=Confidence.HIGH,
            )

        text = user_input.strip()
        if _EXPLICIT_DATE_RE.match(text):
            return self._resolve_explicit(text, today)

        return self._resolve_with_oracle(text, today)

    def _resolve_explicit(self, text: str, today: date) -> DateRange:
        try:
            start = date.fromisoformat(text)
        except ValueError as exc:
            raise InvalidDateFormat(f"Invalid date format: {text}") from exc
        if start > today:
            raise InvalidDateFormat(f"Start date {text} is in the future")
        return DateRange(
            start_date=start,
            end_date=today,
            source=DateSource.EXPLICIT_DATE,
            confidence=Confidence.HIGH,
        )

    def _resolve_with_oracle(self, text: str, today: date) -> DateRange:
        if self.oracle is None:
            LOGGER.warning("No LLM configured; using fallback rules for %r", text)
            return fallback_date_range(text, today)

        LOGGER.debug("Parsing date range %r (current date: %s)", text, today)
        try:
            response = self.oracle.ask(build_date_prompt(text, today))
            resolved = parse_date_response(response.content)
        except Exception as exc:
            LOGGER.warning("LLM date parsing failed for %r, using fallback rules: %s", text, exc)
            return fallback_date_range(text, today)

        LOGGER.info(
            "LLM parsed %r as %s..%s (%s)",
            text,
            resolved.start_date,
            resolved.end_date,
            resolved.confidence.value,
        )
        return resolved
