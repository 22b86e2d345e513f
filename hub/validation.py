"""Field-level validation for candidate records.

Each rule is a small predicate bound to one field. ``validate_candidate``
runs every rule and collects the failures, so a caller sees all problems
with a payload at once instead of only the first one.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Callable
from urllib.parse import urlsplit

from .models import (
    BEST_TIME_TO_CALL_MAX_LENGTH,
    COMMENTS_MAX_LENGTH,
    EMAIL_MAX_LENGTH,
    GITHUB_MAX_LENGTH,
    LINKEDIN_MAX_LENGTH,
    NAME_MAX_LENGTH,
    PHONE_MAX_LENGTH,
    CandidateRecord,
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")
DURATION_PATTERN = re.compile(r"([0-9]{1,2}):([0-5][0-9])(?::([0-5][0-9]))?")
URL_SCHEMES = frozenset({"http", "https", "ftp"})
MAX_INTERVAL_HOURS = 24


class ErrorCode(str, Enum):
    """Why a field failed validation."""
    REQUIRED = "required"
    INVALID_FORMAT = "invalid_format"
    INVALID_RANGE = "invalid_range"
    OUT_OF_RANGE = "out_of_range"
    INVALID_URL = "invalid_url"
    TOO_LONG = "too_long"


@dataclass(frozen=True)
class FieldError:
    """A single rule violation on one field."""
    field: str
    code: ErrorCode
    message: str


# A check returns None when the value passes, or the failing code otherwise.
Check = Callable[[str | None], ErrorCode | None]


@dataclass(frozen=True)
class FieldRule:
    """Binds a check to a candidate field and the message reported on failure."""
    field: str
    check: Check
    message: str

    def apply(self, candidate: CandidateRecord) -> FieldError | None:
        code = self.check(getattr(candidate, self.field))
        if code is None:
            return None
        return FieldError(field=self.field, code=code, message=self.message)


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def check_required(value: str | None) -> ErrorCode | None:
    return ErrorCode.REQUIRED if is_blank(value) else None


def check_email(value: str | None) -> ErrorCode | None:
    """Format check only; emptiness is reported by ``check_required``."""
    if is_blank(value):
        return None
    return None if EMAIL_PATTERN.fullmatch(value) else ErrorCode.INVALID_FORMAT


def parse_duration(token: str) -> timedelta | None:
    """Parse ``H:MM``, ``HH:MM`` or ``HH:MM:SS`` into a duration.

    Hours are not capped at 23, so ``24:00`` (end of day) and ``25:00`` both
    parse; range limits are enforced by the interval check.
    """
    match = DURATION_PATTERN.fullmatch(token.strip())
    if not match:
        return None
    hours, minutes, seconds = match.groups()
    return timedelta(hours=int(hours), minutes=int(minutes), seconds=int(seconds or 0))


def check_time_interval(value: str | None) -> ErrorCode | None:
    """Validate an ``HH:mm-HH:mm`` interval such as ``08:00-12:00``.

    Blank values are treated as absent. Checks run in order (format, ordering,
    bounds) and the first failure wins.
    """
    if is_blank(value):
        return None

    tokens = value.split("-")
    if len(tokens) != 2:
        return ErrorCode.INVALID_FORMAT
    start, end = parse_duration(tokens[0]), parse_duration(tokens[1])
    if start is None or end is None:
        return ErrorCode.INVALID_FORMAT

    if start >= end:
        return ErrorCode.INVALID_RANGE

    limit = timedelta(hours=MAX_INTERVAL_HOURS)
    if not (timedelta(0) <= start <= limit and timedelta(0) <= end <= limit):
        return ErrorCode.OUT_OF_RANGE

    return None


def check_url(value: str | None) -> ErrorCode | None:
    """Absolute http(s)/ftp URL with an authority; empty means absent."""
    if not value:
        return None
    if any(ch.isspace() for ch in value):
        return ErrorCode.INVALID_URL
    try:
        parts = urlsplit(value)
    except ValueError:
        return ErrorCode.INVALID_URL
    if parts.scheme.lower() not in URL_SCHEMES or not parts.hostname:
        return ErrorCode.INVALID_URL
    return None


def max_length(limit: int) -> Check:
    def check(value: str | None) -> ErrorCode | None:
        if value is not None and len(value) > limit:
            return ErrorCode.TOO_LONG
        return None
    return check


def _too_long(label: str, limit: int) -> str:
    return f"{label} must be at most {limit} characters"


CANDIDATE_RULES: tuple[FieldRule, ...] = (
    FieldRule("first_name", check_required, "First name is required"),
    FieldRule("first_name", max_length(NAME_MAX_LENGTH), _too_long("First name", NAME_MAX_LENGTH)),
    FieldRule("last_name", check_required, "Last name is required"),
    FieldRule("last_name", max_length(NAME_MAX_LENGTH), _too_long("Last name", NAME_MAX_LENGTH)),
    FieldRule("phone_number", max_length(PHONE_MAX_LENGTH), _too_long("Phone number", PHONE_MAX_LENGTH)),
    FieldRule("email", check_required, "Email is required"),
    FieldRule("email", check_email, "Invalid email address"),
    FieldRule("email", max_length(EMAIL_MAX_LENGTH), _too_long("Email", EMAIL_MAX_LENGTH)),
    FieldRule("best_time_to_call", check_time_interval, "Invalid time interval format"),
    FieldRule(
        "best_time_to_call",
        max_length(BEST_TIME_TO_CALL_MAX_LENGTH),
        _too_long("Best time to call", BEST_TIME_TO_CALL_MAX_LENGTH),
    ),
    FieldRule("linkedin_profile", check_url, "Invalid LinkedIn profile URL"),
    FieldRule(
        "linkedin_profile",
        max_length(LINKEDIN_MAX_LENGTH),
        _too_long("LinkedIn profile", LINKEDIN_MAX_LENGTH),
    ),
    FieldRule("github_profile", check_url, "Invalid GitHub profile URL"),
    FieldRule(
        "github_profile",
        max_length(GITHUB_MAX_LENGTH),
        _too_long("GitHub profile", GITHUB_MAX_LENGTH),
    ),
    FieldRule("comments", check_required, "Comment is required"),
    FieldRule("comments", max_length(COMMENTS_MAX_LENGTH), _too_long("Comments", COMMENTS_MAX_LENGTH)),
)


def validate_candidate(
    candidate: CandidateRecord,
    rules: tuple[FieldRule, ...] = CANDIDATE_RULES,
) -> list[FieldError]:
    """Run every rule against ``candidate``; an empty list means valid."""
    errors = [error for rule in rules if (error := rule.apply(candidate)) is not None]
    if errors:
        logger.debug(f"Candidate failed {len(errors)} validation rule(s): {[e.field for e in errors]}")
    return errors
