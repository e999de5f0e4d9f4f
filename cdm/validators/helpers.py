"""Field format helpers shared by the per-record validators."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal

from cdm.records.models import UnparsableField
from cdm.validation.models import Finding, Severity

_ISRC_RE = re.compile(r"[A-Za-z]{2}[A-Za-z0-9]{3}\d{7}")
_ISWC_RE = re.compile(r"T\d{10}")
_DPID_RE = re.compile(r"PADPIDA\w+")
_PARTY_ID_RE = re.compile(r"[^:]+::[^:]+")
_MESSAGE_VERSION_RE = re.compile(r"CDM/[\d.]+/[\d.]+/[\d.]+")

_DAY_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_REGIONAL_DAY_RE = re.compile(r"\d{2}/\d{2}/\d{4}")
_MONTH_RE = re.compile(r"\d{4}-\d{2}")
_YEAR_RE = re.compile(r"\d{4}")
_RFC3339_RE = re.compile(
    r"(?P<stamp>\d{4}-\d{2}-\d{2}[Tt]\d{2}:\d{2}:\d{2})(?:\.\d+)?"
    r"(?:[Zz]|[+-](?P<offset_hours>\d{2}):(?P<offset_minutes>\d{2}))"
)
_BACKSLASH_RUN_RE = re.compile(r"\\+")

_MIN_YEAR = 1900
_MAX_YEAR = 2100
_ESCAPE_GROUP = 4


def is_valid_isrc(value: str | None) -> bool:
    return bool(value) and _ISRC_RE.fullmatch(value) is not None


def is_valid_iswc(value: str | None) -> bool:
    return bool(value) and _ISWC_RE.fullmatch(value) is not None


def is_valid_dpid(value: str | None) -> bool:
    return bool(value) and _DPID_RE.fullmatch(value) is not None


def is_valid_party_id(value: str | None) -> bool:
    """NAMESPACE::VALUE party reference."""

    return bool(value) and _PARTY_ID_RE.fullmatch(value) is not None


def is_valid_message_version(value: str | None) -> bool:
    return bool(value) and _MESSAGE_VERSION_RE.fullmatch(value) is not None


def parse_date(value: str | None) -> date | None:
    """Parse YYYY-MM-DD, DD/MM/YYYY, YYYY-MM or YYYY into a comparable date.

    Month and year precision resolve to the first day of the period.
    """

    if value is None:
        return None

    try:
        if _DAY_RE.fullmatch(value):
            return datetime.strptime(value, "%Y-%m-%d").date()
        if _REGIONAL_DAY_RE.fullmatch(value):
            return datetime.strptime(value, "%d/%m/%Y").date()
        if _MONTH_RE.fullmatch(value):
            return datetime.strptime(value, "%Y-%m").date()
    except ValueError:
        return None

    if _YEAR_RE.fullmatch(value):
        year = int(value)
        if _MIN_YEAR <= year <= _MAX_YEAR:
            return date(year, 1, 1)
    return None


def is_valid_date(value: str | None) -> bool:
    return parse_date(value) is not None


def is_valid_timestamp(value: str | None) -> bool:
    """RFC 3339 date-time with a mandatory `Z` or numeric offset."""

    if not value:
        return False
    match = _RFC3339_RE.fullmatch(value)
    if match is None:
        return False
    try:
        datetime.strptime(match.group("stamp").upper(), "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return False

    offset_hours = match.group("offset_hours")
    if offset_hours is None:
        return True
    return int(offset_hours) <= 23 and int(match.group("offset_minutes")) <= 59


def is_in_range(value: Decimal, minimum: Decimal, maximum: Decimal) -> bool:
    return minimum <= value <= maximum


def is_percentage(value: Decimal) -> bool:
    return is_in_range(value, Decimal("0"), Decimal("100"))


def approximately_equal(left: Decimal, right: Decimal, tolerance: Decimal) -> bool:
    return abs(left - right) <= tolerance


def has_no_spaces_or_underscores(value: str | None) -> bool:
    return bool(value) and " " not in value and "_" not in value


def backslashes_properly_escaped(value: str) -> bool:
    """Every run of consecutive backslashes must be a multiple of four long."""

    return all(
        len(match.group(0)) % _ESCAPE_GROUP == 0 for match in _BACKSLASH_RUN_RE.finditer(value)
    )


def make_finding(
    line_number: int,
    record_type: str,
    field_name: str,
    message: str,
    severity: Severity = "error",
) -> Finding:
    return Finding(
        line_number=line_number,
        record_type=record_type,
        field_name=field_name,
        message=message,
        severity=severity,
    )


def escaping_findings(
    line_number: int, record_type: str, fields: Mapping[str, str | None]
) -> list[Finding]:
    """Report text fields whose backslashes are not escaped in groups of four."""

    findings: list[Finding] = []
    for field_name, value in fields.items():
        if value and not backslashes_properly_escaped(value):
            findings.append(
                make_finding(
                    line_number,
                    record_type,
                    field_name,
                    "Backslashes must be escaped as groups of 4 consecutive backslashes. "
                    f"Found improperly escaped backslash in '{field_name}'",
                )
            )
    return findings


def unparsable_findings(
    line_number: int, record_type: str, unparsable: Iterable[UnparsableField]
) -> list[Finding]:
    return [
        make_finding(
            line_number,
            record_type,
            item.field_name,
            f"{item.field_name} must be numeric, found '{item.raw}'",
        )
        for item in unparsable
    ]
