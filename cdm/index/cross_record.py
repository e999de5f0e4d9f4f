"""Second-pass checks that need the summary index built in the first pass."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from cdm.index.models import ValidationIndex
from cdm.records.models import DETAIL_LABEL, DetailRecord
from cdm.records.parser import classify_line, parse_detail
from cdm.rules.models import ValidationRules
from cdm.validation.models import UNKNOWN_RECORD_TYPE, Finding
from cdm.validators.helpers import approximately_equal, make_finding

_HUNDRED = Decimal("100")


def validate_cross_record(
    lines: Iterable[tuple[int, str]],
    index: ValidationIndex,
    rules: ValidationRules,
) -> list[Finding]:
    """Re-stream decoded lines and check every detail against the index.

    Only detail lines are parsed; everything else is skipped. A line that
    fails here yields one UNKNOWN/Parse error and the walk continues.
    """

    findings: list[Finding] = []
    for line_number, text in lines:
        classified = classify_line(text, line_number)
        if classified is None or classified.kind != "detail":
            continue
        try:
            record = parse_detail(text, line_number)
        except Exception:  # noqa: BLE001
            # Already reported by the first pass.
            continue
        try:
            findings.extend(check_detail(record, index, rules))
        except Exception as exc:  # noqa: BLE001
            findings.append(
                make_finding(
                    line_number, UNKNOWN_RECORD_TYPE, "Parse", f"Error parsing line: {exc}"
                )
            )
    return findings


def check_detail(
    record: DetailRecord, index: ValidationIndex, rules: ValidationRules
) -> list[Finding]:
    """Resolve one detail's summary reference, accumulate and check its blended share."""

    if not record.summary_record_id.strip():
        return []

    entry = index.lookup(record.summary_record_id)
    if entry is None:
        return [
            make_finding(
                record.line_number,
                DETAIL_LABEL,
                "SummaryRecordId",
                f"SummaryRecordId '{record.summary_record_id}' does not reference any CS01 record",
            )
        ]

    entry.accumulated_detail_amount += record.claimed_amount
    entry.detail_record_count += 1

    expected = (
        record.share_claimed_mechanical * entry.rights_type_split_mechanical / _HUNDRED
        + record.share_claimed_performing * entry.rights_type_split_performing / _HUNDRED
    )
    if approximately_equal(record.blended_share, expected, rules.tolerances.blended_share):
        return []

    return [
        make_finding(
            record.line_number,
            DETAIL_LABEL,
            "BlendedShareClaimedForMechAndPerf",
            f"BlendedShareClaimedForMechAndPerf ({record.blended_share}) does not match "
            f"calculated value ({expected:.2f}). Expected: "
            f"({record.share_claimed_mechanical} * {entry.rights_type_split_mechanical}/100) + "
            f"({record.share_claimed_performing} * {entry.rights_type_split_performing}/100)",
        )
    ]
