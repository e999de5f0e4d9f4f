"""Cross-reference index carried from the first pass to the second.

Rules:
- Keys of `summaries` and members of the seen-sets are uppercase ids.
- `accumulated_detail_amount` only grows, and only through details that
  resolve to the entry in the second pass.
- The index is owned by one validation run; nothing is shared between runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from cdm.records.models import FooterRecord, HeaderRecord


def normalize_id(value: str) -> str:
    return value.strip().upper()


@dataclass
class SummaryIndexEntry:
    """Projection of one summary record kept for the whole run."""

    summary_record_id: str
    line_number: int
    service_description: str | None
    total_claimed_amount: Decimal
    rights_type_split_mechanical: Decimal
    rights_type_split_performing: Decimal
    accumulated_detail_amount: Decimal = Decimal("0")
    detail_record_count: int = 0


@dataclass
class ValidationIndex:
    header: HeaderRecord | None = None
    footer: FooterRecord | None = None
    summaries: dict[str, SummaryIndexEntry] = field(default_factory=dict)
    seen_summary_ids: set[str] = field(default_factory=set)
    seen_claim_ids: set[str] = field(default_factory=set)
    summary_record_count: int = 0
    detail_record_count: int = 0
    ignored_record_count: int = 0
    total_lines: int = 0
    last_record_line: int = 0
    extra_header_lines: list[int] = field(default_factory=list)
    extra_footer_lines: list[int] = field(default_factory=list)

    def lookup(self, summary_record_id: str) -> SummaryIndexEntry | None:
        return self.summaries.get(normalize_id(summary_record_id))
