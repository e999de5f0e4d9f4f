"""Data models for validation findings, statistics, results and progress."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["error", "warning", "info"]

FILE_RECORD_TYPE = "FILE"
UNKNOWN_RECORD_TYPE = "UNKNOWN"


class Finding(BaseModel):
    """Single validation error, warning or info item tied to a physical line."""

    model_config = ConfigDict(
        extra="forbid", frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    line_number: int
    record_type: str
    field_name: str
    message: str
    severity: Severity = "error"


class SummaryTotal(BaseModel):
    """Accumulated detail totals for one summary record."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    summary_record_id: str
    service_description: str | None = None
    total_claimed_amount: Decimal = Decimal("0")
    detail_record_count: int = 0


class ValidationStatistics(BaseModel):
    """Counters and financial totals for one validated file."""

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    total_lines: int = 0
    total_records: int = 0
    header_records: int = 0
    footer_records: int = 0
    summary_records: int = 0
    detail_records: int = 0
    ignored_records: int = 0
    summary_totals: dict[str, SummaryTotal] = Field(default_factory=dict)
    total_claimed_amount: Decimal = Decimal("0")


class ValidationResult(BaseModel):
    """Validation result.

    Rules:
    - is_valid == (error_count == 0)
    - findings keep phase order: pass 1, pass 2, aggregation, structure
    - warnings and info findings never affect is_valid
    """

    model_config = ConfigDict(extra="forbid", alias_generator=to_camel, populate_by_name=True)

    is_valid: bool
    findings: list[Finding] = Field(default_factory=list)
    statistics: ValidationStatistics = Field(default_factory=ValidationStatistics)

    @property
    def error_count(self) -> int:
        return sum(1 for finding in self.findings if finding.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for finding in self.findings if finding.severity == "warning")

    @classmethod
    def from_findings(
        cls,
        findings: list[Finding],
        statistics: ValidationStatistics | None = None,
    ) -> ValidationResult:
        has_errors = any(finding.severity == "error" for finding in findings)
        return cls(
            is_valid=not has_errors,
            findings=findings,
            statistics=statistics or ValidationStatistics(),
        )


@dataclass(frozen=True)
class ValidationProgress:
    """Progress notification emitted during validation phases."""

    phase: str
    current: int
    total: int

    @property
    def percent_complete(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(self.current / self.total * 100, 100.0)
