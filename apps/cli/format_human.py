"""Human-readable validation report rendering for CLI output."""

from __future__ import annotations

from itertools import groupby

from cdm.validation.models import Finding, ValidationResult

_RULE_WIDTH = 80
_SEVERITY_SYMBOLS = {"error": "x", "warning": "!", "info": "i"}
_SEVERITY_ORDER = {"error": 0, "warning": 1, "info": 2}


def render_report(result: ValidationResult, *, source_name: str, verbose: bool = False) -> str:
    """Render the full console report.

    Warnings and info findings are only listed when `verbose` is set; they
    are always counted.
    """

    stats = result.statistics
    lines: list[str] = []
    lines.append("=" * _RULE_WIDTH)
    lines.append("CDM VALIDATION RESULT")
    lines.append("=" * _RULE_WIDTH)
    lines.append(f"file: {source_name}")
    lines.append(f"result={'PASSED' if result.is_valid else 'FAILED'}")
    lines.append("")

    lines.append("statistics:")
    lines.append(f"  total_lines={stats.total_lines}")
    lines.append(f"  total_records={stats.total_records}")
    lines.append(f"  header_records={stats.header_records}")
    lines.append(f"  summary_records={stats.summary_records}")
    lines.append(f"  detail_records={stats.detail_records}")
    lines.append(f"  footer_records={stats.footer_records}")
    lines.append(f"  ignored_records={stats.ignored_records}")
    lines.append("")

    lines.append("financial_totals:")
    lines.append(f"  total_claimed_amount={stats.total_claimed_amount:.2f}")
    for summary_id in sorted(stats.summary_totals):
        total = stats.summary_totals[summary_id]
        description = total.service_description or "-"
        lines.append(
            f"  {summary_id} service={description} "
            f"amount={total.total_claimed_amount:.2f} details={total.detail_record_count}"
        )
    lines.append("")

    lines.append(f"errors: {result.error_count}")
    lines.append(f"warnings: {result.warning_count}")

    visible = [
        finding for finding in result.findings if verbose or finding.severity == "error"
    ]
    if visible:
        lines.append("-" * _RULE_WIDTH)
        lines.append("issues:")
        lines.extend(_render_findings(visible))

    lines.append("=" * _RULE_WIDTH)
    return "\n".join(lines)


def _render_findings(findings: list[Finding]) -> list[str]:
    lines: list[str] = []
    ordered = sorted(
        findings,
        key=lambda item: (item.record_type, item.line_number, _SEVERITY_ORDER[item.severity]),
    )
    for record_type, group in groupby(ordered, key=lambda item: item.record_type):
        lines.append(f"[{record_type}]")
        for finding in group:
            symbol = _SEVERITY_SYMBOLS[finding.severity]
            field = f"[{finding.field_name}] " if finding.field_name.strip() else ""
            lines.append(f"  {symbol} line {finding.line_number}: {field}{finding.message}")
    return lines
