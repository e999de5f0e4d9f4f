"""Two-pass validation pipeline for CDM claim files.

Phases run strictly in order: pass1 -> pass2 -> post_pass -> structure_check.
Pass 1 validates every record's fields and builds the summary index; pass 2
re-streams the source to check detail references against it; the post pass
reconciles declared totals; the structure check only reads index metadata.
"""

from __future__ import annotations

import json
import logging
import os
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Literal

from cdm.index.aggregator import summary_totals, validate_summary_totals
from cdm.index.builder import IndexBuilder
from cdm.index.cross_record import validate_cross_record
from cdm.index.models import ValidationIndex
from cdm.io.source import ReplayableSource
from cdm.records.models import ClassifiedLine
from cdm.records.parser import (
    classify_line,
    decode_line,
    parse_detail,
    parse_footer,
    parse_header,
    parse_summary,
)
from cdm.rules.loader import load_rules
from cdm.rules.models import ValidationRules
from cdm.utils.errors import RecordParseError, SourceNotFoundError
from cdm.validation.models import (
    FILE_RECORD_TYPE,
    UNKNOWN_RECORD_TYPE,
    Finding,
    ValidationProgress,
    ValidationResult,
    ValidationStatistics,
)
from cdm.validators.detail import validate_detail
from cdm.validators.footer import validate_footer
from cdm.validators.header import validate_header
from cdm.validators.helpers import make_finding
from cdm.validators.structure import validate_structure
from cdm.validators.summary import validate_summary

Phase = Literal["idle", "pass1", "pass2", "post_pass", "structure_check", "complete"]
ProgressSink = Callable[[ValidationProgress], None]

logger = logging.getLogger("cdm.validation")


@dataclass
class _ValidationRun:
    """State owned by a single validate_file call."""

    rules: ValidationRules
    progress: ProgressSink | None
    phase: Phase = "idle"
    index: ValidationIndex = field(default_factory=ValidationIndex)
    findings: list[Finding] = field(default_factory=list)

    def enter(self, phase: Phase) -> float:
        self.phase = phase
        _log_event(logging.INFO, "phase_start", phase=phase)
        return time.perf_counter()

    def leave(self, started: float, findings_before: int) -> None:
        _log_event(
            logging.INFO,
            "phase_done",
            phase=self.phase,
            elapsed_ms=_elapsed_ms(started),
            findings=len(self.findings) - findings_before,
        )

    def notify(self, current: int, total: int) -> None:
        if self.progress is None:
            return
        try:
            self.progress(ValidationProgress(phase=self.phase, current=current, total=total))
        except Exception as exc:  # noqa: BLE001
            _log_event(
                logging.WARNING,
                "progress_sink_failed",
                phase=self.phase,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )


def validate_file(
    source: str | os.PathLike[str] | BinaryIO,
    *,
    rules: ValidationRules | None = None,
    progress: ProgressSink | None = None,
) -> ValidationResult:
    """Validate one CDM claim file.

    `source` is a path or a binary stream; non-seekable streams are spooled so
    they can be read twice. `progress` receives ValidationProgress updates and
    may raise without affecting the run.
    """

    run = _ValidationRun(rules=rules or load_rules(), progress=progress)
    started = time.perf_counter()

    with ReplayableSource(source) as replay:
        _log_event(logging.INFO, "validation_start", source=replay.name)
        try:
            replay.ensure_exists()
        except SourceNotFoundError as exc:
            _log_event(logging.ERROR, "source_missing", source=str(exc.path))
            run.phase = "complete"
            run.notify(1, 1)
            return ValidationResult.from_findings(
                [make_finding(0, FILE_RECORD_TYPE, "FilePath", str(exc))]
            )

        _first_pass(run, replay)
        _second_pass(run, replay)

    phase_started = run.enter("post_pass")
    before = len(run.findings)
    run.notify(0, 1)
    run.findings.extend(validate_summary_totals(run.index, run.rules))
    run.notify(1, 1)
    run.leave(phase_started, before)

    phase_started = run.enter("structure_check")
    before = len(run.findings)
    run.notify(0, 1)
    run.findings.extend(validate_structure(run.index))
    run.notify(1, 1)
    run.leave(phase_started, before)

    run.phase = "complete"
    run.notify(1, 1)

    result = ValidationResult.from_findings(run.findings, _build_statistics(run.index))
    _log_event(
        logging.INFO,
        "validation_done",
        source=replay.name,
        is_valid=result.is_valid,
        error_count=result.error_count,
        warning_count=result.warning_count,
        total_lines=result.statistics.total_lines,
        elapsed_ms=_elapsed_ms(started),
    )
    return result


def _first_pass(run: _ValidationRun, replay: ReplayableSource) -> None:
    phase_started = run.enter("pass1")
    before = len(run.findings)
    builder = IndexBuilder(run.index)
    estimated_total = replay.estimate_line_count()
    run.notify(0, estimated_total)

    for line_number, raw in replay.lines():
        run.index.total_lines = line_number
        if line_number % run.rules.progress_interval == 0:
            run.notify(line_number, max(estimated_total, line_number))

        try:
            text = decode_line(raw, line_number)
        except RecordParseError as exc:
            run.findings.append(
                make_finding(exc.line_number, UNKNOWN_RECORD_TYPE, "Parse", str(exc))
            )
            continue

        classified = classify_line(text, line_number)
        if classified is None:
            continue
        try:
            run.findings.extend(_index_record(classified, builder, run.rules))
        except Exception as exc:  # noqa: BLE001
            _log_event(
                logging.WARNING,
                "record_failed",
                line=line_number,
                error_type=type(exc).__name__,
                error_message=str(exc),
            )
            run.findings.append(
                make_finding(
                    line_number, UNKNOWN_RECORD_TYPE, "Parse", f"Error parsing line: {exc}"
                )
            )

    run.notify(run.index.total_lines, run.index.total_lines)
    run.leave(phase_started, before)


def _index_record(
    classified: ClassifiedLine, builder: IndexBuilder, rules: ValidationRules
) -> list[Finding]:
    text, line_number = classified.text, classified.line_number

    if classified.kind == "header":
        header = parse_header(text, line_number)
        builder.add_header(header)
        return validate_header(header, rules)

    if classified.kind == "summary":
        summary = parse_summary(text, line_number)
        return validate_summary(summary, rules) + builder.add_summary(summary)

    if classified.kind == "detail":
        detail = parse_detail(text, line_number)
        return validate_detail(detail, rules) + builder.add_detail(detail)

    if classified.kind == "footer":
        footer = parse_footer(text, line_number)
        builder.add_footer(footer)
        return validate_footer(footer, rules)

    if classified.kind == "ignored":
        builder.add_ignored()
        return []

    return [
        make_finding(
            line_number,
            classified.tag,
            "RecordType",
            f"Unknown or unsupported record type: {classified.tag}",
            severity="warning",
        )
    ]


def _second_pass(run: _ValidationRun, replay: ReplayableSource) -> None:
    phase_started = run.enter("pass2")
    before = len(run.findings)
    total = run.index.total_lines
    run.notify(0, total)
    run.findings.extend(validate_cross_record(_decoded_lines(run, replay), run.index, run.rules))
    run.notify(total, total)
    run.leave(phase_started, before)


def _decoded_lines(run: _ValidationRun, replay: ReplayableSource) -> Iterator[tuple[int, str]]:
    # Undecodable lines were already reported in pass 1.
    total = run.index.total_lines
    for line_number, raw in replay.lines():
        if line_number % run.rules.progress_interval == 0:
            run.notify(line_number, total)
        try:
            yield line_number, decode_line(raw, line_number)
        except RecordParseError:
            continue


def _build_statistics(index: ValidationIndex) -> ValidationStatistics:
    totals, file_total = summary_totals(index)
    header_records = 1 if index.header is not None else 0
    footer_records = 1 if index.footer is not None else 0
    return ValidationStatistics(
        total_lines=index.total_lines,
        total_records=(
            header_records
            + index.summary_record_count
            + index.detail_record_count
            + footer_records
        ),
        header_records=header_records,
        footer_records=footer_records,
        summary_records=index.summary_record_count,
        detail_records=index.detail_record_count,
        ignored_records=index.ignored_record_count,
        summary_totals=totals,
        total_claimed_amount=file_total,
    )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def _log_event(level: int, event: str, **fields: Any) -> None:
    payload = {"event": event, **fields}
    logger.log(level, _dump_json(payload))
