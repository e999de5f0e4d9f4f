from __future__ import annotations

import json
from pathlib import Path

from samples import detail_line, minimal_lines, write_cdm
from typer.testing import CliRunner

from apps.cli.main import app

runner = CliRunner()


def _write_valid(tmp_path: Path) -> Path:
    return write_cdm(tmp_path / "claims.tsv", minimal_lines())


def _write_invalid(tmp_path: Path) -> Path:
    lines = minimal_lines()
    lines[2] = detail_line(summary_record_id="NOPE")
    return write_cdm(tmp_path / "claims.tsv", lines)


def test_cli_valid_file_exits_zero(tmp_path: Path) -> None:
    path = _write_valid(tmp_path)

    result = runner.invoke(app, ["validate", str(path), "--no-progress"])

    assert result.exit_code == 0
    assert "result=PASSED" in result.stdout
    assert "total_claimed_amount=100.00" in result.stdout


def test_cli_invalid_file_exits_one(tmp_path: Path) -> None:
    path = _write_invalid(tmp_path)

    result = runner.invoke(app, ["validate", str(path), "--no-progress"])

    assert result.exit_code == 1
    assert "result=FAILED" in result.stdout
    assert "does not reference any CS01 record" in result.stdout


def test_cli_missing_file_exits_one_with_file_finding(tmp_path: Path) -> None:
    result = runner.invoke(
        app, ["validate", str(tmp_path / "absent.tsv"), "--json", "--no-progress"]
    )

    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["isValid"] is False
    assert payload["findings"][0]["recordType"] == "FILE"
    assert payload["findings"][0]["fieldName"] == "FilePath"


def test_cli_json_output_uses_camel_case_and_string_amounts(tmp_path: Path) -> None:
    path = _write_valid(tmp_path)

    result = runner.invoke(app, ["validate", str(path), "--format", "json", "--no-progress"])

    assert result.exit_code == 0
    payload = json.loads(result.stdout)
    assert payload["isValid"] is True
    assert payload["errorCount"] == 0
    assert payload["statistics"]["totalLines"] == 4
    assert payload["statistics"]["totalClaimedAmount"] == "100.00"
    assert payload["statistics"]["summaryTotals"]["SUM001"]["detailRecordCount"] == 1


def test_cli_reads_stdin(tmp_path: Path) -> None:
    content = ("\n".join(minimal_lines()) + "\n").encode("utf-8")

    result = runner.invoke(app, ["validate", "-", "--json", "--no-progress"], input=content)

    assert result.exit_code == 0
    assert json.loads(result.stdout)["statistics"]["detailRecords"] == 1


def test_cli_rejects_unknown_format(tmp_path: Path) -> None:
    path = _write_valid(tmp_path)

    result = runner.invoke(app, ["validate", str(path), "--format", "xml", "--no-progress"])

    assert result.exit_code == 2


def test_cli_bad_rules_file_exits_two(tmp_path: Path) -> None:
    path = _write_valid(tmp_path)
    rules = tmp_path / "rules.yaml"
    rules.write_text("- not a mapping\n", encoding="utf-8")

    result = runner.invoke(app, ["validate", str(path), "--rules", str(rules), "--no-progress"])

    assert result.exit_code == 2


def test_cli_output_writes_csv_report_atomically(tmp_path: Path) -> None:
    path = _write_invalid(tmp_path)
    report = tmp_path / "reports" / "claims.csv"

    result = runner.invoke(
        app, ["validate", str(path), "--output", str(report), "--no-progress"]
    )

    assert result.exit_code == 1
    content = report.read_text(encoding="utf-8")
    assert content.startswith("# CDM Validation Results\n")
    assert "RecordType,LineNumber,Severity,FieldName,ErrorMessage" in content
    assert list(report.parent.glob("claims.csv.*.tmp")) == []


def test_cli_output_defaults_to_json_for_console_format(tmp_path: Path) -> None:
    path = _write_valid(tmp_path)
    report = tmp_path / "claims.report"

    result = runner.invoke(
        app, ["validate", str(path), "--output", str(report), "--no-progress"]
    )

    assert result.exit_code == 0
    assert json.loads(report.read_text(encoding="utf-8"))["isValid"] is True


def test_cli_verbose_lists_warnings(tmp_path: Path) -> None:
    lines = minimal_lines()
    lines.insert(3, "ZZ01\tunknown")
    lines[-1] = "SRFO\t5\t1"
    path = write_cdm(tmp_path / "claims.tsv", lines)

    quiet = runner.invoke(app, ["validate", str(path), "--no-progress"])
    verbose = runner.invoke(app, ["validate", str(path), "--no-progress", "-v"])

    assert quiet.exit_code == 0
    assert "Unknown or unsupported record type: ZZ01" not in quiet.stdout
    assert "warnings: 1" in quiet.stdout
    assert "Unknown or unsupported record type: ZZ01" in verbose.stdout


def test_cli_non_utf8_rules_file_exits_two(tmp_path: Path) -> None:
    path = _write_valid(tmp_path)
    rules = tmp_path / "rules.yaml"
    rules.write_bytes(b"\xff\xfe\x00garbage")

    result = runner.invoke(app, ["validate", str(path), "--rules", str(rules), "--no-progress"])

    assert result.exit_code == 2
    assert "Cannot read rules file" in result.output
