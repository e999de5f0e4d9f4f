from __future__ import annotations

from decimal import Decimal

import pytest
from samples import detail_line, footer_line, header_line, summary_line

from cdm.records.models import UnparsableField
from cdm.records.parser import (
    classify_line,
    decode_line,
    parse_detail,
    parse_footer,
    parse_header,
    parse_summary,
)
from cdm.utils.errors import RecordParseError


@pytest.mark.parametrize(
    ("tag", "kind"),
    [
        ("CDMH.01", "header"),
        ("CDMH", "header"),
        ("CS01.01", "summary"),
        ("CS01", "summary"),
        ("CD01.01", "detail"),
        ("CD01", "detail"),
        ("SRFO", "footer"),
        ("CDDM", "ignored"),
        ("CDD2.01", "ignored"),
        ("XX99", "unknown"),
    ],
)
def test_classify_line_resolves_record_kind(tag: str, kind: str) -> None:
    classified = classify_line(f"{tag}\tvalue", 7)

    assert classified is not None
    assert classified.kind == kind
    assert classified.tag == tag
    assert classified.line_number == 7


@pytest.mark.parametrize("text", ["", "   ", "# comment", "   # indented comment"])
def test_classify_line_skips_blank_and_comment_lines(text: str) -> None:
    assert classify_line(text, 1) is None


def test_decode_line_strips_terminator_and_leading_bom() -> None:
    assert decode_line("\ufeffCDMH.01\tx\r\n".encode(), 1) == "CDMH.01\tx"
    assert decode_line("\ufeffCS01\n".encode(), 2) == "\ufeffCS01"


def test_decode_line_raises_for_invalid_utf8() -> None:
    with pytest.raises(RecordParseError) as exc_info:
        decode_line(b"CD01\t\xff\xfe\n", 12)

    assert exc_info.value.line_number == 12
    assert "not valid UTF-8" in str(exc_info.value)


def test_parse_header_maps_positional_fields() -> None:
    record = parse_header(header_line(), 1)

    assert record.line_number == 1
    assert record.record_type == "CDMH.01"
    assert record.message_id == "MSG001"
    assert record.related_message_id is None
    assert record.sender_party_id == "PADPIDA2014120301S"
    assert record.claiming_round == 1
    assert record.sent_on_behalf_of_party_id is None
    assert record.unparsable_fields == ()


def test_parse_header_tolerates_missing_trailing_fields() -> None:
    record = parse_header("CDMH.01\tCDM/1.0/1.0/1.0\tMSG001", 1)

    assert record.message_id == "MSG001"
    assert record.sender_name == ""
    assert record.recipient_party_id is None
    assert record.claiming_round is None


def test_parse_summary_reads_decimals() -> None:
    record = parse_summary(summary_line(exchange_rate="1.2345"), 2)

    assert record.summary_record_id == "SUM001"
    assert record.exchange_rate == Decimal("1.2345")
    assert record.rights_type_split_mechanical == Decimal("75")
    assert record.total_claimed_amount == Decimal("100.00")


def test_parse_summary_records_unparsable_numbers_and_falls_back() -> None:
    record = parse_summary(summary_line(total_claimed_amount="12,50", total_market_share="n/a"), 2)

    assert record.total_claimed_amount == Decimal("0")
    assert record.total_market_share is None
    assert record.unparsable_fields == (
        UnparsableField(field_name="TotalMarketShare", raw="n/a"),
        UnparsableField(field_name="TotalClaimedAmount", raw="12,50"),
    )


def test_parse_detail_splits_list_fields() -> None:
    record = parse_detail(
        detail_line(
            composer_author_names="Jane Doe|John Roe",
            composer_author_party_ids="IPI::1|IPI::2",
            tariff_parameter_types="Rate|Minimum",
            tariff_parameter_values="0.10|2",
            alternative_musical_work_titles="",
        ),
        3,
    )

    assert record.composer_author_names == ["Jane Doe", "John Roe"]
    assert record.composer_author_party_ids == ["IPI::1", "IPI::2"]
    assert record.tariff_parameter_types == ["Rate", "Minimum"]
    assert record.tariff_parameter_values == [Decimal("0.10"), Decimal("2")]
    assert record.alternative_musical_work_titles == []
    assert record.blended_share == Decimal("43.75")
    assert record.percentage_of_resource_in_release is None


def test_parse_detail_drops_unparsable_tariff_values() -> None:
    record = parse_detail(detail_line(tariff_parameter_values="0.5|abc"), 3)

    assert record.tariff_parameter_values == [Decimal("0.5")]
    assert record.unparsable_fields == (
        UnparsableField(field_name="TariffParameterValue", raw="abc"),
    )


def test_parse_footer_reads_counts() -> None:
    record = parse_footer(footer_line(12, 3), 12)

    assert record.number_of_lines_in_report == 12
    assert record.number_of_summary_records == 3


def test_parse_footer_records_non_integer_counts() -> None:
    record = parse_footer("SRFO\t4.5\t", 4)

    assert record.number_of_lines_in_report == 0
    assert record.number_of_summary_records == 0
    assert record.unparsable_fields == (
        UnparsableField(field_name="NumberOfLinesInReport", raw="4.5"),
    )


def test_parse_footer_records_oversized_integer_as_unparsable() -> None:
    oversized = "1" * 5000
    record = parse_footer(f"SRFO\t{oversized}\t1", 4)

    assert record.number_of_lines_in_report == 0
    assert record.number_of_summary_records == 1
    assert record.unparsable_fields == (
        UnparsableField(field_name="NumberOfLinesInReport", raw=oversized),
    )


def test_parse_header_records_oversized_claiming_round_as_unparsable() -> None:
    record = parse_header(header_line(claiming_round="9" * 5000), 1)

    assert record.claiming_round is None
    assert [item.field_name for item in record.unparsable_fields] == ["ClaimingRound"]
