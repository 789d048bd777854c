import pytest

from teltonika_params.errors import SchemaError
from teltonika_params.normalize import (
    HEADER_FROM_COLUMN_KEYS,
    HEADER_FROM_FIRST_ROW,
    HEADER_FROM_SECOND_ROW,
    detect_header,
    flat_records,
    group_records,
    normalize_document,
    normalize_table,
)
from teltonika_params.schema import ParameterValue, document_to_json, snake_case


def row(*texts):
    return {f"col{idx}": {"text": text} for idx, text in enumerate(texts, start=1)}


HEADER = row("Parameter ID", "Parameter name", "Parameter type", "Value")


def test_snake_case_matches_header_labels():
    assert snake_case("Parameter ID") == "parameter_id"
    assert snake_case("Min. value") == "min_value"
    assert snake_case("ParameterID") == "parameter_id"
    assert snake_case("col1") == "col_1"
    assert snake_case("Défaut") == "defaut"
    assert snake_case("") == ""


def test_duplicate_title_row_uses_second_row_as_header():
    table = [
        row("Parameter ID", "GPRS"),
        HEADER,
        row("2004", "Domain", "Char", "my.domain.com"),
    ]

    layout = detect_header(table)

    assert layout.source == HEADER_FROM_SECOND_ROW
    assert layout.data_start == 2
    assert layout.header_map == {
        "col1": "parameter_id",
        "col2": "parameter_name",
        "col3": "parameter_type",
        "col4": "value",
    }


def test_first_row_is_header_when_first_column_present():
    table = [HEADER, row("2005", "Port", "Uint16", "0")]

    layout = detect_header(table)

    assert layout.source == HEADER_FROM_FIRST_ROW
    assert layout.data_start == 1


def test_single_row_table_uses_that_row_as_header():
    layout = detect_header([HEADER])
    records, skipped = flat_records([HEADER], layout)

    assert layout.source == HEADER_FROM_FIRST_ROW
    assert records == []
    assert skipped == 0


def test_header_from_column_keys_when_first_column_missing():
    table = [
        {"col2": {"text": "Open link timeout"}, "col3": {"text": "30"}},
        {"col1": {"text": "1000"}, "col2": {"text": "Sleep"}, "col3": {"text": "0"}},
    ]

    layout = detect_header(table)
    records, skipped = flat_records(table, layout)

    assert layout.source == HEADER_FROM_COLUMN_KEYS
    assert layout.data_start == 0
    assert layout.header_map == {"col2": "col_2", "col3": "col_3"}
    # Row 0 is data but has no first column, so it is skipped like any other such row.
    assert skipped == 1
    assert records == [{"col_1": "1000", "col_2": "Sleep", "col_3": "0"}]


def test_rows_without_first_column_are_skipped():
    table = [
        HEADER,
        row("2004", "Domain", "Char", "x"),
        {"col2": {"text": "separator"}},
        row("2005", "Port", "Uint16", "0"),
    ]

    records, skipped = flat_records(table, detect_header(table))

    assert [r["parameter_id"] for r in records] == ["2004", "2005"]
    assert skipped == 1


def test_empty_cells_are_dropped_from_records():
    table = [HEADER, row("2004", "Domain", "", "x")]

    records, _ = flat_records(table, detect_header(table))

    assert records == [{"parameter_id": "2004", "parameter_name": "Domain", "value": "x"}]


def test_grouping_preserves_first_appearance_order():
    records = [
        {"parameter_id": "102", "value": "a"},
        {"parameter_id": "101", "value": "b"},
        {"parameter_id": "102", "value": "c"},
        {"parameter_id": "103", "value": "d"},
    ]

    grouped = group_records(records)

    assert [g.key for g in grouped] == ["102", "101", "103"]
    assert grouped[0].value == ParameterValue.of_list(["a", "c"])


def test_single_member_without_value_has_no_value_field():
    grouped = group_records([{"parameter_id": "1", "parameter_name": "Sleep"}])

    assert grouped[0].value.is_absent
    assert grouped[0].to_json() == {"parameter_id": "1", "parameter_name": "Sleep"}


def test_single_member_with_value_keeps_scalar():
    grouped = group_records([{"parameter_id": "1", "value": "60"}])

    assert grouped[0].to_json() == {"parameter_id": "1", "value": "60"}


def test_group_value_list_tolerates_missing_member_values():
    records = [
        {"parameter_id": "11", "parameter_name": "Mode", "value": "0 – Disable"},
        {"parameter_id": "11"},
        {"parameter_id": "11", "value": "2 – Both"},
    ]

    grouped = group_records(records)

    assert len(grouped) == 1
    assert grouped[0].to_json() == {
        "parameter_id": "11",
        "parameter_name": "Mode",
        "value": ["0 – Disable", None, "2 – Both"],
    }


def test_grouped_fields_come_from_first_member():
    records = [
        {"parameter_id": "11", "parameter_name": "Mode", "value": "0"},
        {"parameter_id": "11", "parameter_name": "Other", "value": "1"},
    ]

    grouped = group_records(records)

    assert grouped[0].fields == {"parameter_id": "11", "parameter_name": "Mode"}


def test_duplicate_headers_are_rejected_by_default():
    table = [row("ID", "ID", "Name"), row("1", "1", "Param")]

    with pytest.raises(SchemaError, match="both map to field 'id'"):
        normalize_table(table, section="System", table_index=0)


def test_duplicate_headers_can_be_suffixed():
    table = [row("ID", "ID", "Name"), row("1", "1", "Param")]

    records = normalize_table(table, duplicate_headers="suffix")

    assert records[0].to_json() == {"id": "1", "id_2": "1", "name": "Param"}


def test_empty_table_is_rejected():
    with pytest.raises(SchemaError, match="table has no rows"):
        normalize_table([], section="GPRS", table_index=3)


def test_non_mapping_cell_is_rejected():
    table = [HEADER, {"col1": "2004"}]

    with pytest.raises(SchemaError, match="cell 'col1' is not an object"):
        normalize_table(table)


def test_normalize_document_keeps_section_and_table_order():
    document = {
        "sections": [
            {"title": "", "tables": []},
            {
                "title": "System",
                "tables": [
                    [HEADER, row("11", "Sleep", "Uint8", "0 – Disable"), row("11", "Sleep", "Uint8", "1 – Enable")],
                    [HEADER, row("12", "Name", "Char", "dev")],
                ],
            },
            {"title": "GPRS"},
        ]
    }

    normalized, report = normalize_document(document)

    assert list(normalized) == ["", "System", "GPRS"]
    assert document_to_json(normalized) == {
        "": [],
        "System": [
            [
                {
                    "parameter_id": "11",
                    "parameter_name": "Sleep",
                    "parameter_type": "Uint8",
                    "value": ["0 – Disable", "1 – Enable"],
                }
            ],
            [{"parameter_id": "12", "parameter_name": "Name", "parameter_type": "Char", "value": "dev"}],
        ],
        "GPRS": [],
    }
    assert report.section_count == 3
    assert report.table_count == 2
    assert report.record_count == 2
    assert report.header_sources == {HEADER_FROM_FIRST_ROW: 2}


def test_repeated_section_titles_append_tables():
    document = {
        "sections": [
            {"title": "I/O", "tables": [[HEADER, row("1", "A", "Uint8", "0")]]},
            {"title": "I/O", "tables": [[HEADER, row("2", "B", "Uint8", "1")]]},
        ]
    }

    normalized, _ = normalize_document(document)

    assert [[r.key for r in table] for table in normalized["I/O"]] == [["1"], ["2"]]


def test_malformed_documents_fail_fast():
    with pytest.raises(SchemaError):
        normalize_document([])
    with pytest.raises(SchemaError, match="no 'sections' list"):
        normalize_document({"title": "x"})
    with pytest.raises(SchemaError, match="'tables' is not a list"):
        normalize_document({"sections": [{"title": "GPRS", "tables": {"a": 1}}]})
    with pytest.raises(SchemaError, match="section 'GPRS', table 0"):
        normalize_document({"sections": [{"title": "GPRS", "tables": [[]]}]})


def test_unknown_duplicate_policy_is_rejected():
    with pytest.raises(ValueError):
        normalize_document({"sections": []}, duplicate_headers="ignore")
