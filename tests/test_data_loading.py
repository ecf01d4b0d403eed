import pytest

from racing_line.data_loading import (
    TelemetryFormatError,
    detect_delimiter,
    load_telemetry_file,
    parse_telemetry_text,
)


HEADER = "lap,telemetry_name,telemetry_value,vehicle_id,timestamp"


def test_parses_rows_with_metadata():
    text = "\n".join([
        HEADER,
        "2,speed,120.5,GR86-022-13,2025-09-06T18:40:10.000Z",
        "2, VBOX_Lat_Min ,33.53,GR86-022-13,2025-09-06T18:40:10.000Z",
    ])

    rows = parse_telemetry_text(text)

    assert len(rows) == 2
    assert rows[0].timestamp == "2025-09-06T18:40:10.000Z"
    assert rows[0].telemetry_name == "speed"
    assert rows[0].telemetry_value == "120.5"
    assert rows[0].extra == {"lap": "2", "vehicle_id": "GR86-022-13"}
    assert rows[1].telemetry_name == "VBOX_Lat_Min"


def test_blank_fields_are_kept_for_the_aggregator():
    text = "\n".join([
        "timestamp,telemetry_name,telemetry_value",
        "10:00:00.100,speed,",
        ",speed,100",
    ])

    rows = parse_telemetry_text(text)

    assert [r.telemetry_value for r in rows] == ["", "100"]
    assert rows[1].timestamp == ""


def test_missing_required_column_is_a_format_error():
    with pytest.raises(TelemetryFormatError) as excinfo:
        parse_telemetry_text("timestamp,name,value\n1,speed,2\n")
    assert "telemetry_name" in str(excinfo.value)


def test_empty_text_yields_no_rows():
    assert parse_telemetry_text("") == []
    assert parse_telemetry_text("   \n") == []


def test_header_only_yields_no_rows():
    assert parse_telemetry_text("timestamp,telemetry_name,telemetry_value\n") == []


def test_semicolon_delimiter_is_detected():
    text = "timestamp;telemetry_name;telemetry_value\n10:00:00.100;speed;99\n"

    rows = parse_telemetry_text(text)

    assert rows[0].timestamp == "10:00:00.100"
    assert rows[0].telemetry_value == "99"


def test_detect_delimiter_ignores_timestamp_punctuation():
    assert detect_delimiter("timestamp\ttelemetry_name\ttelemetry_value") == "\t"
    assert detect_delimiter("timestamp") == ","


def test_load_file_strips_byte_order_mark(tmp_path):
    path = tmp_path / "lap.csv"
    path.write_text("\ufefftimestamp,telemetry_name,telemetry_value\n1,speed,3\n", encoding="utf-8")

    rows = load_telemetry_file(path)

    assert len(rows) == 1
    assert rows[0].telemetry_value == "3"


def test_ragged_line_is_skipped_without_losing_the_file():
    text = "\n".join([
        "timestamp,telemetry_name,telemetry_value",
        "10:00:00.100,VBOX_Lat_Min,33.53",
        "10:00:00.100,VBOX_Long_Minutes,-86.62",
        "10:00:00.200,speed,1,EXTRA",
        "10:00:00.300,VBOX_Lat_Min,33.54",
        "10:00:00.300,VBOX_Long_Minutes,-86.63",
    ])

    rows = parse_telemetry_text(text)

    assert [r.timestamp for r in rows] == ["10:00:00.100"] * 2 + ["10:00:00.300"] * 2
    assert "speed" not in [r.telemetry_name for r in rows]


def test_line_with_unbalanced_quote_is_skipped():
    text = "\n".join([
        "timestamp,telemetry_name,telemetry_value",
        "10:00:00.100,speed,120",
        '10:00:00.200,"speed,130',
        '10:00:00.300,"gear",4',
    ])

    rows = parse_telemetry_text(text)

    assert [(r.timestamp, r.telemetry_name, r.telemetry_value) for r in rows] == [
        ("10:00:00.100", "speed", "120"),
        ("10:00:00.300", "gear", "4"),
    ]
