"""
Tests for the error code index: loading, lookups, filters, search and renderings.

Run: python -m pytest car_diag/test_dtc_database.py
"""
import io
from pathlib import Path

import pytest

from car_diag.dtc_database import DiagnosticsIndex, ErrorCode, LoadError, split_segments
from car_diag.cli import BUNDLED_DATABASE

HEADER = "code,description,severity,system,possible_causes,recommended_actions\n"

TURBO_ROW = "P0299,turbo lag detected,High,Engine,worn seal|low boost,replace seal\n"


def write_csv(tmp_path: Path, body: str, header: str = HEADER) -> Path:
    path = tmp_path / "error_codes.csv"
    path.write_text(header + body, encoding="utf-8")
    return path


def load_index(tmp_path: Path, body: str, header: str = HEADER) -> DiagnosticsIndex:
    index = DiagnosticsIndex()
    index.load(write_csv(tmp_path, body, header))
    return index


def make_error(**overrides) -> ErrorCode:
    fields = {
        'code': 'P0300',
        'description': 'Random/Multiple Cylinder Misfire Detected',
        'severity': 'High',
        'system': 'Engine',
        'possible_causes': 'a|b|c',
        'recommended_actions': 'Replace plugs',
    }
    fields.update(overrides)
    return ErrorCode(**fields)


def test_load_returns_record_count(tmp_path):
    index = DiagnosticsIndex()
    count = index.load(write_csv(tmp_path, TURBO_ROW + "P0171,System Too Lean,Medium,Fuel,Vacuum leak,Smoke test\n"))
    assert count == 2
    assert len(index) == 2
    assert index.is_loaded


def test_lookup_is_exact_and_case_sensitive(tmp_path):
    index = load_index(tmp_path, TURBO_ROW)
    error = index.lookup("P0299")
    assert error is not None
    assert error.description == "turbo lag detected"
    assert index.lookup("p0299") is None
    assert index.lookup("P029") is None
    assert "P0299" in index


def test_duplicate_code_last_row_wins(tmp_path):
    body = (
        "P0420,Catalyst efficiency low,Medium,Emissions,Old catalyst,Replace catalyst\n"
        "P0420,Catalyst below threshold,High,Exhaust,O2 sensor,Check sensor\n"
    )
    index = load_index(tmp_path, body)
    assert len(index) == 1
    error = index.lookup("P0420")
    assert error.description == "Catalyst below threshold"
    assert error.severity == "High"
    assert error.system == "Exhaust"


def test_header_columns_in_any_order(tmp_path):
    header = "system,code,severity,description,recommended_actions,possible_causes\n"
    index = load_index(tmp_path, "ABS,C0035,High,Wheel speed sensor,Replace sensor,Broken wire\n", header)
    error = index.lookup("C0035")
    assert error.system == "ABS"
    assert error.description == "Wheel speed sensor"
    assert error.possible_causes == "Broken wire"
    assert error.recommended_actions == "Replace sensor"


def test_extra_header_columns_are_ignored(tmp_path):
    header = HEADER.rstrip("\n") + ",notes\n"
    index = load_index(tmp_path, "P0128,Thermostat,Low,Cooling,Stuck open,Replace,seen twice\n", header)
    assert index.lookup("P0128").system == "Cooling"


def test_quoted_fields_keep_commas(tmp_path):
    index = load_index(tmp_path, 'P0562,"Voltage low, check battery",Medium,Electrical,Weak battery,Charge\n')
    assert index.lookup("P0562").description == "Voltage low, check battery"


def test_blank_lines_are_skipped(tmp_path):
    index = load_index(tmp_path, TURBO_ROW + "\n")
    assert len(index) == 1


def test_load_from_stream():
    index = DiagnosticsIndex()
    assert index.load(io.StringIO(HEADER + TURBO_ROW)) == 1
    assert index.lookup("P0299") is not None


def test_bundled_dataset_loads():
    index = DiagnosticsIndex()
    assert index.load(BUNDLED_DATABASE) > 0
    assert index.lookup("P0300") is not None


def test_missing_file_raises_load_error(tmp_path):
    index = DiagnosticsIndex()
    with pytest.raises(LoadError):
        index.load(tmp_path / "missing.csv")
    assert len(index) == 0
    assert not index.is_loaded


def test_short_row_fails_whole_load(tmp_path):
    body = TURBO_ROW + "P0171,System Too Lean,Medium,Fuel,Vacuum leak\n"
    index = DiagnosticsIndex()
    with pytest.raises(LoadError, match="line 3"):
        index.load(write_csv(tmp_path, body))
    assert len(index) == 0
    assert index.lookup("P0299") is None
    assert index.search("") == []


def test_long_row_fails_whole_load(tmp_path):
    index = DiagnosticsIndex()
    with pytest.raises(LoadError):
        index.load(write_csv(tmp_path, TURBO_ROW.rstrip("\n") + ",unexpected\n"))
    assert len(index) == 0


def test_header_missing_column_fails(tmp_path):
    header = "code,description,severity,system,possible_causes\n"
    index = DiagnosticsIndex()
    with pytest.raises(LoadError, match="recommended_actions"):
        index.load(write_csv(tmp_path, "P0001,Test,Low,Engine,Cause\n", header))


def test_empty_file_fails(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    with pytest.raises(LoadError):
        DiagnosticsIndex().load(path)


def test_invalid_utf8_fails(tmp_path):
    path = tmp_path / "latin1.csv"
    path.write_bytes(HEADER.encode("utf-8") + "P0001,Temp\xe9rature,Low,Engine,a,b\n".encode("latin-1"))
    with pytest.raises(LoadError):
        DiagnosticsIndex().load(path)


def test_failed_reload_keeps_previous_records(tmp_path):
    index = load_index(tmp_path, TURBO_ROW)
    bad = tmp_path / "bad.csv"
    bad.write_text(HEADER + "P0001,Only,two\n", encoding="utf-8")
    with pytest.raises(LoadError):
        index.load(bad)
    assert index.lookup("P0299") is not None


@pytest.mark.parametrize("system", ["engine", "ENGINE", "Engine"])
def test_list_by_system_is_case_insensitive(tmp_path, system):
    index = load_index(tmp_path, TURBO_ROW + "C0035,Wheel speed,High,ABS,Sensor,Replace\n")
    results = index.list_by_system(system)
    assert [error.code for error in results] == ["P0299"]


def test_list_by_system_no_match_or_empty(tmp_path):
    index = load_index(tmp_path, TURBO_ROW)
    assert index.list_by_system("Transmission") == []
    assert index.list_by_system("") == []
    # equality, not substring
    assert index.list_by_system("Eng") == []


def test_list_by_severity(tmp_path):
    body = TURBO_ROW + "P0128,Thermostat,Low,Cooling,Stuck open,Replace\nP0217,Overheat,high,Cooling,Pump,Stop\n"
    index = load_index(tmp_path, body)
    assert {error.code for error in index.list_by_severity("HIGH")} == {"P0299", "P0217"}
    assert [error.code for error in index.list_by_severity("low")] == ["P0128"]
    assert index.list_by_severity("Critical") == []


def test_unknown_severity_values_are_kept(tmp_path):
    index = load_index(tmp_path, "P1234,Custom code,Informational,Engine,x,y\n")
    assert index.lookup("P1234").severity == "Informational"
    assert len(index.list_by_severity("informational")) == 1


def test_search_scope(tmp_path):
    index = load_index(tmp_path, TURBO_ROW)
    assert [error.code for error in index.search("seal")] == ["P0299"]
    assert [error.code for error in index.search("TURBO")] == ["P0299"]
    assert index.search("zzz") == []


def test_search_matches_actions_only(tmp_path):
    index = load_index(tmp_path, "P0128,Thermostat,Low,Cooling,Stuck open,Flush radiator\n")
    assert len(index.search("radiator")) == 1


def test_search_does_not_match_system_or_code(tmp_path):
    index = load_index(tmp_path, TURBO_ROW)
    assert index.search("P0299") == []
    assert index.search("Engine") == []


def test_search_runs_on_raw_delimited_string(tmp_path):
    index = load_index(tmp_path, TURBO_ROW)
    # The raw string contains the '|' so a keyword spanning it still matches
    assert len(index.search("seal|low")) == 1
    # and a keyword spanning the segment boundary without it does not
    assert index.search("seal low") == []


def test_empty_keyword_matches_everything(tmp_path):
    body = TURBO_ROW + "P0128,Thermostat,Low,Cooling,Stuck open,Replace\n"
    index = load_index(tmp_path, body)
    assert len(index.search("")) == len(index) == 2


def test_records_are_immutable(tmp_path):
    index = load_index(tmp_path, TURBO_ROW)
    error = index.lookup("P0299")
    with pytest.raises(AttributeError):
        error.code = "P9999"
    assert index.lookup("P0299").code == "P0299"


def test_split_segments_trims_and_keeps_empty():
    assert split_segments(" a | b |c ") == ["a", "b", "c"]
    assert split_segments("single cause") == ["single cause"]
    assert split_segments("a||b|") == ["a", "", "b", ""]


def test_render_text_layout():
    error = make_error(possible_causes="a|b|c", recommended_actions="fix it")
    assert error.render_text() == (
        "Error Code: P0300\n"
        "Description: Random/Multiple Cylinder Misfire Detected\n"
        "Severity: High\n"
        "System: Engine\n"
        "\n"
        "Possible Causes:\n"
        "  - a\n"
        "  - b\n"
        "  - c\n"
        "\n"
        "Recommended Actions:\n"
        "  - fix it\n"
    )


def test_render_text_contains_fields(tmp_path):
    index = load_index(tmp_path, TURBO_ROW)
    text = index.lookup("P0299").render_text()
    for value in ("P0299", "turbo lag detected", "High", "Engine"):
        assert value in text


def test_render_text_keeps_blank_segments():
    error = make_error(possible_causes="a|")
    assert "  - a\n  - \n" in error.render_text()


def test_render_html_fragment_layout():
    error = make_error(possible_causes="a|b|c", recommended_actions="x|y")
    assert error.render_html_fragment() == (
        "<div class='error-code'>\n"
        "<h2>Error Code: P0300</h2>\n"
        "<p><strong>Description:</strong> Random/Multiple Cylinder Misfire Detected</p>\n"
        "<p><strong>Severity:</strong> High</p>\n"
        "<p><strong>System:</strong> Engine</p>\n"
        "<h3>Possible Causes:</h3>\n"
        "<ul>\n"
        "<li>a</li>\n"
        "<li>b</li>\n"
        "<li>c</li>\n"
        "</ul>\n"
        "<h3>Recommended Actions:</h3>\n"
        "<ul>\n"
        "<li>x</li>\n"
        "<li>y</li>\n"
        "</ul>\n"
        "</div>\n"
    )


def test_render_html_fragment_escaping():
    error = make_error(description="<script>alert(1)</script> & more", possible_causes="a<b")
    escaped = error.render_html_fragment()
    assert "<script>" not in escaped
    assert "&lt;script&gt;alert(1)&lt;/script&gt; &amp; more" in escaped
    assert "<li>a&lt;b</li>" in escaped

    raw = error.render_html_fragment(escape=False)
    assert "<script>alert(1)</script> & more" in raw
    assert "<li>a<b</li>" in raw


def test_stream_with_bom_loads(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_text("\ufeff" + HEADER + TURBO_ROW, encoding="utf-8")
    index = DiagnosticsIndex()
    with open(path, encoding="utf-8", newline="") as f:
        assert index.load(f) == 1
    assert index.lookup("P0299") is not None


def test_unreadable_stream_raises_load_error(tmp_path):
    index = DiagnosticsIndex()
    with open(tmp_path / "out.csv", "w", encoding="utf-8") as f:
        with pytest.raises(LoadError, match="Cannot read"):
            index.load(f)
    assert not index.is_loaded


def test_iterating_index_yields_records(tmp_path):
    index = load_index(tmp_path, TURBO_ROW + "P0128,Thermostat,Low,Cooling,Stuck open,Replace\n")
    assert sorted(error.code for error in index) == ["P0128", "P0299"]
