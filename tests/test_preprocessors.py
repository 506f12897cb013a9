from statement_import.formats.bofa_checking import BOFA_CHECKING_FORMAT
from statement_import.formats.models import (
    NormalizeLineEndings,
    RemoveEmptyRows,
    SkipLines,
    SkipUntilHeader,
    TrimWhitespace,
    TsvToCsv,
)
from statement_import.preprocessors import (
    apply_step,
    normalize_line_endings,
    remove_empty_rows,
    run_preprocessing_pipeline,
    skip_lines,
    skip_until_header,
    strip_bom,
    trim_whitespace,
    tsv_to_csv,
)
from tests.helpers.samples import BOFA_CHECKING_CSV, BOFA_HEADER


def test_normalize_line_endings_handles_crlf_and_lone_cr():
    assert normalize_line_endings("a\r\nb\rc\nd") == "a\nb\nc\nd"


def test_skip_until_header_keeps_matching_line_first():
    text = "summary\nmore\nDate,Description,Amount\n1,2,3"
    assert skip_until_header(text, r"^Date,") == "Date,Description,Amount\n1,2,3"


def test_skip_until_header_is_anchored_to_line_start():
    text = "Note: Date,Description,Amount follows\nDate,Description,Amount\nrow"
    assert skip_until_header(text, "Date,Description") == "Date,Description,Amount\nrow"


def test_skip_until_header_without_match_passes_text_through():
    text = "no header here\njust rows"
    assert skip_until_header(text, r"^Date,") == text


def test_remove_empty_rows_drops_whitespace_only_lines():
    assert remove_empty_rows("a\n\n   \nb\n\t\nc") == "a\nb\nc"


def test_skip_lines_and_trim_whitespace():
    assert skip_lines("x\ny\nz", 2) == "z"
    assert skip_lines("x", 5) == ""
    assert trim_whitespace("  a \n\tb\t") == "a\nb"


def test_tsv_to_csv_quotes_fields_with_commas():
    assert tsv_to_csv("Date\tPayee\n01/02/2024\tAcme, Inc.") == 'Date,Payee\n01/02/2024,"Acme, Inc."'


def test_apply_step_dispatches_on_type():
    assert apply_step("a\r\nb", NormalizeLineEndings()) == "a\nb"
    assert apply_step("a\nb", SkipLines(count=1)) == "b"
    assert apply_step(" a ", TrimWhitespace()) == "a"
    assert apply_step("a\tb", TsvToCsv()) == "a,b"
    assert apply_step("a\n\nb", RemoveEmptyRows()) == "a\nb"
    assert apply_step("x\nH,1", SkipUntilHeader(header_pattern="^H")) == "H,1"


def test_pipeline_runs_steps_in_declared_order():
    text = "junk\r\n\r\nH,1\r\n\r\nv,2"
    steps = [
        NormalizeLineEndings(),
        SkipUntilHeader(header_pattern="^H,"),
        RemoveEmptyRows(),
    ]
    assert run_preprocessing_pipeline(text, steps) == "H,1\nv,2"
    # Without normalizing first, the \r stays on each line.
    assert run_preprocessing_pipeline(text, steps[1:]) == "H,1\r\nv,2"


def test_pipeline_with_no_steps_is_identity():
    assert run_preprocessing_pipeline("a\r\nb", None) == "a\r\nb"
    assert run_preprocessing_pipeline("a\r\nb", []) == "a\r\nb"


def test_bofa_pipeline_starts_at_header_and_has_no_blank_lines():
    out = run_preprocessing_pipeline(BOFA_CHECKING_CSV, BOFA_CHECKING_FORMAT.preprocessing)
    lines = out.split("\n")
    assert lines[0] == BOFA_HEADER
    assert all(line.strip() for line in lines)
    assert len(lines) == 4


def test_bofa_pipeline_with_windows_line_endings():
    crlf = BOFA_CHECKING_CSV.replace("\n", "\r\n")
    out = run_preprocessing_pipeline(crlf, BOFA_CHECKING_FORMAT.preprocessing)
    assert "\r" not in out
    assert out.split("\n")[0] == BOFA_HEADER


def test_strip_bom_only_removes_leading_mark():
    assert strip_bom("\ufeffDate,Amount") == "Date,Amount"
    assert strip_bom("Date,\ufeffAmount") == "Date,\ufeffAmount"
    assert strip_bom("") == ""
