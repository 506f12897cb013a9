from datetime import date
from decimal import Decimal

import pytest

from statement_import.formats.bofa_checking import BOFA_CHECKING_FORMAT
from statement_import.formats.models import (
    AbsoluteWithType,
    ColumnMappings,
    ColumnReference,
    DateFormat,
    FormatConfig,
    RemoveEmptyRows,
    SeparateColumns,
    SignedAmount,
    SyntheticReference,
)
from statement_import.parsing import (
    RowError,
    parse_amount,
    parse_date,
    parse_with_config,
    synthetic_reference,
    to_decimal,
)
from tests.helpers.samples import BOFA_CHECKING_CSV, BOFA_HEADER, CREDIT_UNION_CSV, dedent

# ---------------------------------------------------------------------------
# Bank of America checking
# ---------------------------------------------------------------------------


def test_bofa_checking_snapshot():
    result = parse_with_config(BOFA_CHECKING_CSV, BOFA_CHECKING_FORMAT)

    assert result.success
    assert result.errors == []
    assert result.header_mismatch is None
    assert result.headers == ("Date", "Description", "Amount", "Running Bal.")

    got = [r.as_dict() for r in result.rows]
    assert got == [
        {
            "idx": 0,
            "posted_date": "2024-01-15",
            "reference_number": "fin_dcdefafe7eec",
            "payee": "Grocery Store",
            "address": "",
            "amount": "-54.32",
        },
        {
            "idx": 1,
            "posted_date": "2024-01-16",
            "reference_number": "fin_d43282a1dcb2",
            "payee": "PAYROLL DEPOSIT, ACME",
            "address": "",
            "amount": "2000.00",
        },
        {
            "idx": 2,
            "posted_date": "2024-01-20",
            "reference_number": "fin_a40cd7cf5ae5",
            "payee": "Electric Co",
            "address": "",
            "amount": "-1053.72",
        },
    ]


def test_bofa_first_row_typed_values():
    row = parse_with_config(BOFA_CHECKING_CSV, BOFA_CHECKING_FORMAT).rows[0]
    assert row.posted_date == date(2024, 1, 15)
    assert row.amount == Decimal("-54.32")
    assert row.payee == "Grocery Store"


def test_synthetic_reference_is_deterministic():
    first = parse_with_config(BOFA_CHECKING_CSV, BOFA_CHECKING_FORMAT)
    second = parse_with_config(BOFA_CHECKING_CSV, BOFA_CHECKING_FORMAT)
    assert [r.reference_number for r in first.rows] == [r.reference_number for r in second.rows]
    # Row position distinguishes otherwise identical rows.
    a = synthetic_reference(date(2024, 1, 15), Decimal("-5.00"), "Cafe", 1)
    b = synthetic_reference(date(2024, 1, 15), Decimal("-5.00"), "Cafe", 2)
    assert a != b
    assert a.startswith("fin_") and len(a) == len("fin_") + 12


def test_bofa_beginning_balance_row_is_reported():
    content = dedent(
        f"""
        {BOFA_HEADER}
        01/01/2024,Beginning balance as of 01/01/2024,,"1,254.36"
        01/15/2024,Grocery Store,-54.32,1200.00
        """
    )
    result = parse_with_config(content, BOFA_CHECKING_FORMAT)
    assert not result.success
    assert result.errors == ["Row 2: Missing amount"]
    assert len(result.rows) == 1
    assert result.rows[0].idx == 0
    assert result.rows[0].payee == "Grocery Store"


def test_bofa_with_bom_and_crlf():
    content = "\ufeff" + BOFA_CHECKING_CSV.replace("\n", "\r\n")
    result = parse_with_config(content, BOFA_CHECKING_FORMAT)
    assert result.success
    assert len(result.rows) == 3


def test_row_level_errors_do_not_stop_other_rows():
    content = dedent(
        f"""
        {BOFA_HEADER}
        ,No Date,-1.00,0
        01/15/2024,,-2.00,0
        2024-01-15,Wrong Layout,-3.00,0
        01/16/2024,Okay,-4.00,0
        01/17/2024,Bad Amount,abc,0
        """
    )
    result = parse_with_config(content, BOFA_CHECKING_FORMAT)
    assert result.errors == [
        "Row 2: Missing date",
        "Row 3: Missing counterparty name",
        'Row 4: Date "2024-01-15" does not match format "MM/DD/YYYY"',
        'Row 6: Invalid amount "abc"',
    ]
    assert [r.payee for r in result.rows] == ["Okay"]


# ---------------------------------------------------------------------------
# Header handling
# ---------------------------------------------------------------------------


def test_cosmetic_header_difference_still_parses():
    content = BOFA_CHECKING_CSV.replace("Running Bal.", "Running Balance")
    result = parse_with_config(content, BOFA_CHECKING_FORMAT)
    assert result.success
    assert len(result.rows) == 3
    mismatch = result.header_mismatch
    assert mismatch is not None
    assert mismatch.expected == BOFA_CHECKING_FORMAT.expected_headers
    assert mismatch.actual == ("Date", "Description", "Amount", "Running Balance")
    assert mismatch.missing == ()


def test_missing_required_column_fails_without_rows():
    content = "Date,Payee,Amount\n01/15/2024,Grocery Store,-54.32"
    result = parse_with_config(content, BOFA_CHECKING_FORMAT)
    assert result.rows == []
    assert result.errors == ["Missing required columns: Description"]
    assert result.header_mismatch is not None
    assert result.header_mismatch.missing == ("Description",)


@pytest.mark.parametrize("content", ["", BOFA_HEADER, "\n\n" + BOFA_HEADER + "\n\n"])
def test_header_only_or_empty_input(content: str):
    result = parse_with_config(content, BOFA_CHECKING_FORMAT)
    assert result.rows == []
    assert result.errors == ["CSV file must have a header row and at least one data row"]


# ---------------------------------------------------------------------------
# Other amount and reference strategies
# ---------------------------------------------------------------------------


def _credit_union_format(*, preprocessing=(RemoveEmptyRows(),)) -> FormatConfig:
    return FormatConfig(
        expected_headers=("Txn Date", "Merchant", "Debit", "Credit", "Memo"),
        column_mappings=ColumnMappings(date="Txn Date", counterparty_name="Merchant"),
        amount_handling=SeparateColumns(debit_column="Debit", credit_column="Credit"),
        reference_number_strategy=SyntheticReference(),
        date_format=DateFormat(pattern="MM/DD/YYYY"),
        preprocessing=preprocessing,
    )


def test_separate_debit_and_credit_columns():
    result = parse_with_config(CREDIT_UNION_CSV, _credit_union_format())
    assert result.success
    assert [(r.payee, r.amount) for r in result.rows] == [
        ("Coffee Bar", Decimal("-4.50")),
        ("Store Refund", Decimal("12.00")),
        ("Rent, February", Decimal("-1500.00")),
        ("Bookshop", Decimal("-19.99")),
    ]


def test_blank_lines_without_preprocessing_are_counted():
    result = parse_with_config(CREDIT_UNION_CSV, _credit_union_format(preprocessing=()))
    assert result.success
    assert result.skipped == 1
    assert len(result.rows) == 4


def test_absolute_amount_with_type_column():
    cfg = FormatConfig(
        expected_headers=("Date", "Payee", "Amount", "Type"),
        column_mappings=ColumnMappings(date="Date", counterparty_name="Payee"),
        amount_handling=AbsoluteWithType(
            amount_column="Amount", type_column="Type", debit_value="Debit"
        ),
        reference_number_strategy=SyntheticReference(),
        date_format=DateFormat(pattern="YYYY-MM-DD"),
    )
    content = dedent(
        """
        Date,Payee,Amount,Type
        2024-03-01,Hardware,25.00,DEBIT
        2024-03-02,Refund,-10.00,Credit
        2024-03-03,Card Fee,3.00,Debit Card
        """
    )
    result = parse_with_config(content, cfg)
    assert [r.amount for r in result.rows] == [
        Decimal("-25.00"),
        Decimal("10.00"),
        Decimal("-3.00"),
    ]
    assert result.rows[0].posted_date == date(2024, 3, 1)


def test_column_reference_and_address():
    cfg = FormatConfig(
        expected_headers=("Posted", "Ref", "Payee", "Address", "Amount"),
        column_mappings=ColumnMappings(date="Posted", counterparty_name="Payee", address="Address"),
        amount_handling=SignedAmount(column="Amount", invert=True),
        reference_number_strategy=ColumnReference(column="Ref"),
        date_format=DateFormat(pattern="M/D/YYYY"),
    )
    content = dedent(
        """
        Posted,Ref,Payee,Address,Amount
        1/5/2024,TX-100,Hardware,"12 Main St, Springfield",25.00
        1/6/2024,,Bakery,,4.00
        1/7/2024,TX-102,Employer,,-1500.00
        """
    )
    result = parse_with_config(content, cfg)
    assert result.errors == ["Row 3: Missing reference number"]
    first, second = result.rows
    assert first.reference_number == "TX-100"
    assert first.address == "12 Main St, Springfield"
    assert first.amount == Decimal("-25.00")
    assert first.posted_date == date(2024, 1, 5)
    assert second.idx == 1
    assert second.address == ""
    assert second.amount == Decimal("1500.00")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("-54.32", Decimal("-54.32")),
        ("$54.32", Decimal("54.32")),
        ("($89.99)", Decimal("-89.99")),
        ("-($1,234.56)", Decimal("-1234.56")),
        ("+5", Decimal("5")),
        ("1,053.72", Decimal("1053.72")),
    ],
)
def test_to_decimal(raw: str, expected: Decimal):
    assert to_decimal(raw) == expected


@pytest.mark.parametrize(
    ("raw", "message"),
    [
        ("", "Missing amount"),
        ("abc", 'Invalid amount "abc"'),
        ("NaN", 'Invalid amount "NaN"'),
    ],
)
def test_to_decimal_rejects(raw: str, message: str):
    with pytest.raises(RowError) as exc:
        to_decimal(raw)
    assert str(exc.value) == message


@pytest.mark.parametrize(
    ("value", "pattern", "expected"),
    [
        ("01/15/2024", "MM/DD/YYYY", date(2024, 1, 15)),
        ("1/5/2024", "M/D/YYYY", date(2024, 1, 5)),
        ("2024-01-15", "YYYY-MM-DD", date(2024, 1, 15)),
        ("15/01/2024", "DD/MM/YYYY", date(2024, 1, 15)),
        ("15.01.24", "DD.MM.YY", date(2024, 1, 15)),
    ],
)
def test_parse_date_patterns(value: str, pattern: str, expected: date):
    assert parse_date(value, pattern) == expected


def test_parse_date_rejects_impossible_dates():
    with pytest.raises(RowError, match='does not match format "MM/DD/YYYY"'):
        parse_date("02/30/2024", "MM/DD/YYYY")


def test_separate_columns_both_blank_is_missing():
    handling = SeparateColumns(debit_column="D", credit_column="C")
    with pytest.raises(RowError, match="Missing amount"):
        parse_amount({"D": "", "C": ""}, handling)
    # A zero debit defers to the credit column.
    assert parse_amount({"D": "0.00", "C": "7.25"}, handling) == Decimal("7.25")
