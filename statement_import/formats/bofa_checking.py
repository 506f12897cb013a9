"""Bank of America checking account export.

The download starts with an account summary block, then a blank line, then
the real header ``Date,Description,Amount,Running Bal.``:

    Description,,Summary Amt.
    Beginning balance as of 01/01/2024,,"1,254.36"
    Total credits,,"2,000.00"
    Total debits,,"-1,108.04"
    Ending balance as of 01/31/2024,,"2,146.32"

    Date,Description,Amount,Running Bal.
    01/01/2024,Beginning balance as of 01/01/2024,,"1,254.36"
    01/15/2024,Grocery Store,-54.32,1200.00

Amounts are signed (debits negative) and may carry thousands separators.
There is no reference number or address column.
"""

from __future__ import annotations

from .models import (
    ColumnMappings,
    DateFormat,
    FormatConfig,
    NormalizeLineEndings,
    RemoveEmptyRows,
    SignedAmount,
    SkipUntilHeader,
    SyntheticReference,
)

BOFA_CHECKING_FORMAT = FormatConfig(
    expected_headers=("Date", "Description", "Amount", "Running Bal."),
    column_mappings=ColumnMappings(date="Date", counterparty_name="Description"),
    amount_handling=SignedAmount(column="Amount", invert=False),
    reference_number_strategy=SyntheticReference(),
    date_format=DateFormat(pattern="MM/DD/YYYY"),
    preprocessing=(
        NormalizeLineEndings(),
        SkipUntilHeader(header_pattern=r"^Date,Description,Amount"),
        RemoveEmptyRows(),
    ),
)
