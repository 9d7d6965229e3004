from __future__ import annotations

import pytest

from finance_tracker.errors import RowExtractionError
from finance_tracker.fingerprint import generate_unique_hash
from finance_tracker.ingest.csv_reader import parse_with_schema
from finance_tracker.ingest.extract import extract_all, extract_transaction_data
from finance_tracker.models import MappedRow
from finance_tracker.schema import ColumnSchema

SINGLE = ColumnSchema(
    transaction_data_start=1,
    date_column=1,
    balance_column=2,
    amount_column=3,
    description_column=4,
)
SPLIT = ColumnSchema(
    transaction_data_start=1,
    date_column=1,
    balance_column=2,
    paid_in_column=3,
    paid_out_column=4,
    description_column=5,
)


def _row(schema: ColumnSchema, line: str) -> MappedRow:
    return parse_with_schema(line + "\n", schema)[0]


def test_positive_amount_is_paid_in():
    tx = extract_transaction_data(_row(SINGLE, "2023-01-01,1000.00,100.00,Test"), SINGLE, 1)
    assert tx.date == "2023-01-01"
    assert tx.balance == 100000
    assert (tx.paid_in, tx.paid_out) == (10000, None)
    assert tx.description == "Test"
    assert tx.unique_hash == generate_unique_hash(1, "2023-01-01", 100000, 10000, None)


def test_negative_amount_is_paid_out():
    tx = extract_transaction_data(_row(SINGLE, "2023-01-01,1000.00,-100.00,Test"), SINGLE, 1)
    assert (tx.paid_in, tx.paid_out) == (None, 10000)


def test_zero_amount_in_single_column_is_paid_in():
    tx = extract_transaction_data(_row(SINGLE, "2023-01-01,5.00,0.00,Fee reversal"), SINGLE, 1)
    assert (tx.paid_in, tx.paid_out) == (0, None)


def test_empty_amount_leaves_both_sides_absent():
    tx = extract_transaction_data(_row(SINGLE, "2023-01-01,5.00,,Interest"), SINGLE, 1)
    assert (tx.paid_in, tx.paid_out) == (None, None)


def test_date_format_hint_is_used():
    row = _row(SINGLE, "03/04/2024,1.00,1.00,x")
    assert extract_transaction_data(row, SINGLE, 1, "m/d/Y").date == "2024-03-04"
    assert extract_transaction_data(row, SINGLE, 1).date == "2024-04-03"


def test_split_columns_take_absolute_values():
    tx = extract_transaction_data(_row(SPLIT, "2024-01-02,90.00,,-10.00,Card"), SPLIT, 1)
    assert (tx.paid_in, tx.paid_out) == (None, 1000)
    tx = extract_transaction_data(_row(SPLIT, "2024-01-02,90.00,(25.00),,Refund"), SPLIT, 1)
    assert (tx.paid_in, tx.paid_out) == (2500, None)


def test_split_columns_zero_counts_as_absent():
    tx = extract_transaction_data(_row(SPLIT, "2024-01-02,90.00,0.00,12.00,Card"), SPLIT, 1)
    assert (tx.paid_in, tx.paid_out) == (None, 1200)


def test_split_columns_both_present_is_an_error():
    with pytest.raises(RowExtractionError) as info:
        extract_transaction_data(_row(SPLIT, "2024-01-02,90.00,5.00,12.00,Card"), SPLIT, 1)
    assert info.value.row_number == 1
    assert info.value.message == "both paid_in and paid_out present"


@pytest.mark.parametrize(
    "line, prefix",
    [
        ("not a date,1.00,1.00,x", "invalid date"),
        ("2024-01-01,,1.00,x", "balance is required"),
        ("2024-01-01,abc,1.00,x", "invalid balance"),
        ("2024-01-01,1.00,12..0,x", "invalid amount"),
    ],
)
def test_row_errors(line: str, prefix: str):
    with pytest.raises(RowExtractionError) as info:
        extract_transaction_data(_row(SINGLE, line), SINGLE, 1)
    assert info.value.message.startswith(prefix)


def test_extract_all_collects_errors_and_keeps_going():
    text = "\n".join(
        [
            "2024-01-01,100.00,-5.00,Coffee",
            "garbage,100.00,-5.00,Broken",
            "2024-01-03,95.00,,Nothing moved",
            "2024-01-04,,-1.00,No balance",
        ]
    )
    rows = parse_with_schema(text, SINGLE)
    transactions, errors = extract_all(rows, SINGLE, user_id=7)

    assert [t.row_number for t in transactions] == [1, 3]
    assert [(e.row_number, e.message.split(":")[0]) for e in errors] == [
        (2, "invalid date"),
        (4, "balance is required"),
    ]
    assert errors[0].raw_row == ("garbage", "100.00", "-5.00", "Broken")
    assert errors[0].to_dict()["row_data"] == ["garbage", "100.00", "-5.00", "Broken"]
    for tx in transactions:
        assert tx.paid_in is None or tx.paid_out is None


def test_unusable_schema_date_format_falls_back_to_candidates():
    schema = ColumnSchema(
        transaction_data_start=1,
        date_column=1,
        balance_column=2,
        amount_column=3,
        date_format="dd/mm/yyyy",
    )
    tx = extract_transaction_data(_row(schema, "15/01/2024,10.00,-1.00"), schema, 1)
    assert tx.date == "2024-01-15"
