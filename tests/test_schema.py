from __future__ import annotations

import pytest

from finance_tracker.errors import RecordNotFoundError, SchemaValidationError
from finance_tracker.persistence import clone_schema, create_schema, list_schemas, load_schema
from finance_tracker.schema import ColumnSchema, clone_name, parse_column_ref


def _valid(**overrides) -> ColumnSchema:
    values = dict(transaction_data_start=2, date_column=1, balance_column=4, amount_column=3)
    values.update(overrides)
    return ColumnSchema(**values)


def test_valid_schema_passes():
    _valid().validate()
    _valid(amount_column=None, paid_in_column=3, paid_out_column=5).validate()
    _valid(amount_column=None, paid_out_column=5).validate()
    _valid(date_format="F jS, Y").validate()
    _valid(date_format="%d%m%Y").validate()


@pytest.mark.parametrize(
    "overrides, field, message",
    [
        (
            {"transaction_data_start": 0, "date_column": None},
            "transaction_data_start",
            "start row must be ≥1",
        ),
        ({"date_column": None, "balance_column": None}, "date_column", "date column required"),
        (
            {"balance_column": None, "amount_column": None},
            "balance_column",
            "balance column required",
        ),
        ({"amount_column": None}, "amount_column", "amount or paid_in/paid_out required"),
        (
            {"paid_in_column": 5},
            "amount_column",
            "use either amount or paid_in/paid_out, not both",
        ),
        ({"description_column": 0}, "description_column", "description_column must be ≥1"),
        (
            {"date_format": "dd/mm/yyyy"},
            "date_format",
            "unsupported date format: 'dd/mm/yyyy'",
        ),
    ],
)
def test_validation_reports_first_failure_in_order(overrides, field, message):
    with pytest.raises(SchemaValidationError) as info:
        _valid(**overrides).validate()
    assert info.value.field == field
    assert str(info.value) == message


def test_amount_mode_predicates_are_exclusive():
    single = _valid()
    split = _valid(amount_column=None, paid_in_column=3, paid_out_column=5)
    assert single.uses_single_amount_column() and not single.uses_separate_amount_columns()
    assert split.uses_separate_amount_columns() and not split.uses_single_amount_column()


def test_column_mapping_returns_populated_fields_only():
    assert _valid(description_column=2).get_column_mapping() == {
        "date": 1,
        "balance": 4,
        "amount": 3,
        "description": 2,
    }
    split = _valid(amount_column=None, paid_out_column=5)
    assert split.get_column_mapping() == {"date": 1, "balance": 4, "paid_out": 5}


def test_clone_name_picks_first_unused_suffix():
    assert clone_name("HSBC", []) == "HSBC (copy)"
    assert clone_name("HSBC", ["HSBC", "HSBC (copy)"]) == "HSBC (copy 2)"
    assert clone_name("HSBC", ["HSBC (copy)", "HSBC (copy 2)", "HSBC (copy 4)"]) == "HSBC (copy 3)"


@pytest.mark.parametrize(
    "ref, expected", [(3, 3), ("3", 3), ("C", 3), ("a", 1), ("", None), (None, None)]
)
def test_parse_column_ref(ref, expected):
    assert parse_column_ref(ref) == expected


def test_parse_column_ref_rejects_garbage():
    with pytest.raises(SchemaValidationError):
        parse_column_ref("AB")


def test_schema_crud_and_clone(session, user_id):
    row = create_schema(session, user_id=user_id, name="HSBC", schema=_valid(date_format="d/m/Y"))
    session.commit()

    loaded = load_schema(session, schema_id=row.id, user_id=user_id)
    assert loaded.name == "HSBC"
    assert loaded.date_format == "d/m/Y"
    assert loaded.get_column_mapping() == {"date": 1, "balance": 4, "amount": 3}

    first = clone_schema(session, schema_id=row.id, user_id=user_id)
    second = clone_schema(session, schema_id=row.id, user_id=user_id)
    session.commit()
    assert (first.name, second.name) == ("HSBC (copy)", "HSBC (copy 2)")
    assert first.date_column == 1 and first.amount_column == 3 and first.date_format == "d/m/Y"
    assert [s.name for s in list_schemas(session, user_id=user_id)] == [
        "HSBC",
        "HSBC (copy)",
        "HSBC (copy 2)",
    ]


def test_create_schema_rejects_invalid_and_duplicate_names(session, user_id):
    with pytest.raises(SchemaValidationError):
        create_schema(session, user_id=user_id, name="Bad", schema=_valid(date_column=None))
    create_schema(session, user_id=user_id, name="Dup", schema=_valid())
    with pytest.raises(SchemaValidationError) as info:
        create_schema(session, user_id=user_id, name="Dup", schema=_valid())
    assert info.value.field == "name"


def test_load_schema_scoped_to_owner(session, user_id):
    row = create_schema(session, user_id=user_id, name="Mine", schema=_valid())
    session.commit()
    with pytest.raises(RecordNotFoundError):
        load_schema(session, schema_id=row.id, user_id=user_id + 999)


def test_create_schema_rejects_unusable_date_format(session, user_id):
    with pytest.raises(SchemaValidationError) as info:
        create_schema(
            session, user_id=user_id, name="Typo", schema=_valid(date_format="dd/mm/yyyy")
        )
    assert info.value.field == "date_format"
    assert list_schemas(session, user_id=user_id) == []
