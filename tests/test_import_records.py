from __future__ import annotations

import pytest

from finance_tracker.errors import ImportStateError
from finance_tracker.import_records import (
    COMPLETED,
    FAILED,
    PENDING,
    PROCESSING,
    create_import,
    is_terminal,
    mark_completed,
    mark_failed,
    mark_started,
    update_progress,
)


@pytest.fixture
def record(session, user_id, account_id):
    rec = create_import(
        session, user_id=user_id, account_id=account_id, filename="jan.csv", total_rows=3
    )
    session.commit()
    return rec


def test_new_import_is_pending_with_zero_counters(record):
    assert record.id is not None
    assert record.status == PENDING
    assert (record.processed_rows, record.imported_rows, record.duplicate_rows) == (0, 0, 0)
    assert record.started_at is None and record.completed_at is None


def test_happy_path_stamps_timestamps(session, record):
    mark_started(record)
    assert record.status == PROCESSING and record.started_at is not None

    update_progress(record, processed_rows=3, imported_rows=2, duplicate_rows=1)
    mark_completed(record)
    session.commit()

    assert record.status == COMPLETED
    assert record.completed_at is not None
    assert record.error_message is None
    assert (record.processed_rows, record.imported_rows, record.duplicate_rows) == (3, 2, 1)
    assert is_terminal(record)


def test_pending_can_fail_directly(record):
    mark_failed(record, "upload rejected")
    assert record.status == FAILED
    assert record.error_message == "upload rejected"
    assert record.completed_at is not None


@pytest.mark.parametrize(
    "steps",
    [
        [mark_completed],
        [mark_started, mark_started],
        [mark_started, mark_completed, mark_started],
    ],
)
def test_illegal_transitions_raise(record, steps):
    *ok, bad = steps
    for step in ok:
        step(record)
    with pytest.raises(ImportStateError):
        bad(record)


def test_terminal_imports_reject_further_changes(record):
    mark_failed(record, "boom")
    with pytest.raises(ImportStateError):
        mark_completed(record)
    with pytest.raises(ImportStateError):
        update_progress(record, processed_rows=1, imported_rows=1, duplicate_rows=0)
