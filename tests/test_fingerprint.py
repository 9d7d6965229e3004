from __future__ import annotations

import hashlib
import json

from finance_tracker.fingerprint import generate_unique_hash


def test_hash_is_stable_sha256_hex():
    h = generate_unique_hash(1, "2024-01-15", 98750, None, 1250)
    assert h == generate_unique_hash(1, "2024-01-15", 98750, None, 1250)
    assert len(h) == 64 and all(c in "0123456789abcdef" for c in h)

    expected = hashlib.sha256(
        json.dumps(
            {
                "balance": 98750,
                "date": "2024-01-15",
                "paid_in": None,
                "paid_out": 1250,
                "user_id": 1,
            },
            sort_keys=True,
            separators=(",", ":"),
        ).encode()
    ).hexdigest()
    assert h == expected


def test_every_identity_field_changes_the_hash():
    base = dict(user_id=1, date="2024-01-15", balance=98750, paid_in=None, paid_out=1250)
    variants = [
        {"user_id": 2},
        {"date": "2024-01-16"},
        {"balance": 98751},
        {"paid_in": 1250, "paid_out": None},
        {"paid_out": 1251},
    ]
    seen = {generate_unique_hash(**base)}
    for change in variants:
        seen.add(generate_unique_hash(**{**base, **change}))
    assert len(seen) == len(variants) + 1


def test_absent_amount_differs_from_zero():
    assert generate_unique_hash(1, "2024-01-15", 0, None, None) != generate_unique_hash(
        1, "2024-01-15", 0, 0, None
    )
