"""Transaction fingerprint used as the deduplication key."""

from __future__ import annotations

import hashlib
import json


def generate_unique_hash(
    user_id: int,
    date: str,
    balance: int | None,
    paid_in: int | None,
    paid_out: int | None,
) -> str:
    """Return a SHA-256 hex digest over ``(user_id, date, balance, paid_in, paid_out)``.

    Description and reference are excluded: the same statement line can come
    back with different description formatting. ``None`` serializes as
    ``null`` so an absent amount and ``0`` hash differently.
    """

    payload = {
        "user_id": int(user_id),
        "date": date,
        "balance": balance,
        "paid_in": paid_in,
        "paid_out": paid_out,
    }
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


__all__ = ["generate_unique_hash"]
