"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the finance domain models used by ``finance_tracker``.
"""

from .finance import (
    Base,
    FtAccount,
    FtCsvSchema,
    FtImport,
    FtTag,
    FtTagTransaction,
    FtTransaction,
    FtUser,
)

__all__ = [
    "Base",
    "FtAccount",
    "FtCsvSchema",
    "FtImport",
    "FtTag",
    "FtTagTransaction",
    "FtTransaction",
    "FtUser",
]
