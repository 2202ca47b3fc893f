"""Shared expense splitting: net balances and the payments that settle them."""

__version__ = "0.2.0"

from expense_splitter.errors import (
    EmptySplitError,
    InvalidAmountError,
    ReferentialIntegrityError,
    SplitterError,
)
from expense_splitter.settlement import (
    TOLERANCE,
    Expense,
    Settlement,
    compute_balances,
    compute_settlements,
    summarize,
)

__all__ = [
    "Expense",
    "Settlement",
    "compute_balances",
    "compute_settlements",
    "summarize",
    "TOLERANCE",
    "SplitterError",
    "ReferentialIntegrityError",
    "EmptySplitError",
    "InvalidAmountError",
]
