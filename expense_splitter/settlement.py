# expense_splitter/settlement.py
"""
Balance and settlement engine.

compute_balances() turns a roster and a list of expenses into each person's
net position, compute_settlements() turns those positions into a short list
of payments. Both are pure: no I/O, no logging, nothing cached between calls.

The settlement pass is the greedy "biggest debtor pays biggest creditor"
heuristic. It usually needs at most len(people) - 1 payments but it is not a
minimum-transaction solver.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from expense_splitter.errors import (
    EmptySplitError,
    InvalidAmountError,
    ReferentialIntegrityError,
    ValidationError,
)

# Balances within one cent of zero count as settled
TOLERANCE = 0.01


def parse_amount(value):
    """Coerce a form/JSON value to a positive, finite float."""
    if isinstance(value, bool):
        raise InvalidAmountError("Amount must be a number", {"amount": value})
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise InvalidAmountError("Amount must be a number", {"amount": value})
    if not math.isfinite(amount) or amount <= 0:
        raise InvalidAmountError("Amount must be greater than zero", {"amount": value})
    return amount


@dataclass(frozen=True)
class Expense:
    payer: str
    amount: float
    beneficiaries: Tuple[str, ...]
    description: str = ""
    id: Optional[int] = None

    def __post_init__(self):
        # Same person ticked twice still only gets one share
        object.__setattr__(self, "beneficiaries", tuple(dict.fromkeys(self.beneficiaries)))

    @property
    def share(self):
        return self.amount / len(self.beneficiaries)

    def to_dict(self):
        return {
            "id": self.id,
            "description": self.description,
            "amount": self.amount,
            "paidBy": self.payer,
            "splitAmong": list(self.beneficiaries),
        }

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, Mapping):
            raise ValidationError("Expense must be an object", {"expense": data})
        missing = [key for key in ("amount", "paidBy", "splitAmong") if key not in data]
        if missing:
            raise ValidationError("Expense is missing fields", {"missing": ",".join(missing)})

        split_among = data["splitAmong"]
        if isinstance(split_among, str) or not isinstance(split_among, (list, tuple)):
            raise ValidationError("splitAmong must be a list of names", {"splitAmong": split_among})
        if not all(isinstance(name, str) for name in [data["paidBy"], *split_among]):
            raise ValidationError("People must be given by name", {"expense": data.get("id")})

        return cls(
            payer=data["paidBy"],
            amount=parse_amount(data["amount"]),
            beneficiaries=tuple(split_among),
            description=data.get("description") or "",
            id=data.get("id"),
        )


@dataclass(frozen=True)
class Settlement:
    debtor: str
    creditor: str
    amount: float

    def to_dict(self):
        return {"from": self.debtor, "to": self.creditor, "amount": self.amount}

    def __str__(self):
        return f"{self.debtor} owes {self.creditor} ${self.amount:.2f}"


def validate_expense(expense: Expense, roster: Iterable[str]) -> None:
    """Raise if the expense cannot be applied against this roster."""
    members = set(roster)

    if isinstance(expense.amount, bool) or not isinstance(expense.amount, (int, float)) \
            or not math.isfinite(expense.amount) or expense.amount <= 0:
        raise InvalidAmountError(
            "Amount must be greater than zero",
            {"expense": expense.id, "amount": expense.amount},
        )

    if not expense.beneficiaries:
        raise EmptySplitError("Expense must be split among at least one person", {"expense": expense.id})

    if expense.payer not in members:
        raise ReferentialIntegrityError(
            "Payer is not in the group",
            {"expense": expense.id, "payer": expense.payer},
        )

    strangers = [person for person in expense.beneficiaries if person not in members]
    if strangers:
        raise ReferentialIntegrityError(
            "Expense is split with people who are not in the group",
            {"expense": expense.id, "people": ",".join(map(str, strangers))},
        )


def compute_balances(roster: Sequence[str], expenses: Iterable[Expense]) -> Dict[str, float]:
    # Everyone shows up, even with nothing paid or owed
    balances = {person: 0.0 for person in roster}

    for expense in expenses:
        # Check first so a bad expense never half-applies
        validate_expense(expense, balances)

        balances[expense.payer] += expense.amount

        share = expense.share
        for person in expense.beneficiaries:
            balances[person] -= share

    return balances


def compute_settlements(balances: Mapping[str, float]) -> List[Settlement]:
    # 1. Separate Debtors and Creditors
    debtors = []
    creditors = []

    for person, amount in balances.items():
        if amount < -TOLERANCE:
            debtors.append({"person": person, "amount": -amount})
        elif amount > TOLERANCE:
            creditors.append({"person": person, "amount": amount})

    # Biggest first, ties broken by name
    debtors.sort(key=lambda x: (-x["amount"], x["person"]))
    creditors.sort(key=lambda x: (-x["amount"], x["person"]))

    # 2. Match them up
    settlements = []
    i = 0
    j = 0

    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]

        payment = min(debtor["amount"], creditor["amount"])
        settlements.append(Settlement(debtor["person"], creditor["person"], payment))

        debtor["amount"] -= payment
        creditor["amount"] -= payment

        if debtor["amount"] < TOLERANCE:
            i += 1
        if creditor["amount"] < TOLERANCE:
            j += 1

    return settlements


def summarize(roster, expenses):
    """Everything the frontend renders for a group, computed from scratch."""
    expenses = list(expenses)
    balances = compute_balances(roster, expenses)
    settlements = compute_settlements(balances)

    return {
        "balances": balances,
        "settlements": [s.to_dict() for s in settlements],
        "total": sum(e.amount for e in expenses),
        "settled": not settlements,
    }
