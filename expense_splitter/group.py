# expense_splitter/group.py
"""
Group session state and the commands that change it.

A GroupState is never mutated in place. Each command checks its input and
returns a new state; the caller decides when to save it.
"""

import random
import string
import time
from dataclasses import dataclass, replace
from typing import Iterable, Optional, Tuple

from expense_splitter.errors import (
    DuplicateParticipantError,
    ParticipantInUseError,
    RosterSizeError,
    UnknownExpenseError,
    UnknownParticipantError,
    ValidationError,
)
from expense_splitter.settlement import Expense, parse_amount, summarize, validate_expense

DEFAULT_ROSTER = ("Alex", "Jordan")
MIN_ROSTER_SIZE = 2

_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class GroupState:
    roster: Tuple[str, ...] = DEFAULT_ROSTER
    expenses: Tuple[Expense, ...] = ()

    def summary(self):
        return summarize(self.roster, self.expenses)

    def to_dict(self):
        return {
            "people": list(self.roster),
            "expenses": [e.to_dict() for e in self.expenses],
        }

    def stale_expense_ids(self):
        """Ids of expenses that mention someone no longer on the roster."""
        members = set(self.roster)
        return [
            e.id for e in self.expenses
            if e.payer not in members or any(p not in members for p in e.beneficiaries)
        ]

    @classmethod
    def from_dict(cls, data):
        roster = new_group(data.get("people")).roster
        expenses = data.get("expenses") or []
        if not isinstance(expenses, list):
            raise ValidationError("expenses must be a list", {"expenses": expenses})
        return cls(
            roster=roster,
            expenses=tuple(Expense.from_dict(item) for item in expenses),
        )


def new_group(people: Optional[Iterable[str]] = None) -> GroupState:
    if people is None:
        return GroupState()
    if isinstance(people, str) or not isinstance(people, (list, tuple)):
        raise ValidationError("people must be a list of names", {"people": people})

    state = GroupState(roster=())
    for name in people:
        state = add_participant(state, name)
    if len(state.roster) < MIN_ROSTER_SIZE:
        raise RosterSizeError(f"A group needs at least {MIN_ROSTER_SIZE} people",
                              {"people": len(state.roster)})
    return state


def new_group_id():
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"group_{int(time.time() * 1000)}_{suffix}"


def share_link(base_url, group_id):
    return f"{base_url}?group={group_id}"


def _clean_name(name):
    if not isinstance(name, str) or not name.strip():
        raise ValidationError("Name cannot be blank", {"name": name})
    return name.strip()


def add_participant(state: GroupState, name: str) -> GroupState:
    name = _clean_name(name)
    if name in state.roster:
        raise DuplicateParticipantError("Person is already in the group", {"name": name})

    return replace(state, roster=state.roster + (name,))


def remove_participant(state: GroupState, name: str) -> GroupState:
    if name not in state.roster:
        raise UnknownParticipantError("Person is not in the group", {"name": name})

    if len(state.roster) <= MIN_ROSTER_SIZE:
        raise RosterSizeError(f"A group needs at least {MIN_ROSTER_SIZE} people", {"name": name})

    # Expenses have to go before the people they mention
    referenced = [e.id for e in state.expenses if e.payer == name or name in e.beneficiaries]
    if referenced:
        raise ParticipantInUseError(
            "Person still has expenses in the group",
            {"name": name, "expenses": ",".join(map(str, referenced))},
        )

    return replace(state, roster=tuple(p for p in state.roster if p != name))


def _next_expense_id(state):
    expense_id = int(time.time() * 1000)
    taken = [e.id for e in state.expenses if isinstance(e.id, int)]
    if taken and expense_id <= max(taken):
        expense_id = max(taken) + 1
    return expense_id


def add_expense(state, description, amount, payer, beneficiaries, expense_id=None):
    if not isinstance(description, str) or not description.strip():
        raise ValidationError("Description cannot be blank", {"description": description})

    if isinstance(beneficiaries, str) or not all(isinstance(p, str) for p in [payer, *beneficiaries]):
        raise ValidationError("People must be given by name", {"paidBy": payer})

    if expense_id is None:
        expense_id = _next_expense_id(state)
    elif any(e.id == expense_id for e in state.expenses):
        raise ValidationError("Expense id is already used", {"id": expense_id})

    expense = Expense(
        payer=payer,
        amount=parse_amount(amount),
        beneficiaries=tuple(beneficiaries),
        description=description.strip(),
        id=expense_id,
    )
    validate_expense(expense, state.roster)

    return replace(state, expenses=state.expenses + (expense,))


def delete_expense(state: GroupState, expense_id) -> GroupState:
    remaining = tuple(e for e in state.expenses if e.id != expense_id)
    if len(remaining) == len(state.expenses):
        raise UnknownExpenseError("No such expense", {"id": expense_id})

    return replace(state, expenses=remaining)
