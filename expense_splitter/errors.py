# expense_splitter/errors.py
"""
Exception hierarchy for the expense splitter.

Everything raised on purpose inherits from SplitterError so the web layer
can turn it into a JSON error response in one place.
"""


class SplitterError(Exception):
    """Base exception for all expense splitter errors"""

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self):
        return {"error": self.message, "details": self.details}


class ValidationError(SplitterError):
    """Raised when user input is malformed"""
    pass


class InvalidAmountError(ValidationError):
    """Raised when an expense amount is not a positive number"""
    pass


class EmptySplitError(ValidationError):
    """Raised when an expense is split among nobody"""
    pass


class DuplicateParticipantError(ValidationError):
    """Raised when a name is already on the roster"""
    pass


class RosterSizeError(ValidationError):
    """Raised when a group would drop below two people"""
    pass


class ReferentialIntegrityError(SplitterError):
    """Raised when an expense points at someone who is not on the roster"""
    pass


class ParticipantInUseError(ReferentialIntegrityError):
    """Raised when removing a person that expenses still reference"""
    pass


class NotFoundError(SplitterError):
    """Raised when a group, person or expense does not exist"""
    pass


class GroupNotFoundError(NotFoundError):
    pass


class UnknownParticipantError(NotFoundError):
    pass


class UnknownExpenseError(NotFoundError):
    pass


class StoreError(SplitterError):
    """Raised when a stored group record cannot be read or written"""
    pass
