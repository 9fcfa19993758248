"""Domain errors surfaced to callers with a distinguishable reason code."""

from __future__ import annotations


class LadderError(Exception):
    """Base class for precondition and lookup failures. No state is mutated when raised."""

    code = "LADDER_ERROR"
    status_code = 400
    default_message = "Request could not be completed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class AlreadyCheckedInError(LadderError):
    code = "ALREADY_CHECKED_IN"
    status_code = 409
    default_message = "Already checked in today"


class InsufficientPointsError(LadderError):
    code = "INSUFFICIENT_POINTS"
    status_code = 400

    def __init__(self, required: int, balance: int) -> None:
        self.required = required
        self.balance = balance
        super().__init__(f"Insufficient points: a draw costs {required}, balance is {balance}")


class ProfileNotFoundError(LadderError):
    code = "PROFILE_NOT_FOUND"
    status_code = 404
    default_message = "User profile not found"


class RankNotFoundError(LadderError):
    code = "RANK_NOT_FOUND"
    status_code = 404
    default_message = "Rank not found"


class BadgeNotFoundError(LadderError):
    code = "BADGE_NOT_FOUND"
    status_code = 404
    default_message = "Badge not found"


class ItemNotFoundError(LadderError):
    code = "ITEM_NOT_FOUND"
    status_code = 404
    default_message = "Item not found or already used"


class ItemExpiredError(LadderError):
    code = "ITEM_EXPIRED"
    status_code = 400
    default_message = "Item has expired"
