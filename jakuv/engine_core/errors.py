"""
Engine errors and error codes.

Handlers raise IllegalActionError; the Reducer turns it into a failed
ActionResult so the caller's state is never touched by a rejected intent.
"""


class JakuvError(Exception):
    """Base exception for engine errors."""


class IllegalActionError(JakuvError):
    """An intent that the rules do not allow in the current state."""

    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


# Error codes
NOT_YOUR_TURN = "NOT_YOUR_TURN"
WRONG_PHASE = "WRONG_PHASE"
CARD_NOT_FOUND = "CARD_NOT_FOUND"
INVALID_ROW = "INVALID_ROW"
INSUFFICIENT_VALUE = "INSUFFICIENT_VALUE"
TARGET_PROTECTED = "TARGET_PROTECTED"
TARGET_IMMUNE = "TARGET_IMMUNE"
SWAP_ALREADY_USED = "SWAP_ALREADY_USED"
INVALID_CHOICE = "INVALID_CHOICE"
NO_VALID_TARGET = "NO_VALID_TARGET"
NOT_ENOUGH_CARDS = "NOT_ENOUGH_CARDS"
ACTION_PENDING = "ACTION_PENDING"
NO_PENDING_ACTION = "NO_PENDING_ACTION"
GAME_OVER = "GAME_OVER"
UNKNOWN_INTENT = "UNKNOWN_INTENT"
HANDLER_ERROR = "HANDLER_ERROR"
