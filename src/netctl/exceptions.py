"""
NetCtl exception types.

Storage and lookup failures never surface as exceptions; only boundary
validation on the store raises.
"""


class NetCtlError(Exception):
    """Base class for net control errors."""


class ValidationError(NetCtlError, ValueError):
    """Raised when a required field is missing or malformed."""


class TokenCollisionError(ValidationError):
    """Raised when a rename would reuse another participant's callsign or tactical call."""

    def __init__(self, token: str, participant_id: str):
        super().__init__(f"{token} is already used by participant {participant_id}")
        self.token = token
        self.participant_id = participant_id
