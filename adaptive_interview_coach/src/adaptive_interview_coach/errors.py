"""
Coach Errors

Error taxonomy for the adaptive session engine. Every mutating operation is
all-or-nothing, so catching one of these never leaves a session half-updated.
"""


class CoachError(Exception):
    """Base class for all session engine errors."""


class InvalidInput(CoachError):
    """Empty submission or an unrecognised difficulty level."""


class InvalidState(CoachError):
    """Operation called out of sequence (or superseded by a reset)."""


class SessionBusy(CoachError):
    """A request is already pending for this session; retry once it resolves."""


class OracleUnavailable(CoachError):
    """The language model could not be reached (transport, auth, timeout)."""


class UnclassifiableReply(CoachError):
    """An oracle reply carried no grading marker. Never fatal."""

    def __init__(self, reply: str):
        preview = reply[:80] + "..." if len(reply) > 80 else reply
        super().__init__(f"No grading marker found in reply: {preview!r}")
        self.reply = reply
