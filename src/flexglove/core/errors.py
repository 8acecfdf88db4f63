"""Exception hierarchy for the glove ingestion pipeline.

Session errors end a connection attempt and carry a message suitable for the
user. ``MalformedFrame`` and ``BufferOverflow`` never leave the pipeline: they
are counted and logged, and streaming carries on.
"""

from __future__ import annotations


class GloveError(Exception):
    """Base class for all flexglove errors."""


class SessionError(GloveError):
    """An error that terminates the current session."""

    user_message = "The glove connection failed."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.user_message)
        self.detail = detail


class UserCancelled(SessionError):
    user_message = "No device was selected."


class TransportUnavailable(SessionError):
    user_message = (
        "Could not connect to the glove. Check that Bluetooth is on and the "
        "device is powered and in range."
    )


class ServiceNotFound(SessionError):
    user_message = "The device does not expose a supported data service."


class CharacteristicNotFound(SessionError):
    user_message = "The device does not expose a supported notify characteristic."


class PermissionDenied(SessionError):
    user_message = "Bluetooth access was blocked by the operating system."


class MalformedFrame(GloveError):
    """A frame that could not be decoded into a sample."""

    def __init__(self, frame: str, reason: str) -> None:
        super().__init__(f"{reason}: {frame!r}")
        self.frame = frame
        self.reason = reason


class BufferOverflow(GloveError):
    """Reassembly buffer exceeded its limit without a frame boundary."""

    def __init__(self, discarded: int, limit: int) -> None:
        super().__init__(f"discarded {discarded} chars (limit {limit})")
        self.discarded = discarded
        self.limit = limit


class InvalidTransition(GloveError):
    """A state change that the session state machine does not allow."""


class InsufficientSamples(GloveError):
    def __init__(self, available: int, required: int) -> None:
        super().__init__(f"need at least {required} samples, have {available}")
        self.available = available
        self.required = required


class ReportError(GloveError):
    """The report collaborator failed (network, auth, quota...)."""


def user_message(error: BaseException) -> str:
    """Return the text to show the user for ``error``."""
    if isinstance(error, SessionError):
        return error.user_message
    if isinstance(error, InsufficientSamples):
        return f"At least {error.required} samples are needed to build a report."
    if isinstance(error, ReportError):
        return "The analysis service could not be reached."
    return str(error) or type(error).__name__


__all__ = [
    "GloveError",
    "SessionError",
    "UserCancelled",
    "TransportUnavailable",
    "ServiceNotFound",
    "CharacteristicNotFound",
    "PermissionDenied",
    "MalformedFrame",
    "BufferOverflow",
    "InvalidTransition",
    "InsufficientSamples",
    "ReportError",
    "user_message",
]
