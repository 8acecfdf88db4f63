"""Qt signal adapter that forwards session events to the GUI thread."""

from __future__ import annotations

from PySide6.QtCore import QObject, Signal

from ..core.errors import SessionError, user_message
from ..core.models import Sample, SessionState
from ..core.session import ConnectionSession


class SessionBridge(QObject):
    """QObject listener for a :class:`ConnectionSession`.

    Session callbacks may run on the BLE loop thread; Qt queues the signals to
    receivers living in other threads, so widgets only ever touch samples on
    the GUI thread.
    """

    sample_received = Signal(object)  # Sample
    state_changed = Signal(str, str)  # (old, new) SessionState values
    error = Signal(str)  # user-facing message

    def __init__(self, session: ConnectionSession, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._session = session
        session.add_listener(self)

    def detach(self) -> None:
        self._session.remove_listener(self)

    def on_state_changed(self, old: SessionState, new: SessionState) -> None:
        self.state_changed.emit(old.value, new.value)

    def on_sample(self, sample: Sample) -> None:
        self.sample_received.emit(sample)

    def on_error(self, error: SessionError) -> None:
        self.error.emit(user_message(error))
