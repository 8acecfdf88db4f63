"""Connection state machine for one glove session.

:class:`ConnectionSession` owns everything tied to a connection: the transport
link, the frame reassembler, the sample history and the active data source
(real device or simulation). Every state change goes through
:meth:`ConnectionSession._transition`, which checks :data:`TRANSITIONS`.

The transport, the reassembler, the history and the state are mutated from one
asyncio loop; ``_lock`` additionally guards them when a transport delivers
notifications on another thread.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    List,
    Optional,
    Protocol,
    Sequence,
    Type,
)

from ..config.runtime import GloveConfig
from ..sensors.glove import parse_frame
from .errors import (
    CharacteristicNotFound,
    InvalidTransition,
    PermissionDenied,
    ServiceNotFound,
    SessionError,
    TransportUnavailable,
)
from .history import HistoryBuffer
from .models import DataSource, Sample, SessionState
from .reassembler import FrameReassembler, FramingMode
from .simulation import SimulationSource

logger = logging.getLogger(__name__)

S = SessionState

TRANSITIONS: Dict[SessionState, FrozenSet[SessionState]] = {
    S.DISCONNECTED: frozenset({S.SCANNING, S.STREAMING_ACTIVE}),
    S.SCANNING: frozenset({S.CONNECTING, S.DISCONNECTED}),
    S.CONNECTING: frozenset({S.DISCOVERING_SERVICE, S.DISCONNECTED}),
    S.DISCOVERING_SERVICE: frozenset(
        {S.DISCOVERING_SERVICE, S.DISCOVERING_CHARACTERISTIC, S.DISCONNECTED}
    ),
    S.DISCOVERING_CHARACTERISTIC: frozenset(
        {S.DISCOVERING_CHARACTERISTIC, S.SUBSCRIBING, S.DISCONNECTED}
    ),
    S.SUBSCRIBING: frozenset({S.STREAMING_ACTIVE, S.DISCONNECTED}),
    S.STREAMING_ACTIVE: frozenset({S.STREAMING_PAUSED, S.DISCONNECTED}),
    S.STREAMING_PAUSED: frozenset({S.STREAMING_ACTIVE, S.DISCONNECTED}),
}

# Primary UUID plus one alternate: at most one retry per discovery step.
MAX_DISCOVERY_CANDIDATES = 2

ChunkCallback = Callable[[Any], Any]


class Transport(Protocol):
    """Wireless link used by :class:`ConnectionSession`.

    ``scan`` raises :class:`UserCancelled` when no device is chosen; the
    discovery calls return ``None`` when the UUID is not present. Any other
    exception ends the session (see :func:`as_session_error`).
    """

    async def scan(self) -> Any:  # pragma: no cover - protocol
        ...

    async def connect(self, device: Any, on_disconnect: Callable[[], None]) -> Any:  # pragma: no cover - protocol
        ...

    async def discover_service(self, link: Any, uuid: str) -> Any | None:  # pragma: no cover - protocol
        ...

    async def discover_characteristic(self, service: Any, uuid: str) -> Any | None:  # pragma: no cover - protocol
        ...

    async def subscribe(self, link: Any, characteristic: Any, on_chunk: ChunkCallback) -> None:  # pragma: no cover - protocol
        ...

    async def disconnect(self, link: Any) -> None:  # pragma: no cover - protocol
        ...


class SessionListener(Protocol):
    """Observer hooks; implement any subset."""

    def on_state_changed(self, old: SessionState, new: SessionState) -> None:  # pragma: no cover - protocol
        ...

    def on_sample(self, sample: Sample) -> None:  # pragma: no cover - protocol
        ...

    def on_error(self, error: SessionError) -> None:  # pragma: no cover - protocol
        ...


def as_session_error(exc: BaseException) -> SessionError:
    """Map a transport exception onto the session error it represents."""
    if isinstance(exc, SessionError):
        return exc
    if isinstance(exc, PermissionError):
        return PermissionDenied(str(exc))
    return TransportUnavailable(f"{type(exc).__name__}: {exc}")


class ConnectionSession:
    """Drives connect → discover → subscribe → stream → teardown for one glove."""

    def __init__(
        self,
        transport: Optional[Transport] = None,
        *,
        config: Optional[GloveConfig] = None,
        history: Optional[HistoryBuffer] = None,
        reassembler: Optional[FrameReassembler] = None,
        simulation: Optional[SimulationSource] = None,
        decoder: Callable[[str], Optional[Sample]] = parse_frame,
    ) -> None:
        self._config = config or GloveConfig()
        self._transport = transport
        if history is None:
            history = HistoryBuffer(self._config.history_capacity)
        if reassembler is None:
            reassembler = FrameReassembler(
                self._config.reassembly_limit, FramingMode(self._config.framing)
            )
        self._history = history
        self._reassembler = reassembler
        self._simulation = simulation or SimulationSource()
        self._decoder = decoder

        self._state = SessionState.DISCONNECTED
        self._source: Optional[DataSource] = None
        self._lock = threading.RLock()
        self._listeners: List[SessionListener] = []

        self._link: Any = None
        self._connect_task: Optional[asyncio.Task] = None
        self._cancel_requested = False
        self._simulation_task: Optional[asyncio.Task] = None

        self.last_error: Optional[SessionError] = None
        self.frames_received = 0
        self.frames_rejected = 0
        self.chunks_dropped_paused = 0

    # ------------------------------------------------------------ properties
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def source(self) -> Optional[DataSource]:
        return self._source

    @property
    def history(self) -> HistoryBuffer:
        return self._history

    @property
    def reassembler(self) -> FrameReassembler:
        return self._reassembler

    @property
    def overflow_count(self) -> int:
        return self._reassembler.overflow_count

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------ device path
    async def connect(self) -> bool:
        """
        Connect to the glove and start streaming.

        Returns ``True`` once streaming, ``False`` if :meth:`disconnect`
        cancelled the attempt. Other failures leave the session
        ``DISCONNECTED`` and raise the :class:`SessionError` that ended it.
        """
        if self._transport is None:
            raise InvalidTransition("no transport configured for device sessions")
        if self._state is not SessionState.DISCONNECTED:
            raise InvalidTransition(
                f"cannot connect while {self._state.value}; disconnect first"
            )
        self.last_error = None
        self._cancel_requested = False
        self._reassembler.reset()

        task = asyncio.ensure_future(self._connect_sequence())
        self._connect_task = task
        try:
            await task
            return True
        except asyncio.CancelledError:
            if self._cancel_requested and task.cancelled():
                logger.info("Connect cancelled by user")
                return False
            await self._teardown()
            raise
        except Exception as exc:
            error = as_session_error(exc)
            self.last_error = error
            logger.warning("Connect failed in %s: %s", self._state.value, error)
            await self._teardown()
            self._notify("on_error", error)
            if error is exc:
                raise
            raise error from exc
        finally:
            self._connect_task = None

    async def _connect_sequence(self) -> None:
        transport = self._transport
        assert transport is not None

        self._transition(SessionState.SCANNING)
        device = await transport.scan()

        self._transition(SessionState.CONNECTING)
        self._link = await transport.connect(device, self.transport_lost)

        self._transition(SessionState.DISCOVERING_SERVICE)
        service = await self._discover(
            SessionState.DISCOVERING_SERVICE,
            lambda uuid: transport.discover_service(self._link, uuid),
            self._config.service_uuids,
            ServiceNotFound,
        )

        self._transition(SessionState.DISCOVERING_CHARACTERISTIC)
        characteristic = await self._discover(
            SessionState.DISCOVERING_CHARACTERISTIC,
            lambda uuid: transport.discover_characteristic(service, uuid),
            self._config.characteristic_uuids,
            CharacteristicNotFound,
        )

        self._transition(SessionState.SUBSCRIBING)
        await transport.subscribe(self._link, characteristic, self.feed)

        with self._lock:
            self._source = DataSource.DEVICE
            self._transition(SessionState.STREAMING_ACTIVE)

    async def _discover(
        self,
        state: SessionState,
        lookup: Callable[[str], Awaitable[Any]],
        candidates: Sequence[str],
        not_found: Type[SessionError],
    ) -> Any:
        if len(candidates) > MAX_DISCOVERY_CANDIDATES:
            logger.warning(
                "%s: ignoring %d extra candidate UUID(s): %s",
                state.value,
                len(candidates) - MAX_DISCOVERY_CANDIDATES,
                ", ".join(candidates[MAX_DISCOVERY_CANDIDATES:]),
            )
            candidates = candidates[:MAX_DISCOVERY_CANDIDATES]
        for attempt, uuid in enumerate(candidates):
            if attempt:
                # Retry with the next candidate stays in the same state.
                self._transition(state)
            handle = await lookup(uuid)
            if handle is not None:
                logger.info("%s: found %s", state.value, uuid)
                return handle
            logger.info("%s: %s not present", state.value, uuid)
        raise not_found(f"tried {', '.join(candidates)}")

    def feed(self, chunk: bytes | bytearray | str) -> int:
        """
        Notification callback body: reassemble, decode and store samples.

        Returns the number of samples appended. Chunks arriving while paused
        (or outside a device stream) are dropped without touching the history.
        """
        with self._lock:
            if self._source is not DataSource.DEVICE or not self._state.is_streaming:
                logger.debug("Dropping chunk received while %s", self._state.value)
                return 0
            if self._state is SessionState.STREAMING_PAUSED:
                self.chunks_dropped_paused += 1
                return 0

            if isinstance(chunk, (bytes, bytearray)):
                text = bytes(chunk).decode("ascii", errors="replace")
            else:
                text = chunk

            appended = self._ingest(self._reassembler.push(text))

        for sample in appended:
            self._notify("on_sample", sample)
        return len(appended)

    def _ingest(self, frames: Sequence[str]) -> List[Sample]:
        appended: List[Sample] = []
        for frame in frames:
            self.frames_received += 1
            sample = self._decoder(frame)
            if sample is None:
                self.frames_rejected += 1
                continue
            self._history.append(sample)
            appended.append(sample)
        return appended

    def _flush_pending(self) -> List[Sample]:
        """Store a packet the reassembler is still holding when the stream ends."""
        with self._lock:
            if (
                self._source is not DataSource.DEVICE
                or self._state is not SessionState.STREAMING_ACTIVE
            ):
                return []
            return self._ingest(self._reassembler.flush())

    def transport_lost(self) -> None:
        """Called by the transport when the link drops on its own."""
        with self._lock:
            if self._link is None or not self._state.is_streaming:
                logger.debug("Ignoring link loss while %s", self._state.value)
                return
            flushed = self._flush_pending()
            self._link = None
            error = TransportUnavailable("connection to the glove was lost")
            self.last_error = error
            logger.warning("Transport dropped while %s", self._state.value)
            self._release()
        for sample in flushed:
            self._notify("on_sample", sample)
        self._notify("on_error", error)

    # -------------------------------------------------------- simulation path
    async def start_simulation(self) -> None:
        """Feed the session from :class:`SimulationSource` on a fixed cadence."""
        with self._lock:
            if self._state is not SessionState.DISCONNECTED:
                raise InvalidTransition(
                    f"cannot simulate while {self._state.value}; disconnect first"
                )
            self.last_error = None
            self._source = DataSource.SIMULATION
            self._transition(SessionState.STREAMING_ACTIVE)
        self._simulation_task = asyncio.get_running_loop().create_task(
            self._run_simulation(), name="flexglove-simulation"
        )

    async def _run_simulation(self) -> None:
        interval = self._config.simulation_interval_s
        while True:
            await asyncio.sleep(interval)
            self.step_simulation()

    def step_simulation(self) -> Optional[Sample]:
        """Run one simulation tick; ``None`` when paused or not simulating."""
        with self._lock:
            if (
                self._source is not DataSource.SIMULATION
                or self._state is not SessionState.STREAMING_ACTIVE
            ):
                return None
            sample = self._simulation.tick()
            self._history.append(sample)
        self._notify("on_sample", sample)
        return sample

    # ------------------------------------------------------- session control
    def pause(self) -> None:
        """Stop capturing while keeping the transport connected."""
        with self._lock:
            self._transition(SessionState.STREAMING_PAUSED)

    def resume(self) -> None:
        with self._lock:
            self._transition(SessionState.STREAMING_ACTIVE)

    def toggle_pause(self) -> SessionState:
        with self._lock:
            if self._state is SessionState.STREAMING_ACTIVE:
                self.pause()
            else:
                self.resume()
            return self._state

    async def disconnect(self) -> None:
        """
        End the session from any state.

        A pending connect is cancelled and whatever it had acquired is
        released. A packet still held by the reassembler is stored first.
        The history is kept until :meth:`reset`.
        """
        task = self._connect_task
        if task is not None and not task.done():
            self._cancel_requested = True
            task.cancel()
            await asyncio.wait({task})
        for sample in self._flush_pending():
            self._notify("on_sample", sample)
        await self._teardown()

    def reset(self) -> None:
        """Clear captured history and transient buffers; the state is unchanged."""
        with self._lock:
            self._history.clear()
            self._reassembler.reset()
            self._simulation.reset()
            self.frames_received = 0
            self.frames_rejected = 0
            self.chunks_dropped_paused = 0

    # -------------------------------------------------------------- internals
    async def _teardown(self) -> None:
        with self._lock:
            link, self._link = self._link, None
        if link is not None and self._transport is not None:
            try:
                await self._transport.disconnect(link)
            except Exception:
                logger.exception("Error while releasing transport link")
        sim_task, self._simulation_task = self._simulation_task, None
        if sim_task is not None and not sim_task.done():
            sim_task.cancel()
            await asyncio.wait({sim_task})
        with self._lock:
            self._release()

    def _release(self) -> None:
        """Drop per-connection state and settle in ``DISCONNECTED``."""
        sim_task = self._simulation_task
        if sim_task is not None and not sim_task.done():
            sim_task.cancel()
        self._simulation_task = None
        self._reassembler.reset()
        self._source = None
        if self._state is not SessionState.DISCONNECTED:
            self._transition(SessionState.DISCONNECTED)

    def _transition(self, new: SessionState) -> None:
        with self._lock:
            old = self._state
            if new not in TRANSITIONS[old]:
                raise InvalidTransition(f"{old.value} -> {new.value}")
            self._state = new
        logger.info("Session state %s -> %s", old.value, new.value)
        self._notify("on_state_changed", old, new)

    def _notify(self, hook: str, *args: Any) -> None:
        for listener in list(self._listeners):
            callback = getattr(listener, hook, None)
            if callback is None:
                continue
            try:
                callback(*args)
            except Exception:
                logger.exception("Listener %r failed in %s", listener, hook)


__all__ = [
    "MAX_DISCOVERY_CANDIDATES",
    "ConnectionSession",
    "SessionListener",
    "Transport",
    "TRANSITIONS",
    "as_session_error",
]
