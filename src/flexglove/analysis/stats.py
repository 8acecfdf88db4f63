"""Per-channel summaries over a window of glove samples."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Protocol, Sequence, Tuple

import numpy as np

from ..core.errors import InsufficientSamples
from ..core.models import Channel, Sample

DEFAULT_SAMPLE_INTERVAL_S = 0.5
DEFAULT_MIN_REPORT_SAMPLES = 5
UNREGISTERED_PATIENT = "unregistered"

# Fingers quoted in the range-of-motion report.
REPORT_CHANNELS: Tuple[Channel, ...] = (Channel.INDEX, Channel.MIDDLE)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(np.sign(value) * np.floor(abs(value) + 0.5))


@dataclass(frozen=True)
class SessionSummary:
    """Aggregated statistics for the channels of interest."""

    count: int
    channels: Tuple[Channel, ...]
    mean: Dict[Channel, int]
    maximum: Dict[Channel, int]
    minimum: Dict[Channel, int]
    duration_s: float

    def to_mapping(self) -> Dict[str, float]:
        """Flat mapping for report prompts and exports."""
        data: Dict[str, float] = {"count": self.count, "duration_s": self.duration_s}
        for channel in self.channels:
            data[f"mean_{channel.label}"] = self.mean[channel]
            data[f"max_{channel.label}"] = self.maximum[channel]
            data[f"min_{channel.label}"] = self.minimum[channel]
        return data


def summarize(
    samples: Sequence[Sample],
    channels: Optional[Iterable[Channel]] = None,
    *,
    sample_interval_s: float = DEFAULT_SAMPLE_INTERVAL_S,
) -> SessionSummary:
    """
    Summarize ``samples`` for ``channels`` (all channels when ``None``).

    Parameters
    ----------
    samples:
        Non-empty window of samples, typically ``HistoryBuffer.snapshot()``.
        Callers gate on a minimum count before asking for a summary.
    channels:
        Channels to include, in the order they should be reported.
    sample_interval_s:
        Nominal time between samples, used for ``duration_s``.

    Returns
    -------
    SessionSummary
        Count, per-channel mean (rounded half away from zero), max and min.
    """
    selected = tuple(Channel) if channels is None else tuple(channels)
    matrix = np.asarray([s.channels for s in samples], dtype=float).reshape(-1, len(Channel))
    columns = [int(ch) for ch in selected]
    means = matrix[:, columns].mean(axis=0)
    maxes = matrix[:, columns].max(axis=0)
    mins = matrix[:, columns].min(axis=0)
    count = int(matrix.shape[0])
    return SessionSummary(
        count=count,
        channels=selected,
        mean={ch: round_half_away(float(m)) for ch, m in zip(selected, means)},
        maximum={ch: int(m) for ch, m in zip(selected, maxes)},
        minimum={ch: int(m) for ch, m in zip(selected, mins)},
        duration_s=count * float(sample_interval_s),
    )


@dataclass(frozen=True)
class ReportRequest:
    """Input handed to the report-generation collaborator."""

    patient_label: str
    device_label: str
    summary: SessionSummary


def build_report_request(
    patient_label: str,
    samples: Sequence[Sample],
    device_label: str,
    channels: Iterable[Channel] = REPORT_CHANNELS,
    *,
    min_samples: int = DEFAULT_MIN_REPORT_SAMPLES,
    sample_interval_s: float = DEFAULT_SAMPLE_INTERVAL_S,
) -> ReportRequest:
    """Aggregate ``samples`` for a report, refusing windows that are too short."""
    if len(samples) < min_samples:
        raise InsufficientSamples(len(samples), min_samples)
    summary = summarize(samples, channels, sample_interval_s=sample_interval_s)
    return ReportRequest(
        patient_label=patient_label.strip() or UNREGISTERED_PATIENT,
        device_label=device_label,
        summary=summary,
    )


class ReportGenerator(Protocol):
    """Turns a :class:`ReportRequest` into free text; raises ``ReportError``."""

    def generate(self, request: ReportRequest) -> str:  # pragma: no cover - protocol
        ...


class ReportExporter(Protocol):
    """Consumes a summary and the generated report (PDF, file, ...)."""

    def export(self, summary: SessionSummary, report_text: str) -> None:  # pragma: no cover - protocol
        ...
