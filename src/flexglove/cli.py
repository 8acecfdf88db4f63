"""Headless command-line runner for a glove session.

Examples::

    flexglove --simulate --seconds 10
    flexglove --device HMSoft --seconds 30 --patient "J. Doe"
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .analysis.stats import build_report_request
from .config import GloveConfig, load_config
from .core.errors import GloveError, InsufficientSamples, SessionError, user_message
from .core.models import Channel, Sample
from .core.session import ConnectionSession

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="FlexGlove headless capture")
    parser.add_argument(
        "--config",
        type=Path,
        help="Optional YAML file describing GloveConfig overrides",
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Use synthetic data instead of a BLE glove",
    )
    parser.add_argument(
        "--device",
        help="Substring of the glove's advertised name (overrides config)",
    )
    parser.add_argument(
        "--seconds",
        type=float,
        default=10.0,
        help="How long to capture before summarizing (default: 10)",
    )
    parser.add_argument(
        "--patient",
        default="",
        help="Patient label for the summary header",
    )
    parser.add_argument(
        "--list-devices",
        action="store_true",
        help="List nearby BLE devices and exit",
    )
    parser.add_argument("--log-level", help="Override log level from config")
    return parser


class _PrintSamples:
    def on_sample(self, sample: Sample) -> None:
        values = ",".join(str(v) for v in sample.channels)
        print(f"{sample.timestamp.isoformat()},{values}", flush=True)


def _print_summary(session: ConnectionSession, cfg: GloveConfig, patient: str, device: str) -> None:
    try:
        request = build_report_request(
            patient,
            session.history.snapshot(),
            device,
            tuple(Channel),
            min_samples=cfg.min_report_samples,
            sample_interval_s=cfg.simulation_interval_s,
        )
    except InsufficientSamples as exc:
        print(user_message(exc), file=sys.stderr)
        return
    summary = request.summary
    print(f"# patient={request.patient_label} device={request.device_label}")
    print(f"# samples={summary.count} (~{summary.duration_s:.1f} s)")
    for channel in summary.channels:
        print(
            f"# {channel.label:>6}: mean={summary.mean[channel]:>3} "
            f"max={summary.maximum[channel]:>3} min={summary.minimum[channel]:>3}"
        )
    print(
        f"# frames={session.frames_received} rejected={session.frames_rejected} "
        f"overflows={session.overflow_count}"
    )


async def _run(cfg: GloveConfig, args: argparse.Namespace) -> int:
    if args.list_devices:
        from .remote.ble_transport import list_devices

        for device in await list_devices(cfg.scan_timeout_s):
            print(f"{device.address}\t{device.name or ''}")
        return 0

    transport = None
    device_label = "simulation"
    if not args.simulate:
        from .remote.ble_transport import BleakTransport

        transport = BleakTransport(cfg)

    session = ConnectionSession(transport, config=cfg)
    session.add_listener(_PrintSamples())
    try:
        if args.simulate:
            await session.start_simulation()
        elif not await session.connect():
            return 1
        else:
            device_label = transport.device_label or "glove"
        await asyncio.sleep(max(0.0, args.seconds))
    except SessionError as exc:
        print(user_message(exc), file=sys.stderr)
        return 2
    finally:
        await session.disconnect()

    _print_summary(session, cfg, args.patient, device_label)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_arg_parser().parse_args(argv)
    cfg = load_config(args.config)
    if args.device:
        cfg.device_name = args.device
    setup_logging(args.log_level or cfg.log_level)
    try:
        return asyncio.run(_run(cfg, args))
    except KeyboardInterrupt:
        return 130
    except GloveError as exc:
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
