# podmeter/cli.py
from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .config import Settings
from .errors import PodmeterError
from .estimator.pipeline import estimate_pod_utilization
from .api.schema import MetricsResponse, MetricsData, report_to_model
from .snapshot.collector import capture_pod_snapshot
from .snapshot.io import load_snapshot_from_file, save_snapshot_to_file
from .snapshot.source import SnapshotSource
from .sources.kube import KubeSource

log = logging.getLogger("podmeter")


def _parse_now(value: str) -> datetime:
    try:
        ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an ISO timestamp: {value!r}")
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="podmeter", description="Pod resource utilization estimator")
    sub = parser.add_subparsers(dest="command", required=True)

    report = sub.add_parser("report", help="Print the utilization report of one pod as JSON")
    report.add_argument("cluster")
    report.add_argument("namespace")
    report.add_argument("pod")
    report.add_argument("--snapshot", type=Path, help="Replay a captured snapshot instead of the live cluster")
    report.add_argument("--now", type=_parse_now, help="Reference time of the trend line (ISO 8601)")

    capture = sub.add_parser("capture", help="Record everything the estimator reads for one pod")
    capture.add_argument("cluster")
    capture.add_argument("namespace")
    capture.add_argument("pod")
    capture.add_argument("--out", type=Path, required=True, help="Snapshot JSON file to write")

    return parser


def cmd_report(args: argparse.Namespace, settings: Settings) -> int:
    if args.snapshot:
        source = SnapshotSource([load_snapshot_from_file(args.snapshot)])
    else:
        source = KubeSource(settings)
    report = estimate_pod_utilization(
        source, args.cluster, args.namespace, args.pod, settings=settings, now=args.now
    )
    body = MetricsResponse(data=MetricsData(metrics=report_to_model(report)))
    print(json.dumps(body.model_dump(by_alias=True), indent=2))
    return 0


def cmd_capture(args: argparse.Namespace, settings: Settings) -> int:
    snap = capture_pod_snapshot(KubeSource(settings), args.cluster, args.namespace, args.pod)
    args.out.parent.mkdir(parents=True, exist_ok=True)
    save_snapshot_to_file(snap, args.out)
    log.info(f"Snapshot saved to: {args.out}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    logging.basicConfig(level=settings.log_level, stream=sys.stderr)

    try:
        if args.command == "report":
            return cmd_report(args, settings)
        return cmd_capture(args, settings)
    except PodmeterError as e:
        log.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
