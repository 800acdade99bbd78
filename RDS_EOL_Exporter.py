"""
RDS EOL Exporter
================

Inventories the RDS / Aurora databases of the current AWS account and region
and publishes, as Prometheus gauges, how close each engine version is to its
end of support.

Flow
----
1. At startup, load the reference table (``Engine, MinimumSupportedVersion,
   ValidDate``) once. A missing or malformed file is fatal.
2. Every ``REFRESH_INTERVAL_SECONDS`` (default 300):
   - list DB clusters and standalone DB instances (describe_db_clusters /
     describe_db_instances),
   - classify each one: ``ok`` when the version is at or above the minimum
     supported version, otherwise ``warning`` / ``alert`` / ``expired`` by the
     time left until ``ValidDate`` (180d / 90d / past, configurable);
     ``unclassified`` when the engine is not in the table or a version/date
     cannot be parsed,
   - replace the published snapshot in one step.
3. Serve ``/metrics`` on ``METRICS_PORT`` (default 8080).

A failed inventory fetch skips that cycle and keeps the previous snapshot.

Usage
-----
    rds-eol-exporter                       # serve metrics, refresh on a timer
    rds-eol-exporter --once                # one pass, CSV on stdout
    rds-eol-exporter --reference eol.csv --port 9100

All other settings come from the environment (see eol_exporter/config.py).
"""

from __future__ import annotations

import argparse
import csv
import logging
import signal
import sys
from dataclasses import replace
from functools import partial
from typing import List, Optional, Sequence, TextIO

from botocore.exceptions import BotoCoreError  # type: ignore

from core.errors import ConfigError, FetchError
from core.scheduler import FixedIntervalScheduler
from eol_checkers import config as checkers_config
from eol_checkers.classifier import EOLClassifier
from eol_checkers.inventory import fetch_inventory, rds_client
from eol_checkers.models import ClassificationResult
from eol_checkers.publisher import SnapshotPublisher
from eol_checkers.reference import load_reference_index
from eol_checkers.refresh import RefreshPass
from eol_exporter.config import SDK_CONFIG, Settings, __version__, load_settings

LOGGER = logging.getLogger("rds_eol_exporter")

CSV_HEADER = [
    "Identifier", "Kind", "Engine", "EngineVersion", "Stage",
    "MinimumSupportedVersion", "ValidDate", "Error",
]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="rds-eol-exporter",
        description="Export RDS engine end-of-life stages as Prometheus metrics.",
    )
    parser.add_argument("--once", action="store_true",
                        help="run a single refresh and print the results as CSV")
    parser.add_argument("--reference", metavar="PATH",
                        help="reference table (overrides EOL_REFERENCE_FILE)")
    parser.add_argument("--port", type=int, metavar="N",
                        help="metrics port (overrides METRICS_PORT)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        filename=settings.log_file,
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


def write_results_csv(results: List[ClassificationResult], out: TextIO) -> None:
    writer = csv.writer(out, delimiter=";", lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for res in results:
        ref = res.reference
        writer.writerow([
            res.record.identifier, res.record.kind, res.record.engine,
            res.record.engine_version, res.stage.value,
            ref.minimum_supported_version if ref else "",
            ref.support_end_date if ref else "",
            res.error or "",
        ])


def build_refresh(settings: Settings, publisher: SnapshotPublisher) -> RefreshPass:
    """Wire reference index, RDS client and classifier into one refresh callable.

    Raises FetchError if the reference table cannot be loaded.
    """
    index = load_reference_index(settings.reference_file, settings.reference_delimiter, LOGGER)
    classifier = EOLClassifier(
        alert_window=settings.alert_window,
        warning_window=settings.warning_window,
        strategy=settings.match_strategy,
        logger=LOGGER,
    )
    client = rds_client(settings.region, SDK_CONFIG)
    fetch = partial(fetch_inventory, client, settings.inventory_scope, LOGGER)
    return RefreshPass(fetch, index, classifier, publisher, logger=LOGGER)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings()
        if args.reference:
            settings = replace(settings, reference_file=args.reference)
        if args.port is not None:
            if not 0 < args.port < 65536:
                raise ConfigError("--port", args.port, "expected 1..65535")
            settings = replace(settings, metrics_port=args.port)
    except ConfigError as e:
        print(f"rds-eol-exporter: invalid configuration: {e}", file=sys.stderr)
        return 2

    configure_logging(settings)
    checkers_config.setup(logger=LOGGER)

    publisher = SnapshotPublisher()
    try:
        refresh = build_refresh(settings, publisher)
    except FetchError as e:
        LOGGER.error("[main] %s", e)
        return 2
    except BotoCoreError as e:
        LOGGER.error("[main] cannot create RDS client: %s", e)
        return 2

    if args.once:
        results = refresh()
        if results is None:
            return 1
        write_results_csv(results, sys.stdout)
        return 0

    publisher.serve(settings.metrics_port, settings.metrics_addr)
    LOGGER.info("[main] serving /metrics on %s:%d, refresh every %ds",
                settings.metrics_addr, settings.metrics_port, settings.refresh_interval_seconds)

    scheduler = FixedIntervalScheduler(refresh, settings.refresh_interval_seconds, logger=LOGGER)
    signal.signal(signal.SIGTERM, lambda *_: scheduler.stop())
    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        scheduler.stop()
    LOGGER.info("[main] stopped after %d refresh pass(es)", scheduler.runs)
    return 0


if __name__ == "__main__":
    sys.exit(main())
