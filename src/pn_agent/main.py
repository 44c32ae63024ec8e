"""Entry point for the private-network watch and update agent."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from threading import Event
from typing import List, Optional

from pn_sync.metadata import MetadataClient
from pn_sync.reconciler import NetworkReconciler
from pn_sync.state import Handoff, SharedState

from .config import DEFAULT_CONFIG_PATH, AgentConfig, ConfigError, load_config
from .service import ServiceError, ServiceManager
from .updater import NicUpdater
from .watchers import MetadataWatcher

LOG = logging.getLogger(__name__)

SERVICE_COMMANDS = ("install", "remove", "start", "stop", "status")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Scaleway PN Watch and Update")
    parser.add_argument(
        "command",
        nargs="?",
        default="run",
        choices=("run",) + SERVICE_COMMANDS,
        help="Run the agent in the foreground or manage the system service",
    )
    parser.add_argument(
        "-p",
        "--poll-interval",
        type=float,
        default=10.0,
        help="Seconds between metadata polls",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to the agent configuration file",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def exec_start_for(args: argparse.Namespace) -> List[str]:
    return [
        sys.executable,
        "-m",
        "pn_agent",
        "run",
        "--config",
        str(args.config.resolve()),
        "--poll-interval",
        f"{args.poll_interval:g}",
    ]


def manage_service(args: argparse.Namespace, manager: Optional[ServiceManager] = None) -> int:
    manager = manager or ServiceManager()
    try:
        if args.command == "install":
            message = manager.install(exec_start_for(args))
        else:
            message = getattr(manager, args.command)()
    except ServiceError as exc:
        LOG.error("%s", exc)
        return 1
    print(message)
    return 0


def serve(
    config: AgentConfig,
    poll_interval: float,
    stop_event: Event,
    *,
    client: Optional[MetadataClient] = None,
    reconciler: Optional[NetworkReconciler] = None,
) -> int:
    """Run watcher and updater until ``stop_event`` is set.

    Returns ``1`` when the updater stopped the agent after a failed
    reconciliation, ``0`` otherwise.
    """

    client = client or MetadataClient(
        config.metadata_url, timeout=config.metadata_timeout
    )
    reconciler = reconciler or NetworkReconciler()
    state = SharedState()
    handoff = Handoff()

    updater = NicUpdater(config, reconciler, state, handoff, stop_event)
    watcher = MetadataWatcher(client, state, handoff, poll_interval, stop_event)
    updater.start()
    watcher.start()

    try:
        while not stop_event.is_set():
            stop_event.wait(1.0)
    except KeyboardInterrupt:  # pragma: no cover - fallback if signal not set
        stop_event.set()

    watcher.join(timeout=5)
    updater.join(timeout=5)

    if updater.error is not None:
        LOG.error("agent stopped after error: %s", updater.error)
        return 1
    LOG.info("pn agent stopped")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if args.command in SERVICE_COMMANDS:
        return manage_service(args)

    LOG.info("Reading config file %s", args.config)
    try:
        config = load_config(args.config)
    except (OSError, ConfigError) as exc:
        LOG.error("Error: %s", exc)
        return 2

    stop_event = Event()

    def _shutdown(signum, frame):  # pragma: no cover - signal handler
        LOG.info("Signal (%s) received, stopping", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    return serve(config, args.poll_interval, stop_event)


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
