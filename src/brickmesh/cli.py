"""
Command line entry point.

    brickmesh --config connector.yaml sync      # one asset synchronization pass
    brickmesh --config connector.yaml listen    # poll access events until interrupted
    brickmesh --config connector.yaml run       # both jobs on their schedules
    brickmesh activate <access-id>              # apply a single grant
    brickmesh deactivate <access-id>            # revoke a single grant
"""

import argparse
import logging
import sys
import threading

from brickmesh.app import build_connector
from brickmesh.config import load_settings
from brickmesh.errors import ConnectorError

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="brickmesh",
        description="Synchronize Databricks assets and access grants with Data Mesh Manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        "-c",
        help="Path to YAML configuration (environment variables are used if omitted)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("sync", help="Run one asset synchronization pass")
    subparsers.add_parser("listen", help="Poll access events until interrupted")
    subparsers.add_parser("run", help="Run all enabled jobs until interrupted")
    activate = subparsers.add_parser("activate", help="Apply one access grant")
    activate.add_argument("access_id")
    deactivate = subparsers.add_parser("deactivate", help="Revoke one access grant")
    deactivate.add_argument("access_id")
    return parser


def _wait_forever(connector) -> None:
    connector.start()
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        print("\nStopping...")
    finally:
        connector.stop(timeout=30)


def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s: %(message)s")

    try:
        settings = load_settings(args.config)
        # Single-shot commands run a job regardless of its enabled flag
        if args.command == "sync":
            settings.assets.enabled = True
        elif args.command in ("listen", "activate", "deactivate"):
            settings.access_management.enabled = True
        connector = build_connector(settings)
    except (FileNotFoundError, ValueError, ConnectorError) as e:
        # The Databricks SDK raises ValueError when authentication can't be resolved
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        if args.command == "sync":
            result = connector.synchronizer.run()
            print(result.get_summary())
        elif args.command == "activate":
            print(connector.orchestrator.activate(args.access_id))
        elif args.command == "deactivate":
            print(connector.orchestrator.deactivate(args.access_id))
        elif args.command == "listen":
            connector.synchronizer = None
            connector.sync_scheduler = None
            _wait_forever(connector)
        else:
            _wait_forever(connector)
    except ConnectorError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    finally:
        connector.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
