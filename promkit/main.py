"""Command line entry point: render configured registries and aggregate worker snapshots."""
import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from promkit.cluster import AggregatorRegistry
from promkit.config import build_registry, load_config

logger = logging.getLogger(__name__)


def setup_logging(log_level: str):
    """Setup logging configuration."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    # stdout carries the exposition text
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr
    )


def _render(args) -> int:
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(args.log_level or config.global_.log_level)
    logger.info(f"Configuration loaded from: {args.config}")
    logger.info(f"Metrics configured: {len(config.metrics)}")

    try:
        registry = build_registry(config)
    except ValueError as e:
        logger.error(f"Failed to build registry: {e}")
        return 1

    sys.stdout.write(asyncio.run(registry.metrics()))
    return 0


def _aggregate(args) -> int:
    setup_logging(args.log_level or "INFO")

    workers = []
    for path in args.snapshots:
        try:
            with open(path, 'r') as f:
                snapshot = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read snapshot {path}: {e}")
            return 1

        if not isinstance(snapshot, list):
            logger.error(f"Snapshot {path} must contain a list of metrics, got {type(snapshot).__name__}")
            return 1
        workers.append(snapshot)

    logger.info(f"Aggregating {len(workers)} worker snapshots")
    registry = AggregatorRegistry.aggregate(workers)

    if args.json:
        output = json.dumps(asyncio.run(registry.get_metrics_as_json()), indent=2) + "\n"
    else:
        output = asyncio.run(registry.metrics())
    sys.stdout.write(output)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    parser = argparse.ArgumentParser(
        prog="promkit",
        description="Render and aggregate metrics in the Prometheus text format"
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--log-level", help="Override the log level")

    subparsers = parser.add_subparsers(dest="command", required=True)

    render = subparsers.add_parser("render", parents=[common], help="Render a registry defined in a YAML config")
    render.add_argument("--config", "-c", required=True, help="Path to configuration YAML file")
    render.set_defaults(handler=_render)

    aggregate = subparsers.add_parser("aggregate", parents=[common], help="Merge JSON snapshots from several workers")
    aggregate.add_argument("snapshots", nargs="+", help="JSON snapshot files, one per worker")
    aggregate.add_argument("--json", action="store_true", help="Print the merged JSON snapshot")
    aggregate.set_defaults(handler=_aggregate)

    args = parser.parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
