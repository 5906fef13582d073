"""
Command line entry point.

Examples:
  # Three default blocks, automatic retry, simulated robot
  block-pick-place --config config/pick_place.yaml

  # Ask before every retry; 30% simulated failures
  block-pick-place --interactive --failure-rate 0.3 --seed 7

  # Custom work list, stop after the first full cycle via Ctrl-C
  block-pick-place --object A:0.55:-0.4 --object B:0.65:-0.4:45 --report outputs/run.json
"""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Callable, Optional, Sequence

from .config import PickPlaceConfig, load_config, parse_object_arg
from .errors import ConfigurationError
from .orchestrator import TaskOrchestrator
from .retry_policy import make_retry_policy
from .shutdown import ShutdownSignal
from .simulation import SimulatedActuator, SimulatedGraspGenerator, SimulatedMotionService, SimulatedScene
from .utils.logging_utils import configure_logging, get_structured_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="block-pick-place",
        description="Repeated block pick-and-place with retry handling (simulated robot backends).",
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--auto-retry", dest="auto_retry", action="store_true", default=None,
                      help="Retry failures automatically after a delay")
    mode.add_argument("--interactive", dest="auto_retry", action="store_false",
                      help="Ask the operator before every retry")
    parser.add_argument("--retry-delay", type=int, default=None, help="Seconds to wait before auto-retry")
    parser.add_argument("--planning-group", default=None, help="Planning group name")
    parser.add_argument("--object", dest="objects", action="append", default=None, metavar="ID:X:Y[:YAW]",
                        help="Work item start location (repeatable; replaces the configured list)")
    parser.add_argument("--failure-rate", type=float, default=0.0, help="Simulated pick/place failure probability")
    parser.add_argument("--num-grasps", type=int, default=8, help="Simulated grasps per pick")
    parser.add_argument("--seed", type=int, default=None, help="Seed for simulated failures")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--log-file", type=Path, default=None, help="Append log output to this file")
    parser.add_argument("--quiet", action="store_true", help="Do not log to the console (use with --log-file)")
    parser.add_argument("--report", type=Path, default=None, help="Write the run report as JSON")
    return parser


def config_from_args(args: argparse.Namespace) -> PickPlaceConfig:
    config = load_config(args.config)
    if args.auto_retry is not None:
        config.auto_retry = args.auto_retry
    if args.retry_delay is not None:
        config.auto_retry_delay_seconds = args.retry_delay
    if args.planning_group:
        config.planning_group = args.planning_group
    if args.objects:
        config.objects = [parse_object_arg(text) for text in args.objects]
    config.validate()
    return config


def main(argv: Optional[Sequence[str]] = None, input_fn: Callable[[str], str] = input) -> int:
    """Run one orchestration; returns the process exit status."""
    args = build_parser().parse_args(argv)
    configure_logging(level=args.log_level, log_file=args.log_file, include_console=not args.quiet)
    logger = get_structured_logger("block_pick_place")

    try:
        config = config_from_args(args)
    except ConfigurationError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    scene = SimulatedScene()
    try:
        motion = SimulatedMotionService(scene=scene, failure_rate=args.failure_rate, seed=args.seed)
        grasps = SimulatedGraspGenerator(num_grasps=args.num_grasps)
    except ValueError as e:
        logger.error("Invalid simulation settings: %s", e)
        return 2

    shutdown = ShutdownSignal()
    orchestrator = TaskOrchestrator(
        config,
        actuator=SimulatedActuator(),
        scene_publisher=scene,
        grasp_generator=grasps,
        motion_service=motion,
        retry_policy=make_retry_policy(config, shutdown, input_fn=input_fn),
        shutdown=shutdown,
    )
    logger.info(
        "Starting pick and place of %d objects (%s mode)",
        len(orchestrator.work_items),
        "auto-retry" if config.auto_retry else "interactive",
    )
    previous_handlers = shutdown.install_signal_handlers()
    try:
        report = orchestrator.run()
    finally:
        shutdown.restore_signal_handlers(previous_handlers)

    if args.report:
        args.report.parent.mkdir(parents=True, exist_ok=True)
        payload = report.to_dict()
        payload["work_items"] = [item.to_dict() for item in orchestrator.work_items]
        args.report.write_text(json.dumps(payload, indent=2))
        logger.info("Report written to %s", args.report)
    return report.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
