#!/usr/bin/env python3
"""
Instance Info - command line entry point

Waits for a build instance to reach RUNNING and prints the address later
build steps should connect to.
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Optional

from core.exceptions import ConfigurationError
from core.interfaces.driver_interface import IDriver
from core.models.config import BuildConfig
from core.models.state import ExecutionState
from core.orchestration.step_runner import StepRunner
from core.services.config_service import ConfigService, parse_duration
from core.steps.instance_info_step import InstanceInfoStep
from core.utils.logger import configure_root_logging
from infrastructure.aws.ec2_driver import EC2Driver


async def load_config(args: argparse.Namespace) -> BuildConfig:
    """Load the build config from file and apply command line overrides."""
    config_service = ConfigService()

    overrides = {}
    if args.zone:
        overrides["zone"] = args.zone
    if args.use_internal_ip:
        overrides["use_internal_ip"] = True
    if args.state_timeout is not None:
        overrides["state_timeout"] = args.state_timeout

    for key, value in overrides.items():
        config_service.set_environment_override(key, value)

    if args.config:
        return await config_service.load_build_config(args.config)

    return config_service.load_from_dict({})


async def resolve_instance_ip(
    instance_name: str, config: BuildConfig, driver: Optional[IDriver] = None
) -> Optional[str]:
    """Run the instance info step and return the published address."""
    logger = logging.getLogger(__name__)

    state = ExecutionState(
        config=config,
        driver=driver or EC2Driver.from_config(config.aws),
        instance_name=instance_name,
    )
    runner = StepRunner([InstanceInfoStep()])

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, runner.cancel)
    except (NotImplementedError, RuntimeError):
        pass  # no signal support on this platform

    try:
        result = await runner.run(state)
    finally:
        try:
            loop.remove_signal_handler(signal.SIGINT)
        except (NotImplementedError, RuntimeError):
            pass

    summary = result.get_summary()
    logger.debug(f"Run summary: {summary}")
    if not result.is_successful:
        for error in result.errors:
            logger.error(f"Error: {error}")
        return None

    return state.instance_ip


def parse_arguments(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Wait for a build instance to run and print its address',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Public address of an instance in the configured zone
  python main.py --instance-name packer-build-01 --config build.yml

  # Private address, overriding zone and timeout
  python main.py --instance-name packer-build-01 --zone ap-southeast-2a \\
      --use-internal-ip --state-timeout 10m
        """
    )

    parser.add_argument(
        '--instance-name',
        required=True,
        help='Name tag of the instance to inspect'
    )
    parser.add_argument(
        '--config',
        help='Path to the YAML build configuration'
    )
    parser.add_argument(
        '--zone',
        help='Availability zone of the instance (overrides config)'
    )
    parser.add_argument(
        '--use-internal-ip',
        action='store_true',
        help='Publish the private address instead of the public one'
    )
    parser.add_argument(
        '--state-timeout',
        type=parse_duration,
        help='How long to wait for RUNNING, e.g. 300, 90s, 5m'
    )
    parser.add_argument(
        '--log-file',
        help='Also write logs to logs/<LOG_FILE>'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )

    return parser.parse_args(argv)


async def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    configure_root_logging("DEBUG" if args.verbose else "INFO", args.log_file)

    try:
        config = await load_config(args)
    except ConfigurationError as e:
        print(f"Configuration error: {str(e)}", file=sys.stderr)
        return 2

    if not args.verbose:
        logging.getLogger().setLevel(config.log_level.value)

    ip = await resolve_instance_ip(args.instance_name, config)
    if ip is None:
        return 1

    print(ip)
    return 0


def cli() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        sys.exit(130)


if __name__ == '__main__':
    cli()
