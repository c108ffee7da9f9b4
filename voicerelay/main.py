"""
Command line entry point for the voice relay.

Usage:
    voicerelay [--env-file PATH] [--log-level LEVEL] [--init-mode MODE] [--no-tools] [--show-config]

Exit status is 1 when the API key is missing, the microphone is unavailable,
or the connection cannot be opened; 0 when the session ends normally.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from voicerelay.audio import check_input_device
from voicerelay.audio.capture import MicrophoneCapture
from voicerelay.audio.playback import SpeakerPlayback
from voicerelay.channel import RealtimeChannel
from voicerelay.config import (
    ApplicationConfig,
    LogLevel,
    load_application_config,
    load_env_file,
    print_configuration_summary,
    set_config,
)
from voicerelay.config.constants import INIT_MODES, LOGGER_NAME
from voicerelay.config.logging_config import configure_logging
from voicerelay.exceptions import AuthError, ChannelError, ConfigError, DeviceError
from voicerelay.handlers.error_handler import get_error_handler
from voicerelay.handlers.function_handler import FunctionHandler
from voicerelay.relay import RelayController

logger = logging.getLogger(LOGGER_NAME)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Relay microphone audio to the OpenAI Realtime API and play the responses"
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file (default: .env in the working directory)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=[level.value for level in LogLevel],
        help="Logging level (default: LOG_LEVEL env var or INFO)",
    )
    parser.add_argument(
        "--init-mode",
        default=None,
        choices=list(INIT_MODES),
        help="Initialization message sent when the connection opens",
    )
    parser.add_argument(
        "--no-tools",
        action="store_true",
        help="Do not offer function tools to the model",
    )
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the configuration summary and exit",
    )
    return parser.parse_args(argv)


def apply_overrides(config: ApplicationConfig, args: argparse.Namespace) -> ApplicationConfig:
    if args.log_level:
        config.logging.level = LogLevel(args.log_level)
    if args.init_mode:
        config.relay.init_mode = args.init_mode
    if args.no_tools:
        config.relay.enable_tools = False
    return config


def require_api_key(config: ApplicationConfig) -> str:
    if not config.openai.api_key:
        raise ConfigError("Please set your OPENAI_API_KEY in your environment variables.")
    return config.openai.api_key


def build_controller(config: ApplicationConfig) -> RelayController:
    """Wire up channel, capture, playback and tools from one configuration."""
    channel = RealtimeChannel.from_config(config.openai, config.retry)
    capture = MicrophoneCapture(config.audio, config.capture)
    playback = SpeakerPlayback(config.audio, config.playback)

    function_handler = None
    if config.relay.enable_tools:
        function_handler = FunctionHandler(channel.send, modalities=config.relay.modalities)
        function_handler.register_default_functions()

    return RelayController(
        channel=channel,
        capture=capture,
        playback=playback,
        relay_config=config.relay,
        function_handler=function_handler,
    )


async def run_relay(config: ApplicationConfig) -> int:
    """Run one relay session; returns the process exit status."""
    controller = build_controller(config)
    try:
        await controller.run()
    except AuthError as e:
        logger.error(f"Authentication failed: {e}")
        return 1
    except ChannelError as e:
        logger.error(f"Connection failed: {e}")
        return 1
    except DeviceError as e:
        logger.error(f"Microphone error: {e}")
        return 1

    logger.info(f"Session statistics: {controller.get_statistics()}")
    error_stats = get_error_handler().get_error_stats()
    if error_stats["total_errors"]:
        logger.warning(f"Errors during session: {error_stats}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit status."""
    args = parse_args(argv)
    load_env_file(args.env_file)

    try:
        config = apply_overrides(load_application_config(), args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    configure_logging(config=config.logging)
    set_config(config)

    if args.show_config:
        print_configuration_summary()
        return 0

    try:
        require_api_key(config)
    except ConfigError as e:
        logger.error(str(e))
        print(f"\nError: {e}", file=sys.stderr)
        return 1

    try:
        device_name = check_input_device(config.capture.device)
    except DeviceError as e:
        logger.error(f"Error: {e}. Please install PortAudio and connect a microphone.")
        return 1

    logger.info("=== Relay Configuration ===")
    logger.info(f"Endpoint: {config.openai.get_websocket_url()}")
    logger.info(f"Input device: {device_name}")
    logger.info(
        f"Audio: {config.audio.sample_rate}Hz, {config.audio.channels} channel(s), "
        f"{config.audio.bits_per_sample}-bit"
    )
    logger.info(f"Init mode: {config.relay.init_mode}, tools: {config.relay.enable_tools}")
    logger.info("===========================")

    try:
        return asyncio.run(run_relay(config))
    except KeyboardInterrupt:
        logger.info("Relay interrupted by user")
        return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
