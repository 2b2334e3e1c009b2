"""
Mini-Guard Main Application
===========================

Command-line entry point for the motion sentinel.

Startup order:
    1. Load configuration (YAML + env + CLI flags) and set up logging
    2. Load Telegram credentials (prompting on first run)
    3. Open the camera, seed the baseline, print the armed banner
    4. Run the sentinel loop until Ctrl+C or SIGTERM

Exit codes:
    0 - stopped by signal / Ctrl+C
    1 - fatal startup error (config, credentials, camera, first frame)

Usage:
    miniguard
    miniguard --device 1 --threshold-px 12000
    python -m miniguard --config config.yaml --no-beep
"""

import argparse
import logging
import sys
from typing import List, Optional

from miniguard import __version__
from miniguard.alerts import TelegramDispatcher
from miniguard.capture import CameraOpenError, CameraSource, Preprocessor
from miniguard.config import ConfigError, Settings, load_config, setup_logging
from miniguard.credentials import CredentialStore, CredentialStoreError
from miniguard.detection import MotionDetector
from miniguard.sentinel import SeedFrameError, Sentinel


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="miniguard",
        description="Minimal night-time motion alarm with Telegram alerts",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--device", default=None, help="Camera index or device path")
    parser.add_argument("--credentials", default=None, help="Path to telegram.properties")
    parser.add_argument(
        "--threshold-px", type=int, default=None,
        help="Changed pixels that must be exceeded to alert (resolution dependent)",
    )
    parser.add_argument(
        "--sensitivity", type=int, default=None,
        help="Per-pixel intensity difference cutoff (0-254)",
    )
    parser.add_argument("--interval-ms", type=int, default=None, help="Delay between frames")
    parser.add_argument("--no-beep", action="store_true", help="Disable the terminal bell")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    return parser


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Return a copy of settings with command-line flags applied."""
    data = settings.model_dump()

    if args.device is not None:
        data["camera"]["device"] = int(args.device) if args.device.isdigit() else args.device
    if args.credentials is not None:
        data["telegram"]["credentials_path"] = args.credentials
    if args.threshold_px is not None:
        data["motion"]["threshold_px"] = args.threshold_px
    if args.sensitivity is not None:
        data["motion"]["sensitivity_cutoff"] = args.sensitivity
    if args.interval_ms is not None:
        data["loop"]["frame_interval_ms"] = args.interval_ms
    if args.no_beep:
        data["alerts"]["beep"] = False
    if args.log_level is not None:
        data["logging"]["level"] = args.log_level

    try:
        return Settings.model_validate(data)
    except ValueError as e:
        raise ConfigError(f"Invalid command-line option: {e}") from e


def build_sentinel(settings: Settings, store: CredentialStore) -> Sentinel:
    """
    Wire components from settings.

    Raises:
        CredentialStoreError: If credentials cannot be loaded
    """
    credentials = store.load()

    source = CameraSource(
        device=settings.camera.device,
        width=settings.camera.width,
        height=settings.camera.height,
    )
    detector = MotionDetector(
        sensitivity_cutoff=settings.motion.sensitivity_cutoff,
        threshold_px=settings.motion.threshold_px,
    )
    dispatcher = TelegramDispatcher(
        base_url=settings.telegram.base_url,
        timeout=settings.telegram.timeout_seconds,
    )

    return Sentinel(
        source=source,
        detector=detector,
        dispatcher=dispatcher,
        credentials=credentials,
        preprocessor=Preprocessor(settings.preprocess.blur_kernel_size),
        frame_interval=settings.loop.frame_interval_ms / 1000.0,
        beep=settings.alerts.beep,
        log_every_n_cycles=settings.loop.log_every_n_cycles,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = apply_cli_overrides(load_config(args.config), args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    setup_logging(settings)

    try:
        sentinel = build_sentinel(
            settings, CredentialStore(settings.telegram.credentials_path)
        )
    except CredentialStoreError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.error("Credential setup interrupted")
        return 1

    sentinel.install_signal_handlers()

    try:
        sentinel.run()
    except (CameraOpenError, SeedFrameError) as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    finally:
        sentinel.dispatcher.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
