"""Analyze one text from the command line.

Loads chat_analysis.ini, builds the analysis service and prints the translation or emotion result
as JSON. Provider credentials are read from environment variables such as GOOGLE_CLOUD_API_KEY.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from config.loader import Config, ConfigLoader, ConfigLoaderError
from core.analysis import AnalysisService, ConnectivityState, InvalidInputError
from models.analysis_models import AnalysisOptions
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from models.analysis_models import AnalysisResult

CFG_FILE: Final[str] = "chat_analysis.ini"


def check_python_version() -> None:
    """Check if Python version is 3.13 or later.

    Raises:
        RuntimeError: If Python version is below 3.13.
    """
    if sys.version_info < (3, 13):
        msg = "Python 3.13 or later is required"
        raise RuntimeError(msg)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments() -> argparse.Namespace:
    parser = _ArgumentParser(
        description="Translate a text or analyze its emotions",
        epilog='Example: python analyze_text.py "Bonjour tout le monde" --from fr --to en',
    )
    parser.add_argument("text", help="Text to analyze")
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("--to", dest="target", metavar="LANG", help="Translate into LANG")
    mode.add_argument("--emotion", action="store_true", help="Analyze emotions instead of translating")
    parser.add_argument("--from", dest="source", metavar="LANG", help="Source language (text language for --emotion)")
    parser.add_argument("--subject", default="cli", help="Subject id used to serialize emotion analysis")
    parser.add_argument("--config", default=CFG_FILE, help=f"Configuration file (default: {CFG_FILE})")
    parser.add_argument("--force-refresh", action="store_true", help="Bypass the result cache")
    parser.add_argument("--timeout-ms", type=int, help="Per-provider timeout in milliseconds")
    parser.add_argument("--threshold", type=float, help="Confidence threshold override")
    parser.add_argument("--offline", action="store_true", help="Skip live providers")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", dest="log_file", help="Write a detailed log to this file")
    return parser.parse_args()


def load_config(args: argparse.Namespace) -> Config:
    """Load configuration file and apply CLI overrides.

    Raises:
        ConfigLoaderError: If configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    return ConfigLoader(
        config_filename=args.config,
        script_name=script_name,
        debug=args.debug,
        log_file=args.log_file,
    ).config


async def run(config: Config, args: argparse.Namespace) -> AnalysisResult:
    options = AnalysisOptions(
        force_refresh=args.force_refresh,
        timeout_ms=args.timeout_ms,
        confidence_threshold=args.threshold,
    )
    connectivity = ConnectivityState(online=not args.offline)
    async with AnalysisService(config, connectivity=connectivity) as service:
        if args.emotion:
            return await service.analyze_emotion(args.text, args.subject, options, language=args.source)
        return await service.analyze_translation(args.text, args.source, args.target, options)


def main() -> int:
    check_python_version()
    args: argparse.Namespace = parse_arguments()
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return 1

    logger_utils = LoggerUtils(config.GENERAL.LOG_FILE)
    logger_utils.set_level("DEBUG" if config.GENERAL.DEBUG else "INFO")

    try:
        result: AnalysisResult = asyncio.run(run(config, args))
    except InvalidInputError as err:
        print(f"\nError: {err}", file=sys.stderr)
        return 2

    print(result.to_json(indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nCancelled by user.", file=sys.stderr)
        sys.exit(130)
    except (OSError, RuntimeError) as err:
        print(f"\nFatal error: {err}", file=sys.stderr)
        sys.exit(1)
