"""Command-line front end for the translation engine.

Translates text given as arguments (or read from stdin), or every comment of a Go source file
through the batch controller.

Example:
    gopp-translate --target ja "hello world"
    gopp-translate --go main.go
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from config.loader import Config, ConfigLoader, ConfigLoaderError
from core.batch import BatchController, extract_go_comments
from core.trans.manager import TransManager
from core.version import VERSION
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    from models.batch_models import BatchItem, BatchReport
    from models.translation_models import TranslationOk

CFG_FILE: Final[str] = "gopp_translate.ini"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Returns:
        argparse.Namespace: Parsed arguments.
    """
    parser = _ArgumentParser(
        description="Translate text or Go source comments",
        epilog="Example: gopp-translate --engine deepl --target ja 'hello world'",
    )
    parser.add_argument("text", nargs="*", help="Text to translate. Read from stdin when omitted.")
    parser.add_argument("--config", dest="config", metavar="FILE", help=f"INI file (default: {CFG_FILE} if present)")
    parser.add_argument("--engine", dest="engine", metavar="ENGINE", help="Provider id or 'auto'")
    parser.add_argument("--source", dest="source", metavar="LANG", help="Source language code")
    parser.add_argument("--target", dest="target", metavar="LANG", help="Target language code")
    parser.add_argument("--go", dest="go_file", metavar="FILE", help="Translate every comment of a Go source file")
    parser.add_argument("--stats", action="store_true", help="Print cache statistics when done")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """Load configuration file and apply CLI overrides.

    Without ``--config`` the default INI file is used when it exists, the built-in defaults otherwise.

    Raises:
        ConfigLoaderError: If configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    filename: str | None = args.config
    if filename is None and Path(CFG_FILE).exists():
        filename = CFG_FILE
    overrides: dict[str, object] = {
        "engine": args.engine,
        "source": args.source,
        "target": args.target,
        "debug": args.debug,
    }
    return ConfigLoader(config_filename=filename, script_name=script_name, **overrides).config


def setup_logging(config: Config) -> None:
    logger_utils = LoggerUtils(config.GENERAL.LOG_FILE)
    if config.GENERAL.DEBUG:
        logger_utils.set_level("DEBUG")
        logger_utils.set_console_level("DEBUG")
    else:
        logger_utils.set_level("INFO")


def _print_result(item: BatchItem, outcome: TranslationOk) -> None:
    print(f"{item.text}\n    -> {outcome.render()}")


async def translate_go_file(manager: TransManager, path: Path) -> BatchReport:
    """Translate every comment of a Go file as one batch."""
    items: list[BatchItem] = extract_go_comments(path.read_text(encoding="utf-8"), str(path))
    controller = BatchController(manager, on_result=_print_result)
    try:
        return await controller.run_batch(items)
    finally:
        await controller.close()


async def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        int: Process exit code.
    """
    args: argparse.Namespace = parse_arguments(argv)
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print("\nError: Failed to load configuration file.", file=sys.stderr)
        print(f"Details: {err}", file=sys.stderr)
        return 1
    setup_logging(config)

    manager = TransManager(config)
    await manager.initialize()
    exit_code: int = 0
    try:
        if args.go_file:
            report: BatchReport = await translate_go_file(manager, Path(args.go_file))
            print(f"\n{report.translated} translated, {report.failed} failed, {report.skipped} skipped")
            exit_code = 1 if report.failed else 0
        else:
            text: str = " ".join(args.text) if args.text else sys.stdin.read()
            outcome = await manager.translate(text)
            print(outcome.render())
            exit_code = 0 if outcome.is_ok else 1
        if args.stats:
            print(manager.cache_manager.get_cache_statistics())
    finally:
        await manager.shutdown_engines()
    return exit_code


def run() -> None:
    """Console script entry point."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    run()
