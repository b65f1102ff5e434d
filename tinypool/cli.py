"""Command line interface for tinypool package."""
from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .cli_progress import CompressionProgressDisplay, render_configuration_summary
from .errors import FatalError
from .models import CompressionConfig
from .orchestrator import CompressionCoordinator, FileCollector
from .services import FileReportWriter, TinifyClient, load_keys

logger = logging.getLogger(__name__)

DEFAULT_LOG_DIR = "logs"
LEGACY_THREAD_ARG = "thread"

_log_paths: Tuple[Optional[str], Optional[str]] = (None, None)


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _get_log_paths() -> Tuple[Optional[str], Optional[str]]:
    """Paths of the run log and error log configured by ``_setup_logging``."""
    return _log_paths


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Run and error logs are always written to TINYPOOL_LOG_DIR (default ./logs).
    The console stays silent unless --debug or --log-level is provided.
    Returns a string describing effective console mode.
    """
    global _log_paths

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    logging.disable(logging.NOTSET)

    if debug:
        level = logging.DEBUG
    elif log_level:
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        env_level = os.getenv("LOG_LEVEL")
        level = getattr(logging, (env_level or "INFO").upper(), logging.INFO)

    log_dir = Path(os.getenv("TINYPOOL_LOG_DIR", DEFAULT_LOG_DIR)).expanduser()
    file_formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    try:
        log_dir.mkdir(parents=True, exist_ok=True)
        run_log = log_dir / "run.log"
        error_log = log_dir / "error.log"

        run_handler = logging.FileHandler(run_log, encoding="utf-8")
        run_handler.setLevel(level)
        run_handler.setFormatter(file_formatter)
        root_logger.addHandler(run_handler)

        error_handler = logging.FileHandler(error_log, encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(file_formatter)
        root_logger.addHandler(error_handler)

        _log_paths = (str(run_log), str(error_log))
    except OSError as exc:
        print(f"WARNING: cannot write logs to {log_dir}: {exc}", file=sys.stderr)
        _log_paths = (None, None)

    root_logger.setLevel(level)

    if silent or (not debug and not log_level):
        return "silent"

    handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(level)
    root_logger.addHandler(handler)
    return logging.getLevelName(level)


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def _resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _extract_legacy_threads(argv: Sequence[str]) -> Tuple[List[str], Optional[str]]:
    """Split ``thread=N`` arguments from the rest; the last one wins."""
    remaining = []
    threads = None
    for arg in argv:
        name, sep, value = arg.partition("=")
        if sep and name.lower() == LEGACY_THREAD_ARG:
            threads = value
            continue
        remaining.append(arg)
    return remaining, threads


def _build_config(args: argparse.Namespace, legacy_threads: Optional[str]) -> CompressionConfig:
    config = CompressionConfig.from_env()

    overrides = {}
    if args.source is not None:
        overrides["source_dir"] = str(args.source)
    if args.keys is not None:
        overrides["keys_file"] = str(args.keys)
    if args.result_dir is not None:
        overrides["result_dir"] = str(args.result_dir)
    if args.report_dir is not None:
        overrides["report_dir"] = str(args.report_dir)
    if args.api_url is not None:
        overrides["api_url"] = args.api_url
    if overrides:
        config = replace(config, **overrides)

    threads = args.threads if args.threads is not None else legacy_threads
    if threads is not None:
        config = config.with_threads(threads)
    return config


def _run_compression(config: CompressionConfig, quiet: bool = False) -> int:
    """Load keys, scan, compress and report. Fatal errors propagate."""
    keys = load_keys(config.keys_path)
    discovery = FileCollector().collect(config.source_path)
    writer = FileReportWriter(config.report_path)

    with TinifyClient(config.api_url, timeout=config.timeout) as client:
        coordinator = CompressionCoordinator(
            client,
            writer,
            discovery,
            keys,
            config.result_path,
            config,
        )
        coordinator.prepare()

        display = CompressionProgressDisplay(discovery.total_files, quiet=quiet)
        display.attach(coordinator)
        display.start()

        interrupted = False
        try:
            coordinator.compress()
        except KeyboardInterrupt:
            interrupted = True
        finally:
            display.stop()

        summary = coordinator.shutdown()
        display.on_finish(summary)

    if interrupted:
        print("Cancelled.", file=sys.stderr)
        return 130
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tinypool",
        description=(
            "Compress every image under SOURCE with the Tinify API, one worker per key. "
            "Compressed files go to the result dir, originals are deleted."
        ),
        epilog="The legacy form 'thread=N' is accepted as an alias of --threads N.",
    )
    parser.add_argument(
        "source",
        nargs="?",
        type=Path,
        help="Source folder (default from TINYPOOL_SOURCE_DIR or ./source)",
    )
    parser.add_argument(
        "-t",
        "--threads",
        default=None,
        help="Worker threads, 1-10 (invalid values keep the configured default)",
    )
    parser.add_argument(
        "-k",
        "--keys",
        type=Path,
        default=None,
        help="Keys file, one key per line (default from TINYPOOL_KEYS_FILE or ./keys.txt)",
    )
    parser.add_argument(
        "-o",
        "--result-dir",
        type=Path,
        default=None,
        help="Where compressed files are written (default ./result)",
    )
    parser.add_argument(
        "-r",
        "--report-dir",
        type=Path,
        default=None,
        help="Where reports are written (default ./reports)",
    )
    parser.add_argument("--api-url", default=None, help="Tinify API base URL")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"tinypool {__version__}",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)
    argv, legacy_threads = _extract_legacy_threads(argv)
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )
    logger.info("APP IS STARTED.")

    config = _build_config(args, legacy_threads)
    logger.info(f"thread count = {config.threads}")

    if not args.silent:
        run_log, _ = _get_log_paths()
        render_configuration_summary(
            {
                "Source": str(config.source_path),
                "Result Dir": str(config.result_path),
                "Report Dir": str(config.report_path),
                "Keys File": str(config.keys_path),
                "Threads": config.threads,
                "API": config.api_url,
                "Env File": str(used_env_file) if used_env_file else "-",
                "Logging": effective_log_mode,
                "Run Log": run_log,
            }
        )

    try:
        return _run_compression(config, quiet=args.silent)
    except FatalError as exc:
        logger.error(f"EPIC FAIL: {exc}")
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
