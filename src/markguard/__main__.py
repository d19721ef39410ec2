"""Main entry point for the MarkGuard command-line interface."""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__, paths
from .config import MarkGuardConfig, load_config, save_setting
from .editor import FileEditor
from .errors import ConfigurationError, TransportError
from .logging_utils import setup_logging
from .models import Granularity, Scope
from .templates import DEFAULT_CONFIG_YAML
from .translate import LANGUAGE_NAMES
from .translators.deepl_translator import check_connection
from .workflow import run_operation

logger = logging.getLogger(__name__)


def _line_range(value: str) -> tuple[int, int]:
    """Parse a 'FIRST:LAST' line range (1-based, inclusive)."""
    first, sep, last = value.partition(":")
    try:
        start = int(first)
        end = int(last) if sep else start
    except ValueError:
        msg = f"Invalid line range '{value}'. Expected FIRST:LAST, e.g. 10:25."
        raise argparse.ArgumentTypeError(msg) from None
    if start < 1 or end < start:
        msg = f"Invalid line range '{value}'. Lines start at 1 and LAST must not be before FIRST."
        raise argparse.ArgumentTypeError(msg)
    return start, end


def _add_common_arguments(parser: argparse.ArgumentParser, *, project: bool = True) -> None:
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug level logging.",
    )
    if project:
        parser.add_argument(
            "--project",
            default=None,
            help="The project directory holding '.markguard' (default: searched upwards).",
        )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="MarkGuard: translate Markdown without breaking its structure")
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"MarkGuard {__version__}",
        help="Show the version number and exit.",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # 'init' command
    init_parser = subparsers.add_parser("init", help="Initialize a new MarkGuard project.")
    init_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="The directory to initialize the project in (default: current directory).",
    )
    _add_common_arguments(init_parser, project=False)

    # 'translate' command
    translate_parser = subparsers.add_parser("translate", help="Translate or convert a Markdown file.")
    translate_parser.add_argument("file", help="The Markdown file to transform.")
    translate_parser.add_argument(
        "--to",
        dest="target_lang",
        default=None,
        help="Target language code, e.g. ZH-HANT, FR (default: from the configuration).",
    )
    translate_parser.add_argument(
        "--lines",
        type=_line_range,
        default=None,
        help="Only transform lines FIRST:LAST (1-based, inclusive).",
    )
    translate_parser.add_argument(
        "--granularity",
        choices=[g.value for g in Granularity],
        default=None,
        help="Send the whole text in one call ('document') or every cell and line on its own ('cell').",
    )
    translate_parser.add_argument(
        "--output",
        default=None,
        help="Write the result to this file instead of modifying FILE in place.",
    )
    translate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Protect and restore with an identity transform; write a report instead of the file.",
    )
    _add_common_arguments(translate_parser)

    # 'check' command
    check_parser = subparsers.add_parser("check", help="Test the DeepL credentials.")
    _add_common_arguments(check_parser)

    # 'set' command
    set_parser = subparsers.add_parser("set", help="Change a setting, e.g. 'providers.deepl.api_type pro'.")
    set_parser.add_argument("key", help="Dotted setting name.")
    set_parser.add_argument("value", help="New value (interpreted as a YAML scalar).")
    _add_common_arguments(set_parser)

    # 'languages' command
    subparsers.add_parser("languages", help="List the common target language codes.")

    return parser


def _parse_args() -> argparse.Namespace:
    """
    Parse command-line arguments for the MarkGuard CLI.

    Returns:
        argparse.Namespace: An object containing the parsed command-line arguments.

    """
    parser = _build_parser()

    # If no arguments are provided, print help
    if len(sys.argv) == 1:
        parser.print_help(sys.stderr)
        sys.exit(1)

    return parser.parse_args()


def _init_project(target_path: Path) -> None:
    """Initialize a new MarkGuard project structure."""
    path = target_path.resolve()
    logger.info("Initializing MarkGuard project in: %s", path)

    config_dir = paths.get_config_dir(path)
    config_file = config_dir / paths.CONFIG_FILE_NAMES[0]

    if config_file.exists():
        logger.warning("Configuration file already exists at: %s", config_file)
        return

    try:
        config_dir.mkdir(parents=True, exist_ok=True)
        config_file.write_text(DEFAULT_CONFIG_YAML, encoding="utf-8")
        logger.info("Created default configuration at: %s", config_file)
        logger.info("Project initialized successfully!")
    except OSError:
        logger.exception("Failed to initialize project")
        sys.exit(1)


def _resolve_project_root(project: str | None, start: Path | None = None) -> Path | None:
    """Return the project root, or None when the location is not inside a MarkGuard project."""
    try:
        return paths.find_project_root(Path(project) if project else start)
    except FileNotFoundError:
        if project:
            raise
        return None


def _load_config(project_root: Path | None) -> MarkGuardConfig:
    """
    Load configuration from the fixed file path relative to project_root.

    Outside a project the built-in defaults are used, so the DeepL key can come
    from the environment alone.
    """
    if project_root is None:
        logger.info("No MarkGuard project found. Using the default configuration.")
        return MarkGuardConfig()
    config_path = paths.get_config_file_path(project_root)
    logger.info("Loading configuration from: %s", config_path)
    return load_config(config_path)


def _translate(args: argparse.Namespace) -> None:
    file_path = Path(args.file).resolve()
    if not file_path.is_file():
        logger.error("File does not exist: %s", file_path)
        sys.exit(1)

    project_root = _resolve_project_root(args.project, file_path)
    setup_logging(version=__version__, debug=args.debug, project_root=project_root)
    config = _load_config(project_root)

    editor = FileEditor(file_path, args.lines, output_path=Path(args.output) if args.output else None)
    context = run_operation(
        editor,
        config,
        target_lang=args.target_lang,
        scope=Scope.SELECTION if args.lines else Scope.FULL,
        granularity=Granularity(args.granularity) if args.granularity else None,
        dry_run=args.dry_run,
        debug=args.debug,
        project_root=project_root,
    )
    if context.report.shortfall:
        logger.warning("Some protected content could not be restored. Please review the result.")


def _check(args: argparse.Namespace) -> None:
    project_root = _resolve_project_root(args.project)
    setup_logging(version=__version__, debug=args.debug, project_root=project_root)
    config = _load_config(project_root)

    result = check_connection(config.provider_settings("deepl"))
    if result.success:
        logger.info("%s Test translation: %s", result.message, result.details)
        return
    logger.error("%s", result.message)
    if result.details:
        logger.debug("Details: %s", result.details)
    sys.exit(1)


def _set(args: argparse.Namespace) -> None:
    project_root = _resolve_project_root(args.project)
    setup_logging(version=__version__, debug=args.debug, project_root=project_root)
    if project_root is None:
        logger.error("No MarkGuard project found. Run 'markguard init' first.")
        sys.exit(1)
    try:
        save_setting(paths.get_config_file_path(project_root), args.key, args.value)
    except ValueError:
        logger.exception("The setting was not saved")
        sys.exit(1)


def _languages() -> None:
    setup_logging(version=__version__)
    for code, name in LANGUAGE_NAMES.items():
        logger.info("%-8s %s", code, name)


def main() -> None:
    """
    Run the main entry point for the MarkGuard command-line interface.

    Orchestrates the entire process:
    1. Parses command-line arguments.
    2. Loads the configuration.
    3. Runs the requested command.
    """
    try:
        args = _parse_args()

        if args.command == "init":
            # Validate path for init command
            init_path = Path(args.path).resolve()
            if not init_path.exists():
                logger.error("Path does not exist: %s", init_path)
                sys.exit(1)
            if not init_path.is_dir():
                logger.error("Path is not a directory: %s", init_path)
                sys.exit(1)

            setup_logging(version=__version__, debug=args.debug, project_root=init_path)
            _init_project(init_path)
            return

        if args.command == "translate":
            _translate(args)
        elif args.command == "check":
            _check(args)
        elif args.command == "set":
            _set(args)
        elif args.command == "languages":
            _languages()

    except (ConfigurationError, TransportError) as e:
        logger.critical("%s", e)
        sys.exit(1)
    except FileNotFoundError as e:
        logger.critical("%s", e)
        sys.exit(1)
    except Exception:
        logger.exception("An unexpected error occurred")
        logger.critical("An unrecoverable error occurred. Please check the logs for details.")
        sys.exit(1)


if __name__ == "__main__":
    main()
