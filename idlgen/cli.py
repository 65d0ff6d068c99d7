"""CLI entrypoints for idlgen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import CONFIG_FILENAME, MAIN_GOAL, TEST_GOAL, ProjectConfig, load_config
from .errors import IdlgenError
from .logging import configure_logging, get_logger
from .orchestrator import TranslationOrchestrator
from .translators import available_translators


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _add_goal_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help=f"Project root or {CONFIG_FILENAME} path (defaults to current directory).",
    )
    parser.add_argument(
        "--compiler",
        default=None,
        help="IDL compiler backend: " + ", ".join(available_translators()) + ".",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Run the compiler verbosely and log each command line.",
    )
    parser.add_argument(
        "--no-fail-on-error",
        dest="fail_on_error",
        action="store_false",
        default=None,
        help="Log compiler failures instead of aborting (files are still marked processed).",
    )
    parser.add_argument(
        "--stale-millis",
        type=int,
        default=None,
        help="Modification time granularity in milliseconds when checking staleness.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List stale IDL files without invoking the compiler.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="idlgen",
        description="Translate changed CORBA IDL files into generated sources.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write the run log to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        MAIN_GOAL,
        help="Generate sources from src/main/idl.",
    )
    _add_goal_options(generate_parser)

    test_parser = subparsers.add_parser(
        TEST_GOAL,
        help="Generate test sources from src/test/idl.",
    )
    _add_goal_options(test_parser)

    return parser


def _apply_overrides(config: ProjectConfig, args: argparse.Namespace) -> None:
    if args.compiler:
        config.compiler = args.compiler
    if args.debug is not None:
        config.debug = args.debug
    if args.fail_on_error is not None:
        config.fail_on_error = args.fail_on_error
    if args.stale_millis is not None:
        config.stale_millis = args.stale_millis


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for idlgen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)
    logger = get_logger("cli")

    if args.stale_millis is not None and args.stale_millis < 0:
        parser.error("--stale-millis must not be negative")

    try:
        config = load_config(Path(args.path))
    except IdlgenError as exc:
        parser.exit(1, f"{exc}\n")
    _apply_overrides(config, args)

    goal = config.goal(args.command)
    orchestrator = TranslationOrchestrator(config.settings_for(args.command))
    dry_run = bool(getattr(args, "dry_run", False))

    try:
        report = orchestrator.run(goal.sources, dry_run=dry_run)
    except IdlgenError as exc:
        logger.debug("Run aborted", exc_info=True)
        parser.exit(1, f"idlgen {args.command} failed: {exc}\n")
    except Exception as exc:  # pragma: no cover
        logger.debug("Run aborted", exc_info=True)
        parser.exit(
            1,
            f"idlgen {args.command} failed: {exc}\nRun with --verbose for more details.\n",
        )

    if dry_run:
        if not report.stale_files:
            print("All IDL files are up to date (dry-run)")
        for path in report.stale_files:
            print(_relativize(path))
        return

    if report.processed:
        print(f"Processed {report.processed} IDL file(s) into {_relativize(report.generated_source_root)}")
    else:
        print("Nothing to do - all IDL files are up to date")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
