"""CLI entrypoints for pagegen commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .config import ConfigError, load_config
from .logging import configure_logging
from .orchestrator import BuildError, BuildReport, Orchestrator
from .stores import BackupManager


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


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Project root or path to .pagegen.yml (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagegen",
        description="Generate annotated pages and a sitemap from a directory of source documents.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build",
        help="Run one build cycle and exit.",
    )
    _add_verbose_option(build_parser, suppress_default=True)
    _add_path_argument(build_parser)
    build_parser.add_argument(
        "--force",
        action="store_true",
        help="Re-render every page even when its source is unchanged.",
    )
    build_parser.add_argument(
        "--no-incremental",
        action="store_true",
        help="Disable change detection for this run.",
    )

    watch_parser = subparsers.add_parser(
        "watch",
        help="Rebuild on a fixed interval until interrupted.",
    )
    _add_verbose_option(watch_parser, suppress_default=True)
    _add_path_argument(watch_parser)
    watch_parser.add_argument(
        "--interval-ms",
        type=int,
        default=None,
        help="Milliseconds between build ticks (defaults to watch_interval_ms).",
    )

    backups_parser = subparsers.add_parser(
        "backups",
        help="List backup snapshots, newest first.",
    )
    _add_verbose_option(backups_parser, suppress_default=True)
    _add_path_argument(backups_parser)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service exposing builds and the sitemap.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    _add_path_argument(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for pagegen commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    try:
        config = load_config(Path(args.path))
    except ConfigError as exc:
        parser.exit(1, f"Invalid configuration: {exc}\n")

    if args.command == "build" and config.watch:
        args.command = "watch"
        args.interval_ms = None

    if args.command == "build":
        if args.no_incremental:
            config.enable_incremental = False
        orchestrator = Orchestrator(config)
        try:
            report = orchestrator.run_build(force=bool(args.force))
        except BuildError as exc:
            parser.exit(1, f"pagegen build failed: {exc}\nRun with --verbose for more details.\n")
        _print_report(report)
    elif args.command == "watch":
        if args.interval_ms is not None and args.interval_ms <= 0:
            parser.exit(1, "--interval-ms must be positive\n")
        orchestrator = Orchestrator(config)
        try:
            orchestrator.watch(interval_ms=args.interval_ms)
        except KeyboardInterrupt:
            print("Stopped watching")
    elif args.command == "backups":
        snapshots = BackupManager(config.backup_dir).list_snapshots()
        if not snapshots:
            print("No backups found")
        for info in snapshots:
            print(f"{info.name}\t{info.size}\t{info.modified.isoformat()}")
    elif args.command == "serve":
        from .service.app import run_service

        run_service(config, host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _print_report(report: BuildReport) -> None:
    print(
        f"Built {report.rendered} page(s), skipped {report.skipped}, "
        f"{report.changed} changed of {report.discovered} discovered"
    )
    if report.manifest_path is not None:
        print(f"Sitemap written to {_relativize(report.manifest_path)}")
    if report.pages_with_errors:
        print(f"{report.pages_with_errors} page(s) have validation errors")
    for filename, message in sorted(report.failed.items()):
        print(f"  failed: {filename}: {message}")


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
