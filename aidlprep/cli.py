"""CLI entrypoints for aidlprep commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from .generator import ParcelableIndexGenerator
from .logging import configure_logging
from .models import GenerationResult, GenerationStatus


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


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aidlprep",
        description="Create the AIDL preprocess file (project.aidl) for Parcelable classes.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate_parser = subparsers.add_parser(
        "generate",
        help="Scan projects and regenerate their project.aidl.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    generate_parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="Project roots to process (defaults to current directory).",
    )
    generate_parser.add_argument(
        "--marker",
        default=None,
        help="Fully-qualified marker interface (default: android.os.Parcelable or .aidlprep.yml).",
    )
    generate_parser.add_argument(
        "-j",
        "--jobs",
        type=int,
        default=None,
        help="Maximum number of projects processed concurrently.",
    )
    generate_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the generated file instead of writing it.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for aidlprep commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if args.command == "generate":
        if args.jobs is not None and args.jobs < 1:
            parser.exit(2, "--jobs must be at least 1\n")
        generator = ParcelableIndexGenerator(marker_interface=args.marker)
        results = generator.run_many(
            args.paths,
            max_workers=args.jobs,
            dry_run=bool(args.dry_run),
        )
        for result in results:
            print(_describe(result))
        if any(not result.ok for result in results):
            parser.exit(1)
    elif args.command == "serve":
        from .service import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _describe(result: GenerationResult) -> str:
    project = _relativize(result.project)
    if result.status is GenerationStatus.WRITTEN and result.artifact is not None:
        lines = [
            f"project.aidl updated at {_relativize(result.artifact)} "
            f"({len(result.parcelables)} parcelable)"
        ]
        lines.extend(f"warning: {warning}" for warning in result.warnings)
        return "\n".join(lines)
    if result.status is GenerationStatus.DRY_RUN:
        return f"project.aidl for {project} (dry-run):\n{result.content or ''}".rstrip("\n")
    if result.status is GenerationStatus.SKIPPED:
        return f"No Parcelable classes found in {project}"
    if result.status is GenerationStatus.CANCELLED:
        return f"Cancelled {project}"
    return (
        f"aidlprep generate failed for {project}: {result.error}\n"
        "Run with --verbose for more details."
    )


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
