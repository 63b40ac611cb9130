"""CLI entrypoints for repolens commands."""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path

from .aggregator import analyze
from .config import ConfigError, load_config
from .facts import FactFormatError, load_facts
from .formatters import to_flat_text, to_json
from .logging import configure_logging, get_logger
from .patterns.catalog import DEFAULT_CATALOG

logger = get_logger("cli")


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
        prog="repolens",
        description="Detect frameworks, endpoints, state and event handlers from per-file facts.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Aggregate a facts document into a project report.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument("facts", help="Path to a JSON facts document.")
    analyze_parser.add_argument(
        "--format",
        choices=("json", "text"),
        default="json",
        help="Output format (defaults to json).",
    )
    analyze_parser.add_argument(
        "--config",
        default=None,
        help="Path to .repolens.yml or its directory (defaults to the --repo directory).",
    )
    analyze_parser.add_argument(
        "--repo",
        default=".",
        help="Repository path recorded in the report metadata.",
    )
    analyze_parser.add_argument(
        "--no-frameworks",
        action="store_true",
        help="Skip framework confidence scoring.",
    )
    analyze_parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum chain length explored by cycle detection.",
    )
    analyze_parser.add_argument(
        "--parallel",
        action="store_true",
        help="Run the detectors on a thread pool.",
    )
    analyze_parser.add_argument(
        "--output",
        default=None,
        help="Write the report to this file instead of stdout.",
    )

    frameworks_parser = subparsers.add_parser(
        "frameworks",
        help="List the frameworks the detector knows about.",
    )
    _add_verbose_option(frameworks_parser, suppress_default=True)

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP analysis service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument(
        "--config",
        default=None,
        help="Path to .repolens.yml applied to every request.",
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for repolens commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "analyze":
        _run_analyze(parser, args)
    elif args.command == "frameworks":
        for signature in DEFAULT_CATALOG:
            languages = ", ".join(signature.primary_languages) or "-"
            print(
                f"{signature.name}: min_confidence={signature.min_confidence:.2f} "
                f"patterns={len(signature.patterns)} languages={languages}"
            )
    elif args.command == "serve":
        from .service import run_service

        config_path = Path(args.config) if args.config else None
        try:
            run_service(host=args.host, port=args.port, config_path=config_path)
        except (ConfigError, ValueError) as exc:
            parser.exit(1, f"{exc}\n")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_analyze(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    started = time.time()
    config_path = Path(args.config) if args.config else Path(args.repo)
    try:
        config = load_config(config_path)
        options = config.to_options(repository_path=args.repo)
        files = load_facts(Path(args.facts))
    except (ConfigError, FactFormatError, ValueError) as exc:
        parser.exit(1, f"{exc}\n")

    if args.no_frameworks:
        options.include_frameworks = False
    if args.max_depth is not None:
        if args.max_depth < 0:
            parser.exit(1, "--max-depth must be non-negative\n")
        options.max_circular_depth = args.max_depth
    if args.parallel:
        options.parallel = True

    result = analyze(files, options, start_time=started)
    if "error" in result.metadata:
        logger.warning("Analysis failed: %s", result.metadata["error"])

    rendered = to_flat_text(result) if args.format == "text" else to_json(result)
    if args.output:
        Path(args.output).write_text(rendered + "\n", encoding="utf-8")
        logger.info("Report written to %s", args.output)
    else:
        print(rendered)


if __name__ == "__main__":
    main(sys.argv[1:])
