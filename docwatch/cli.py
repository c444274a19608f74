"""CLI entrypoints for docwatch commands."""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path

from .config import ConfigError, WatchConfig, load_config
from .llm.factory import create_provider
from .logging import configure_logging
from .orchestrator import MODES, GenerationOutcome, Orchestrator
from .prompting.constants import SECTION_SPECS


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=argparse.SUPPRESS if suppress_default else False,
        help="Increase log verbosity for troubleshooting.",
    )


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    parser.add_argument(
        "-o",
        "--output",
        default=None,
        help="Output markdown file, relative to the project root.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docwatch",
        description="Keep LLM-generated project documentation in sync with the source tree.",
    )
    _add_verbose_option(parser)
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write logs to this file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    watch_parser = subparsers.add_parser(
        "watch",
        help="Generate documentation, then regenerate on changes and on a timer.",
    )
    _add_verbose_option(watch_parser, suppress_default=True)
    _add_project_options(watch_parser)
    watch_parser.add_argument(
        "-i",
        "--interval",
        type=int,
        default=None,
        help="Periodic regeneration interval in milliseconds.",
    )

    generate_parser = subparsers.add_parser(
        "generate",
        help="Run a single generation pass and exit.",
    )
    _add_verbose_option(generate_parser, suppress_default=True)
    _add_project_options(generate_parser)
    generate_parser.add_argument(
        "--section",
        default=None,
        help="Generate only this documentation section.",
    )
    generate_parser.add_argument(
        "--mode",
        choices=MODES,
        default="auto",
        help="Force initial or incremental generation (default: auto).",
    )

    sections_parser = subparsers.add_parser("sections", help="List the known documentation sections.")
    _add_verbose_option(sections_parser, suppress_default=True)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docwatch commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    log_file = Path(args.log_file).expanduser() if args.log_file else None
    configure_logging(verbose=bool(args.verbose), log_file=log_file)

    if args.command == "sections":
        for key, spec in SECTION_SPECS.items():
            print(f"{key:<16} {spec.filename:<24} {spec.title}")
        return

    root = Path(args.path).expanduser()
    if not root.is_dir():
        parser.exit(1, f"Project path not found: {args.path}\n")

    try:
        config = load_config(root).with_overrides(
            output_path=args.output,
            update_interval_ms=getattr(args, "interval", None),
        )
        provider = create_provider(config)
    except ConfigError as exc:
        parser.exit(1, f"{exc}\n")

    orchestrator = Orchestrator(config, provider)

    if args.command == "watch":
        try:
            asyncio.run(_watch(orchestrator))
        except KeyboardInterrupt:
            print("Stopped watching")
    elif args.command == "generate":
        outcome = asyncio.run(_generate(orchestrator, args.mode, args.section))
        rel_path = _relativize(outcome.path, config)
        if not outcome.ok:
            parser.exit(1, f"docwatch generate failed; error document written to {rel_path}\n")
        print(f"Documentation written to {rel_path}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


async def _watch(orchestrator: Orchestrator) -> None:
    try:
        await orchestrator.watch()
    finally:
        await orchestrator.aclose()


async def _generate(orchestrator: Orchestrator, mode: str, section: str | None) -> GenerationOutcome:
    try:
        if section:
            return await orchestrator.generate_section(section)
        return await orchestrator.generate(mode)
    finally:
        await orchestrator.aclose()


def _relativize(path: Path, config: WatchConfig) -> str:
    try:
        return str(path.relative_to(config.root))
    except ValueError:
        return str(path)


if __name__ == "__main__":  # pragma: no cover
    main()
