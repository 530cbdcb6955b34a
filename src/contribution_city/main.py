"""
Contribution City Main Application
==================================

Command-line entry point for the city renderer.

Pipeline:
    1. Load settings (defaults -> preset -> config.yaml -> env -> CLI flags)
    2. Resolve the week (GitHub GraphQL, synthetic fallback)
    3. Assemble the scene (one building or lamp per day)
    4. Composite in depth order and write the SVG document

Exit Codes:
    0 - document written
    1 - configuration error
    2 - contribution samples violated the input contract

Usage:
    contribution-city --preset compact --offline --seed 7
    python -m contribution_city.main --output out/city.svg
"""

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from contribution_city import __version__
from contribution_city.city.assembler import SceneAssembler, create_rng
from contribution_city.config import PRESETS, Settings, deep_merge, load_config, setup_logging
from contribution_city.models.week import InvalidSampleError, Week
from contribution_city.render.compositor import Compositor
from contribution_city.render.writer import write_document
from contribution_city.sources import FallbackWeekSource, GitHubWeekSource, resolve_week


logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_CONFIG_ERROR = 1
EXIT_INVALID_SAMPLES = 2


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser."""
    parser = argparse.ArgumentParser(
        prog="contribution-city",
        description="Render a week of GitHub contributions as an isometric night city (SVG).",
    )
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--preset", choices=sorted(PRESETS), help="Named layout preset")
    parser.add_argument("--output", help="Output SVG path")
    parser.add_argument("--username", help="GitHub login to render")
    parser.add_argument(
        "--labels",
        choices=["text", "bitmap", "asset"],
        help="Label strategy",
    )
    parser.add_argument(
        "--buildings",
        choices=["prism", "asset"],
        help="Building style",
    )
    parser.add_argument("--seed", type=int, help="Seed for stars, windows and random fallback")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Skip the GitHub API and render the fallback week",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """
    Layer command-line flags over loaded settings.

    Returns:
        New validated Settings
    """
    overrides: dict = {}
    if args.output:
        overrides.setdefault("output", {})["path"] = args.output
    if args.username:
        overrides.setdefault("github", {})["username"] = args.username
    if args.labels:
        overrides.setdefault("labels", {})["strategy"] = args.labels
    if args.buildings:
        overrides.setdefault("building", {})["style"] = args.buildings
    if args.seed is not None:
        overrides.setdefault("scene", {})["seed"] = args.seed

    if not overrides:
        return settings
    return Settings.model_validate(deep_merge(settings.model_dump(), overrides))


def log_week(week: Week) -> None:
    """Log the per-day counts and both totals."""
    for day in week.days:
        logger.info(f"{day.date.isoformat()} ({day.weekday_name}): {day.count} contributions")
    logger.info(f"Total contributions: {week.total_contributions}")
    logger.info(f"This week: {week.week_total}")


def run(settings: Settings, offline: bool = False) -> str:
    """
    Render one document from loaded settings.

    Args:
        settings: Loaded settings
        offline: Skip the GitHub source

    Returns:
        Path of the written document

    Raises:
        InvalidSampleError: If the resolved week violates the input contract
    """
    rng = create_rng(settings.scene.seed)
    fallback = FallbackWeekSource.from_settings(settings, rng=rng)

    if offline:
        logger.info("Offline mode: rendering fallback week")
        week = fallback.fetch_week()
    else:
        week = resolve_week(GitHubWeekSource.from_settings(settings), fallback)

    log_week(week)

    scene = SceneAssembler(settings, rng=rng).assemble(week)
    svg = Compositor.from_settings(settings).render(scene)
    path = write_document(svg, settings.output.path)
    return str(path)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Command-line entry point.

    Args:
        argv: Argument list (default: ``sys.argv[1:]``)

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    try:
        settings = apply_cli_overrides(load_config(args.config, preset=args.preset), args)
    except (ValueError, OSError, yaml.YAMLError) as e:
        # pydantic.ValidationError is a ValueError
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    setup_logging(settings)
    logger.info(f"Contribution City v{__version__} (preset={settings.preset or 'default'})")

    try:
        path = run(settings, offline=args.offline)
    except InvalidSampleError as e:
        logger.error(f"Invalid contribution samples: {e}")
        return EXIT_INVALID_SAMPLES

    logger.info(f"Done: {path}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
