"""Command line entry point for batch filtering."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from .config import MAX_SOURCE_DIMENSION, TILE_SIZE
from .core.filter_chain import FilterChain
from .core.filters import EdgeColoringParams, FilterKind, TiledExecutor
from .core.homography import HomographySettings
from .core.image_io import load_image, save_image
from .core.pipeline import run_pipeline
from .errors import IScanError
from .utils.logging import get_logger, set_verbose


def parse_filter_option(value: str) -> tuple[FilterKind, Optional[int]]:
    """Parse ``KIND`` or ``KIND=STRENGTH``."""

    name, _, strength = value.partition("=")
    try:
        kind = FilterKind.parse(name.strip())
    except KeyError as exc:
        raise click.BadParameter(f"unknown filter {name!r}") from exc
    if not strength:
        return kind, None
    try:
        return kind, int(strength)
    except ValueError as exc:
        raise click.BadParameter(f"strength must be an integer, got {strength!r}") from exc


def _parse_numbers(value: str, count: int, option: str) -> list[float]:
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != count:
        raise click.BadParameter(f"{option} expects {count} comma separated numbers")
    try:
        return [float(part) for part in parts]
    except ValueError as exc:
        raise click.BadParameter(f"{option} expects numbers") from exc


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(package_name="iscan")
def main(verbose: bool) -> None:
    """Filter and perspective-correct scanned images."""

    get_logger()
    set_verbose(verbose)


@main.command("filters")
def list_filters() -> None:
    """List the available filters and their strength ranges."""

    for kind in FilterKind:
        click.echo(f"{kind.name.lower():<16} {kind.short_label:<3} {kind.domain.describe()}")


@main.command("apply")
@click.argument("input_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("output_path", type=click.Path(dir_okay=False, path_type=Path))
@click.option(
    "--filter", "-f", "filter_options",
    multiple=True,
    help="Filter to apply as KIND or KIND=STRENGTH; repeat to chain filters.",
)
@click.option(
    "--edge-color",
    default=None,
    help="Edge colour R,G,B used by edge_coloring filters.",
)
@click.option(
    "--corners",
    default=None,
    help="Homography corners x1,y1,...,x4,y4 (TL, TR, BL, BR) in image pixels.",
)
@click.option("--block-size", default=TILE_SIZE, show_default=True, type=click.IntRange(min=1))
@click.option("--max-dimension", default=MAX_SOURCE_DIMENSION, show_default=True, type=click.IntRange(min=1))
def apply_command(
    input_path: Path,
    output_path: Path,
    filter_options: tuple[str, ...],
    edge_color: Optional[str],
    corners: Optional[str],
    block_size: int,
    max_dimension: int,
) -> None:
    """Run a filter chain over INPUT_PATH and write OUTPUT_PATH."""

    params = None
    if edge_color is not None:
        red, green, blue = (int(v) for v in _parse_numbers(edge_color, 3, "--edge-color"))
        try:
            params = EdgeColoringParams((red, green, blue))
        except IScanError as exc:
            raise click.BadParameter(str(exc), param_hint="--edge-color") from exc

    chain = FilterChain()
    try:
        for value in filter_options:
            kind, strength = parse_filter_option(value)
            chain.add(kind, strength, params if kind is FilterKind.EDGE_COLORING else None)
    except IScanError as exc:
        raise click.BadParameter(str(exc), param_hint="--filter") from exc

    try:
        source = load_image(input_path).scaled_to_fit(max_dimension)
        homography = None
        if corners is not None:
            values = _parse_numbers(corners, 8, "--corners")
            points = list(zip(values[0::2], values[1::2]))
            homography = HomographySettings(
                *points,
                display_width=float(source.width),
                display_height=float(source.height),
                scale_to_image=1.0,
            )
        output = run_pipeline(
            source,
            chain.snapshot(),
            homography,
            executor=TiledExecutor(block_size),
        )
        save_image(output.filtered, output_path)
    except IScanError as exc:
        raise click.ClickException(f"{exc} [{exc.code}]") from exc

    click.echo(f"Wrote {output.filtered.width}x{output.filtered.height} image to {output_path}")


if __name__ == "__main__":  # pragma: no cover
    main()
