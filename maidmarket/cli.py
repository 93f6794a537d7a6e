"""Command-line access to the favorites synchronizer.

Usage:
    maidmarket favorites list
    maidmarket favorites check <maid-id>
    maidmarket favorites toggle <maid-id>
    maidmarket favorites add <maid-id>
    maidmarket favorites remove <maid-id>
"""

from __future__ import annotations

import asyncio
import logging

import click
from rich.console import Console
from rich.table import Table

from maidmarket.errors import ApiError, ToggleMutationFailed
from maidmarket.services.favorites_service import FavoritesService, get_favorites_service
from maidmarket.settings import get_settings

logger = logging.getLogger(__name__)
console = Console()


def _configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level_numeric,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    for warning in settings.optional_config_warnings():
        logger.warning(warning)


@click.group()
def cli() -> None:
    """Maid marketplace client tools."""

    _configure_logging()


@cli.group()
def favorites() -> None:
    """Inspect and change the session user's favorite maids."""


@favorites.command("list")
def list_command() -> None:
    """Show every favorited maid."""

    asyncio.run(_run_list())


@favorites.command("check")
@click.argument("maid_id")
def check_command(maid_id: str) -> None:
    """Report whether MAID_ID is favorited."""

    asyncio.run(_run_check(maid_id))


@favorites.command("toggle")
@click.argument("maid_id")
def toggle_command(maid_id: str) -> None:
    """Flip the favorite flag of MAID_ID."""

    asyncio.run(_run_toggle(maid_id, target=None))


@favorites.command("add")
@click.argument("maid_id")
def add_command(maid_id: str) -> None:
    """Favorite MAID_ID."""

    asyncio.run(_run_toggle(maid_id, target=True))


@favorites.command("remove")
@click.argument("maid_id")
def remove_command(maid_id: str) -> None:
    """Unfavorite MAID_ID."""

    asyncio.run(_run_toggle(maid_id, target=False))


async def _run_list() -> None:
    service = get_favorites_service()
    try:
        items = await service.list_favorites(refresh=True)
    except ApiError as exc:
        raise click.ClickException(f"Could not load favorites: {exc.message}") from exc
    finally:
        await service.aclose()

    if not items:
        console.print("[yellow]No favorites yet[/yellow]")
        return

    table = Table(title=f"Favorites ({len(items)})")
    table.add_column("Maid ID", style="cyan")
    table.add_column("Name")
    table.add_column("Nationality")
    table.add_column("Experience", justify="right")
    table.add_column("Salary", justify="right")
    for item in items:
        maid = item.maid
        table.add_row(
            item.maid_id,
            maid.name if maid else "-",
            maid.nationality.name_en if maid and maid.nationality else "-",
            f"{maid.experience_years}y" if maid else "-",
            (maid.salary or "-") if maid else "-",
        )
    console.print(table)


async def _run_check(maid_id: str) -> None:
    service = get_favorites_service()
    try:
        is_favorite = await service.check(maid_id, refresh=True)
    except ApiError as exc:
        raise click.ClickException(f"Could not check {maid_id}: {exc.message}") from exc
    finally:
        await service.aclose()

    label = "[green]favorite[/green]" if is_favorite else "[dim]not favorite[/dim]"
    console.print(f"{maid_id}: {label}")


async def _run_toggle(maid_id: str, *, target: bool | None) -> None:
    service = get_favorites_service()
    try:
        await _toggle_with(service, maid_id, target=target)
    finally:
        await service.aclose()


async def _toggle_with(
    service: FavoritesService, maid_id: str, *, target: bool | None
) -> None:
    try:
        current = await service.check(maid_id, refresh=True)
    except ApiError as exc:
        raise click.ClickException(f"Could not check {maid_id}: {exc.message}") from exc

    if target is not None and current == target:
        state = "already a favorite" if target else "not a favorite"
        console.print(f"{maid_id} is {state}; nothing to do")
        return

    task = service.toggle(maid_id, current)
    console.print(
        f"{maid_id} -> {'favorite' if service.is_favorite(maid_id) else 'not favorite'}"
        " (pending)"
    )
    try:
        committed = await task
    except ToggleMutationFailed as exc:
        raise click.ClickException(str(exc)) from exc

    console.print(
        f"[green]Saved[/green]: {maid_id} is "
        f"{'a favorite' if committed else 'no longer a favorite'}"
    )


__all__ = ["cli"]
