"""CLI for the story reader client.

Commands:
- stories: List published stories, with optional filters
- story: Show one story by slug
- ratings: Show ratings and rating stats for a story
- bookmarks: List the signed-in user's bookmarks
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, Any, Protocol

import typer
from rich import print as rprint

from .auth import AuthStore
from .config import ClientConfig
from .config_file import load_client_config_file
from .exceptions import ValidationFailedError
from .observability import set_log_level
from .protocols import JsonApi
from .resources import ResourceFactory
from .state import PaginatedResource, ResourceUnit
from .validation import StoryFilters, parse_input


class DependenciesBuilder(Protocol):
    """Protocol for constructing CLI dependencies."""

    def __call__(self, *, config: ClientConfig) -> CliDependencies:
        """Build dependencies for CLI commands."""
        ...


@dataclass(frozen=True)
class CliDependencies:
    """Concrete dependencies required by the CLI."""

    api: JsonApi
    auth: AuthStore


@dataclass(frozen=True)
class CliContext:
    """Runtime CLI context for a single command invocation."""

    config: ClientConfig
    deps_builder: DependenciesBuilder

    def build_dependencies(self, *, config: ClientConfig | None = None) -> CliDependencies:
        """Return dependencies using the configured builder."""
        return self.deps_builder(config=config or self.config)

    def build_units(self) -> ResourceFactory:
        """Return a factory for resource units wired to this invocation's config."""
        deps = self.build_dependencies()
        return ResourceFactory(api=deps.api, auth=deps.auth, config=self.config)


class CliContextNotInitialisedError(typer.BadParameter):
    """Raised when CLI context is missing."""

    def __init__(self) -> None:
        super().__init__("CLI context is not initialised. Use the story-client entry point.")


def _get_context(ctx: typer.Context) -> CliContext:
    if not isinstance(ctx.obj, CliContext):
        raise CliContextNotInitialisedError()
    return ctx.obj


def _localised(texts: object, language: str = "en") -> str:
    if not isinstance(texts, dict):
        return ""
    for key in (language, "en", "tr"):
        value = texts.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return ""


def _exit_on_error(unit: ResourceUnit[Any]) -> None:
    if unit.error is not None:
        rprint(f"[red]✗ {unit.error_message}[/red]")
        raise typer.Exit(code=1)


async def _load_pages(unit: PaginatedResource[Any, Any], max_pages: int | None = None) -> None:
    """Fetch page 1, then follow `has_more` until `max_pages` or an empty page."""
    await unit.fetch()
    while unit.error is None and unit.has_more:
        if max_pages is not None and unit.page >= max_pages:
            return
        loaded = await unit.load_more()
        if not loaded.value:
            return


def create_app(deps_builder: DependenciesBuilder) -> typer.Typer:
    """Create a Typer app wired with the provided dependencies builder."""
    app = typer.Typer(
        add_completion=False,
        help="Story reader client: browse stories, ratings and bookmarks",
    )

    @app.callback()
    def main(
        ctx: typer.Context,
        config_path: Annotated[
            Path | None,
            typer.Option(
                "--config",
                help="TOML config file ([client] section) overriding environment values",
            ),
        ] = None,
        api_url: Annotated[
            str | None,
            typer.Option("--api-url", help="API base URL (default: STORY_API_URL)"),
        ] = None,
        verbose: Annotated[
            bool, typer.Option("--verbose", "-v", help="Log requests and retries at DEBUG level")
        ] = False,
    ) -> None:
        """Initialise CLI context."""
        if verbose:
            set_log_level(logging.DEBUG)
        config = ClientConfig.from_env()
        if config_path is not None:
            config = config.with_file_overrides(load_client_config_file(config_path))
        config = config.with_overrides(api_url=api_url)
        ctx.obj = CliContext(config=config, deps_builder=deps_builder)

    @app.command()
    def stories(
        ctx: typer.Context,
        search: Annotated[str | None, typer.Option("--search", "-s", help="Search text")] = None,
        category_id: Annotated[str | None, typer.Option("--category", help="Category id")] = None,
        tag_id: Annotated[str | None, typer.Option("--tag", help="Tag id")] = None,
        author_id: Annotated[str | None, typer.Option("--author", help="Author id")] = None,
        language: Annotated[
            str | None, typer.Option("--language", "-l", help="Story language (en/tr)")
        ] = None,
        status: Annotated[
            str | None, typer.Option("--status", help="DRAFT or PUBLISHED")
        ] = None,
        pages: Annotated[
            int, typer.Option("--pages", "-p", min=1, help="Number of pages to load")
        ] = 1,
    ) -> None:
        """List stories matching the given filters."""
        state = _get_context(ctx)
        try:
            filters = parse_input(
                StoryFilters,
                search=search,
                category_id=category_id,
                tag_id=tag_id,
                author_id=author_id,
                language=language,
                status=status,
            )
        except ValidationFailedError as exc:
            raise typer.BadParameter(str(exc)) from exc
        listing = state.build_units().story_list(filters)
        asyncio.run(_load_pages(listing, pages))
        _exit_on_error(listing)
        display_language = language or "en"
        for item in listing.items:
            title = _localised(item.get("title"), display_language) or "(untitled)"
            rprint(f"• [bold]{title}[/bold] [dim]({item.get('slug', '')})[/dim]")
        more = " (more available)" if listing.has_more else ""
        rprint(f"[green]✓ {len(listing.items):,} stories[/green]{more}")

    @app.command()
    def story(
        ctx: typer.Context,
        slug: Annotated[str, typer.Argument(help="Story slug")],
        language: Annotated[
            str, typer.Option("--language", "-l", help="Display language (en/tr)")
        ] = "en",
    ) -> None:
        """Show a single story."""
        state = _get_context(ctx)
        detail = state.build_units().story_detail(slug=slug)
        asyncio.run(detail.fetch())
        _exit_on_error(detail)
        data = detail.data or {}
        rprint(f"[bold]{_localised(data.get('title'), language)}[/bold]")
        description = _localised(data.get("shortDescription"), language)
        if description:
            rprint(description)
        content = data.get("content") or {}
        paragraphs = content.get(language) or []
        rprint(f"  Paragraphs: {len(paragraphs)}")
        average = data.get("averageRating")
        if average is not None:
            rprint(f"  Rating: {average:.1f} ({data.get('ratingCount', 0)} ratings)")

    @app.command()
    def ratings(
        ctx: typer.Context,
        story_id: Annotated[str, typer.Argument(help="Story id")],
        load_all: Annotated[
            bool, typer.Option("--all", help="Load every page of ratings")
        ] = False,
    ) -> None:
        """Show ratings for a story."""
        state = _get_context(ctx)
        unit = state.build_units().story_ratings(story_id)
        asyncio.run(_load_pages(unit, None if load_all else 1))
        _exit_on_error(unit)
        stats = unit.stats or {}
        average = stats.get("averageRating")
        total = stats.get("totalRatings", stats.get("totalCount", len(unit.items)))
        if average is not None:
            rprint(f"[bold]Average {average:.1f}[/bold] from {total} ratings")
        for rating in unit.items:
            author = (rating.get("user") or {}).get("name") or "anonymous"
            comment = rating.get("comment") or ""
            rprint(f"• {rating.get('rating')} [dim]{author}[/dim] {comment}".rstrip())
        if unit.has_more:
            rprint("[dim]More ratings available (use --all)[/dim]")

    @app.command()
    def bookmarks(ctx: typer.Context) -> None:
        """List bookmarks for the signed-in user (uses the saved session)."""
        state = _get_context(ctx)
        units = state.build_units()
        if not units.auth.token:
            rprint("[red]✗ You must be logged in to view bookmarks[/red]")
            raise typer.Exit(code=1)
        unit = units.bookmarks(units.auth.user_id or "me")
        asyncio.run(_load_pages(unit))
        _exit_on_error(unit)
        for bookmark in unit.items:
            story_summary = bookmark.get("story") or {}
            title = _localised(story_summary.get("title")) or bookmark.get("storyId", "")
            rprint(f"• {title}")
        rprint(f"[green]✓ {len(unit.items):,} bookmarks[/green]")

    return app
