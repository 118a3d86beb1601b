"""
Gator - RSS Feed Aggregator
===========================

Command line interface for managing users, feeds and follows, browsing
ingested posts and running the feed aggregator.

Usage:
    gator register alice            # Create a user and log in as them
    gator login alice               # Switch the current user
    gator addfeed "HN" https://...  # Add a feed and follow it
    gator agg 30s                   # Poll feeds every 30 seconds until Ctrl+C
    gator browse 5                  # Show the 5 newest posts you follow
"""

import asyncio
import functools
import signal
import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config.session import UserSession
from .config.settings import GatorSettings, get_settings
from .database.connection import DatabaseConnection, get_db_manager
from .database.models import User
from .ingestion.content_cleaner import summarize
from .ingestion.engine import IngestionEngine
from .ingestion.fetcher import FeedFetcher
from .ingestion.normalizer import FeedNormalizer
from .scheduler.feed_scheduler import FeedScheduler
from .storage import (
    FeedFollowRepository,
    FeedRepository,
    PostRepository,
    RepositoryGateway,
    UserRepository,
)
from .utils.exceptions import (
    ConfigurationError,
    ErrorCode,
    GatorError,
    ResourceNotFoundError,
)
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.validators import (
    NameValidator,
    URLValidator,
    format_interval,
    parse_poll_interval,
)

console = Console()
logger = get_logger_for_component("cli")


class AppContext:
    """Settings, database and repositories shared by the commands."""

    def __init__(self, settings: GatorSettings, db: Optional[DatabaseConnection] = None):
        self.settings = settings
        self._db = db

    @property
    def db(self) -> DatabaseConnection:
        if self._db is None:
            self._db = get_db_manager(
                self.settings.database.path, self.settings.database.pool_size
            )
        return self._db

    @property
    def users(self) -> UserRepository:
        return UserRepository(self.db)

    @property
    def feeds(self) -> FeedRepository:
        return FeedRepository(self.db)

    @property
    def follows(self) -> FeedFollowRepository:
        return FeedFollowRepository(self.db)

    @property
    def posts(self) -> PostRepository:
        return PostRepository(self.db)

    def load_session(self) -> UserSession:
        return UserSession.load(self.settings.session_file)

    def current_user(self) -> User:
        """Resolve the logged-in user.

        Raises:
            ConfigurationError: If nobody is logged in
            ResourceNotFoundError: If the session names an unknown user
        """
        name = self.load_session().current_user_name
        if not name:
            raise ConfigurationError(
                "No current user in session file",
                config_key="current_user_name",
                error_code=ErrorCode.CONFIG_MISSING,
                user_message="Not logged in. Run 'gator register NAME' or 'gator login NAME' first",
            )

        user = self.users.get_user_by_name(name)
        if user is None:
            raise ResourceNotFoundError(
                f"Current user {name!r} does not exist",
                resource="user",
                user_message=f"User {name!r} does not exist. Run 'gator register {name}'",
            )
        return user

    def build_engine(self) -> IngestionEngine:
        ingestion = self.settings.ingestion
        return IngestionEngine(
            gateway=RepositoryGateway.from_connection(self.db),
            fetcher=FeedFetcher.from_settings(self.settings),
            normalizer=FeedNormalizer(ingestion.date_layouts),
        )


def handle_errors(f):
    """Print GatorError failures for the user and exit with status 1."""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except GatorError as e:
            logger.debug(f"Command {f.__name__} failed: {e}", extra=e.to_dict())
            console.print(f"[bold red]❌ {escape(e.user_message)}[/bold red]")
            sys.exit(1)
    return wrapper


def logged_in(f):
    """Pass the current session user as the second argument."""
    @functools.wraps(f)
    def wrapper(app: AppContext, *args, **kwargs):
        return f(app, app.current_user(), *args, **kwargs)
    return wrapper


@click.group(invoke_without_command=True)
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """Gator - RSS feed aggregator."""
    if not isinstance(ctx.obj, AppContext):
        try:
            settings = get_settings()
        except ConfigurationError as e:
            console.print(f"[bold red]❌ {escape(e.user_message)}[/bold red]")
            sys.exit(1)

        configure_application_logging(
            log_level="DEBUG" if debug else settings.get_effective_log_level(),
            log_file=settings.logging.file_path,
            enable_console=settings.logging.console_logging,
            structured_logging=settings.logging.structured_logging,
            max_file_size_mb=settings.logging.max_file_size_mb,
            backup_count=settings.logging.backup_count,
        )
        ctx.obj = AppContext(settings)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument('name')
@click.pass_obj
@handle_errors
def register(app: AppContext, name: str):
    """Create a user and log in as them."""
    name = NameValidator.validate(name, field_name="user name")
    user = app.users.create_user(name)
    app.load_session().set_user(user.name, app.settings.session_file)

    console.print(f"[bold green]✅ User {escape(user.name)} created[/bold green]")
    console.print(f"  ID: {user.id}")
    console.print(f"  Created: {user.created_at:%Y-%m-%d %H:%M:%S}")


@cli.command()
@click.argument('name')
@click.pass_obj
@handle_errors
def login(app: AppContext, name: str):
    """Switch the current user."""
    user = app.users.get_user_by_name(name.strip())
    if user is None:
        raise ResourceNotFoundError(
            f"User {name!r} does not exist", resource="user",
        )

    app.load_session().set_user(user.name, app.settings.session_file)
    console.print(f"[bold green]✅ Logged in as {escape(user.name)}[/bold green]")


@cli.command()
@click.pass_obj
@handle_errors
def users(app: AppContext):
    """List registered users."""
    current = app.load_session().current_user_name
    registered = app.users.list_users()

    if not registered:
        console.print("[yellow]No users registered[/yellow]")
        return

    for user in registered:
        marker = " [bold](current)[/bold]" if user.name == current else ""
        console.print(f"* {escape(user.name)}{marker}")


@cli.command()
@click.confirmation_option(prompt='Delete all users, feeds, follows and posts?')
@click.pass_obj
@handle_errors
def reset(app: AppContext):
    """Delete every user together with their feeds, follows and posts."""
    deleted = app.users.reset()
    console.print(f"[bold green]✅ Database reset ({deleted} users deleted)[/bold green]")


@cli.command()
@click.argument('name')
@click.argument('url')
@click.pass_obj
@handle_errors
@logged_in
def addfeed(app: AppContext, user: User, name: str, url: str):
    """Add a feed and follow it."""
    name = NameValidator.validate(name, field_name="feed name")
    url = URLValidator.validate_feed_url(url)

    feed = app.feeds.create_feed(name, url, user.id)
    app.follows.create_follow(user.id, feed.id)

    table = Table(title="Feed Added")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("ID", feed.id)
    table.add_row("Name", escape(feed.name))
    table.add_row("URL", escape(feed.url))
    table.add_row("Added by", escape(user.name))
    console.print(table)


@cli.command()
@click.pass_obj
@handle_errors
def feeds(app: AppContext):
    """List all feeds."""
    all_feeds = app.feeds.list_feeds_with_owner()

    if not all_feeds:
        console.print("[yellow]No feeds added yet[/yellow]")
        return

    table = Table(title=f"Feeds ({len(all_feeds)})")
    table.add_column("Name", style="cyan")
    table.add_column("URL")
    table.add_column("Added by", style="green")
    table.add_column("Last fetched")

    for entry in all_feeds:
        last_fetched = entry.feed.last_fetched_at
        table.add_row(
            escape(entry.feed.name),
            escape(entry.feed.url),
            escape(entry.user_name),
            f"{last_fetched:%Y-%m-%d %H:%M}" if last_fetched else "never",
        )

    console.print(table)


def _feed_by_url(app: AppContext, url: str):
    feed = app.feeds.get_feed_by_url(url.strip())
    if feed is None:
        raise ResourceNotFoundError(
            f"No feed with URL {url}", resource="feed",
            error_code=ErrorCode.FEED_NOT_FOUND,
            user_message=f"No feed with URL {url}. Add it with 'gator addfeed'",
        )
    return feed


@cli.command()
@click.argument('url')
@click.pass_obj
@handle_errors
@logged_in
def follow(app: AppContext, user: User, url: str):
    """Follow an existing feed."""
    followed = app.follows.create_follow(user.id, _feed_by_url(app, url).id)
    console.print(
        f"[bold green]✅ {escape(followed.user_name)} now follows "
        f"{escape(followed.feed_name)}[/bold green]"
    )


@cli.command()
@click.pass_obj
@handle_errors
@logged_in
def following(app: AppContext, user: User):
    """List the feeds the current user follows."""
    follows = app.follows.list_follows_for_user(user.id)

    if not follows:
        console.print(f"[yellow]{escape(user.name)} does not follow any feeds[/yellow]")
        return

    console.print(f"[bold blue]Feeds followed by {escape(user.name)}:[/bold blue]")
    for followed in follows:
        console.print(f"* {escape(followed.feed_name)} ({escape(followed.feed_url)})")


@cli.command()
@click.argument('url')
@click.pass_obj
@handle_errors
@logged_in
def unfollow(app: AppContext, user: User, url: str):
    """Stop following a feed."""
    feed = _feed_by_url(app, url)
    if not app.follows.delete_follow(user.id, feed.id):
        raise ResourceNotFoundError(
            f"User {user.name} does not follow {feed.url}", resource="feed_follow",
            user_message=f"You do not follow {feed.name}",
        )

    console.print(f"[bold green]✅ Unfollowed {escape(feed.name)}[/bold green]")


@cli.command()
@click.argument('limit', type=click.IntRange(min=1), default=2)
@click.pass_obj
@handle_errors
@logged_in
def browse(app: AppContext, user: User, limit: int):
    """Show the newest posts from followed feeds."""
    views = app.posts.get_posts_for_user(user.id, limit=limit)

    if not views:
        console.print("[yellow]No posts yet. Run 'gator agg' to collect some[/yellow]")
        return

    for view in views:
        post = view.post
        published = f"{post.published_at:%a %b %d %Y}" if post.published_at else "No date"

        console.print(f"\n[bold]{escape(post.title or 'Untitled')}[/bold]")
        console.print(f"  📰 {escape(view.feed_name)}  📅 {published}")
        if post.description:
            console.print(f"  {escape(summarize(post.description))}")
        console.print(f"  🔗 {escape(post.url)}")


@cli.command()
@click.argument('interval', required=False)
@click.option('--cycles', type=click.IntRange(min=1), default=None,
              help='Stop after this many ingestion cycles')
@click.pass_obj
@handle_errors
def agg(app: AppContext, interval: Optional[str], cycles: Optional[int]):
    """Collect feeds every INTERVAL (e.g. 30s, 1m, 1h) until interrupted.

    Without INTERVAL the configured ingestion poll interval is used.
    """
    poll_interval = parse_poll_interval(interval or app.settings.ingestion.poll_interval)
    scheduler = FeedScheduler(app.build_engine(), poll_interval, max_cycles=cycles)

    console.print(f"[bold blue]📡 Collecting feeds every {format_interval(poll_interval)}[/bold blue]")
    completed = asyncio.run(_run_scheduler(scheduler))
    console.print(f"[bold green]✅ Stopped after {completed} cycles[/bold green]")


async def _run_scheduler(scheduler: FeedScheduler) -> int:
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, scheduler.stop)
        except (NotImplementedError, RuntimeError):
            logger.warning(f"Signal handler for {sig.name} unavailable on this platform")

    return await scheduler.run()


def main():
    cli()


if __name__ == '__main__':
    main()
