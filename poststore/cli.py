"""CLI commands for PostStore."""

import logging
from pathlib import Path
from typing import Optional

import click

from .audit import audit_site
from .controllers import (
    check_posts,
    ensure_no_draft_leaks,
    get_post,
    index_posts,
    list_posts,
)
from .db import Database
from .errors import DraftLeakError, PostStoreError
from .frontmatter import fenced_code_blocks
from .store import DEFAULT_CONTENT_DIR, PostStore


@click.group()
@click.version_option(package_name="poststore")
@click.option(
    "--content-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=DEFAULT_CONTENT_DIR,
    show_default=True,
    envvar="POSTSTORE_CONTENT_DIR",
    help="Directory holding the Markdown posts",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, content_dir: Path, verbose: bool):
    """PostStore - Read and check a Markdown blog tree."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = PostStore(content_dir)


def _fail(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"))
    raise SystemExit(1)


@cli.command("list")
@click.option("--drafts", "-d", is_flag=True, help="Include draft posts")
@click.pass_obj
def list_command(store: PostStore, drafts: bool):
    """List posts.

    By default, shows only published posts, newest first.
    """
    try:
        posts = list_posts(store, include_drafts=drafts)
    except PostStoreError as e:
        _fail(str(e))

    if not posts:
        click.echo(f"No posts found in {store.root}.")
        return

    label = "All posts" if drafts else "Published posts"
    click.echo(click.style(f"{label} ({len(posts)}):", fg="cyan", bold=True))
    click.echo()

    for post in posts:
        _print_post_summary(post)


def _print_post_summary(post):
    """Print a single post summary."""
    status = click.style("[draft]", fg="yellow") if post.draft else ""
    slug = click.style(f"[{post.slug}]", fg="cyan")

    click.echo(f"  {slug} {post.title} {status}".rstrip())
    click.echo(f"       Date: {post.date.isoformat()}")
    click.echo(f"       Authors: {', '.join(post.authors)}")
    click.echo()


@cli.command()
@click.argument("slug")
@click.pass_obj
def show(store: PostStore, slug: str):
    """Show a post's metadata and body."""
    try:
        post = get_post(store, slug)
    except PostStoreError as e:
        _fail(str(e))

    click.echo(click.style(post.title, fg="white", bold=True))
    click.echo(f"Slug: {post.slug}")
    click.echo(f"Path: {post.path}")
    click.echo(f"Date: {post.date.isoformat()}")
    click.echo(f"Authors: {', '.join(post.authors)}")
    click.echo(f"Draft: {'yes' if post.draft else 'no'}")

    languages = sorted({block.language for block in fenced_code_blocks(post.body) if block.language})
    if languages:
        click.echo(f"Code: {', '.join(languages)}")

    click.echo()
    click.echo(post.body)


@cli.command()
@click.pass_obj
def check(store: PostStore):
    """Check every post's front matter and identifier."""
    report = check_posts(store)

    for error in report.malformed:
        click.echo(click.style(f"  Malformed: {error}", fg="red"))
    for slug, error in report.unreadable.items():
        click.echo(click.style(f"  Unreadable: {slug}: {error}", fg="red"))
    for slug, paths in report.collisions.items():
        joined = ", ".join(str(p) for p in paths)
        click.echo(click.style(f"  Duplicate slug '{slug}': {joined}", fg="red"))
    for slug in report.unclosed_fences:
        click.echo(click.style(f"  Unclosed code fence in '{slug}'", fg="red"))
    for title, slugs in report.duplicate_titles.items():
        click.echo(click.style(f"  Duplicate title '{title}': {', '.join(slugs)}", fg="yellow"))

    if not report.ok:
        click.echo(click.style(f"Checked {report.checked} post(s): problems found.", fg="red", bold=True))
        raise SystemExit(1)

    click.echo(click.style(f"Checked {report.checked} post(s): all good.", fg="green"))


@cli.command()
@click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="POSTSTORE_DB",
    help="SQLite index file (defaults to ~/.poststore/index.db)",
)
@click.pass_obj
def index(store: PostStore, db_path: Optional[Path]):
    """Write the posts into the SQLite index."""
    db = Database(db_path)
    try:
        result = index_posts(store, db)
    except (PostStoreError, OSError) as e:
        _fail(str(e))
    finally:
        db.close()

    click.echo(
        click.style(
            f"Indexed posts: {result.added} added, {result.updated} updated, "
            f"{result.removed} removed, {result.unchanged} unchanged",
            fg="green",
        )
    )


@cli.command()
@click.argument("site_url")
@click.option("--feed-url", help="RSS/Atom feed URL (auto-discovered if not provided)")
@click.option("--selector", help="CSS selector for scraping the index page as a fallback")
@click.pass_obj
def audit(store: PostStore, site_url: str, feed_url: Optional[str], selector: Optional[str]):
    """Check that no draft post is listed on the published site."""
    try:
        result = audit_site(store, site_url, feed_url=feed_url, selector=selector)
    except PostStoreError as e:
        _fail(str(e))

    if result.error:
        _fail(result.error)
    if result.source == "none":
        _fail("No feed found and no selector configured")

    source_label = "RSS" if result.source == "rss" else "HTML"
    click.echo(f"Source: {source_label} | Listed: {result.entries_found}")

    try:
        ensure_no_draft_leaks(result.leaks)
    except DraftLeakError as e:
        for leak in e.leaks:
            click.echo(click.style(f"  Draft '{leak.slug}' listed at {leak.url} (by {leak.matched_by})", fg="red"))
        _fail(str(e))

    click.echo(click.style("No drafts in the public listing.", fg="green"))


if __name__ == "__main__":
    cli()
