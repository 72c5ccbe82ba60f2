"""CLI command implementations"""

import threading
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import Session

from sitepub.config import Settings, configure_logging, load_config
from sitepub.core.errors import DuplicateError, NotFoundError, PublishError, PublishNotConfiguredError
from sitepub.core.htmlgen import HTMLGenerator
from sitepub.core.models import Setting, Site
from sitepub.core.pipeline import run_export_meta, run_generate, run_import, run_publish
from sitepub.core.publisher import GitPublisher
from sitepub.core.scheduler import Scheduler
from sitepub.core.workspace import Workspace
from sitepub.crud.database import init_db, make_engine
from sitepub.crud.repo import Service
from sitepub.crud.sql_repo import SQLProfileService, SQLService


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling, then set up logging."""
    try:
        settings = load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))
    configure_logging(settings.log_level)
    return settings


def _engine(settings: Settings):
    engine = make_engine(settings.db_url)
    init_db(engine)
    return engine


def _site(service: Service, slug: str) -> Site:
    try:
        return service.get_site_by_slug(slug)
    except NotFoundError:
        _fail(f"Site not found: {slug}")


def _echo_errors(errors: list[str]) -> None:
    for err in errors:
        typer.echo(f"  error: {err}", err=True)


WorkspaceOpt = Annotated[Optional[str], typer.Option("--workspace-dir", help="Base directory for site output")]


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate all tables")] = False,
    ):
    """Initialize database schema. Use --reset to clear existing data."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    init_db(engine, reset=reset)
    if reset:
        typer.echo("Existing data cleared.")
    typer.echo(f"Database initialized at: {settings.db_url}")


def site_add_cmd(
    name: Annotated[str, typer.Argument(help="Display name")],
    slug: Annotated[str, typer.Argument(help="URL-safe site identifier")],
    mode: Annotated[str, typer.Option("--mode", help="blog or structured")] = "blog",
    workspace: WorkspaceOpt = None,
    ):
    """Create a site and its workspace directories."""
    settings = _settings(overrides={"workspace_dir": workspace})
    with Session(_engine(settings)) as session:
        try:
            site = SQLService(session).create_site(Site(name=name, slug=slug, mode=mode))
        except (DuplicateError, ValueError) as e:
            _fail("Could not create site", e)
    try:
        Workspace(settings.workspace_dir).create_site_directories(site.slug)
    except OSError as e:
        _fail("Could not create site directories", e)
    typer.echo(f"Site {site.slug} created ({site.short_id})")


def setting_cmd(
    slug: Annotated[str, typer.Argument(help="Site slug")],
    ref_key: Annotated[str, typer.Argument(help="Setting key, e.g. ssg.publish.repo.url")],
    value: Annotated[str, typer.Argument(help="Setting value")],
    ):
    """Create or update a site setting."""
    settings = _settings()
    with Session(_engine(settings)) as session:
        service = SQLService(session)
        site = _site(service, slug)
        try:
            setting = service.get_setting_by_ref_key(site.id, ref_key)
            setting.value = value
            service.update_setting(setting)
            typer.echo(f"Updated {ref_key}")
        except NotFoundError:
            service.create_setting(Setting(site_id=site.id, name=ref_key, ref_key=ref_key, value=value))
            typer.echo(f"Created {ref_key}")


def generate_cmd(
    slug: Annotated[str, typer.Argument(help="Site slug")],
    workspace: WorkspaceOpt = None,
    ):
    """Regenerate markdown and HTML for a site."""
    settings = _settings(overrides={"workspace_dir": workspace})
    with Session(_engine(settings)) as session:
        service = SQLService(session)
        site = _site(service, slug)
        try:
            markdown, html = run_generate(service, Workspace(settings.workspace_dir), site)
        except OSError as e:
            _fail("Generation failed", e)
    _echo_errors(markdown.errors + html.errors)
    typer.echo(f"Markdown: {markdown.files_generated}/{markdown.total_content} file(s)")
    typer.echo(f"HTML: {html.pages_generated} page(s), {html.index_pages} index(es), {html.author_pages} author page(s)")


def export_meta_cmd(
    slug: Annotated[str, typer.Argument(help="Site slug")],
    workspace: WorkspaceOpt = None,
    ):
    """Write the site's backup bundle into its meta/ directory."""
    settings = _settings(overrides={"workspace_dir": workspace})
    ws = Workspace(settings.workspace_dir)
    with Session(_engine(settings)) as session:
        service = SQLService(session)
        site = _site(service, slug)
        try:
            result = run_export_meta(service, ws, site)
        except OSError as e:
            _fail("Export failed", e)
    _echo_errors(result.errors)
    typer.echo(f"Exported meta to {ws.meta_path(site.slug)}/")


def import_cmd(
    slug: Annotated[str, typer.Argument(help="Site slug")],
    root: Annotated[Optional[str], typer.Argument(help="Import root (defaults to <import_dir>/<slug>)")] = None,
    workspace: WorkspaceOpt = None,
    ):
    """Hydrate a site from an import root: meta, images, content, image links, profiles."""
    settings = _settings(overrides={"workspace_dir": workspace})
    import_root = Path(root) if root else Path(settings.import_dir) / slug
    with Session(_engine(settings)) as session:
        service = SQLService(session)
        site = _site(service, slug)
        try:
            result = run_import(
                service, SQLProfileService(session), Workspace(settings.workspace_dir), site, import_root,
            )
        except (FileNotFoundError, ValueError) as e:
            _fail("Import failed", e)
    _echo_errors(result.errors)
    typer.echo(
        f"Import complete - "
        f"{result.contents_created} created, "
        f"{result.contents_skipped} skipped, "
        f"{result.images_created} image(s), "
        f"{result.links_created} link(s)"
    )


def publish_cmd(
    slug: Annotated[str, typer.Argument(help="Site slug")],
    workspace: WorkspaceOpt = None,
    ):
    """Generate the site and publish it through git now."""
    settings = _settings(overrides={"workspace_dir": workspace})
    ws = Workspace(settings.workspace_dir)
    with Session(_engine(settings)) as session:
        service = SQLService(session)
        site = _site(service, slug)
        try:
            result = run_publish(service, ws, GitPublisher(ws), site)
        except PublishNotConfiguredError as e:
            _fail("Set ssg.publish.repo.url first", e)
        except PublishError as e:
            _fail("Publish failed", e)
    if result.no_changes:
        typer.echo("No changes to publish.")
    else:
        typer.echo(f"Published: {result.commit_url}")


def schedule_cmd(
    poll: Annotated[Optional[float], typer.Option("--poll-seconds", help="Stop check granularity")] = None,
    workspace: WorkspaceOpt = None,
    ):
    """Run the publish scheduler in the foreground until interrupted."""
    settings = _settings(overrides={"scheduler_poll_seconds": poll, "workspace_dir": workspace})
    ws = Workspace(settings.workspace_dir)
    with Session(_engine(settings)) as session:
        scheduler = Scheduler(
            SQLService(session), HTMLGenerator(ws), GitPublisher(ws), poll_seconds=settings.scheduler_poll_seconds,
        )
        if not scheduler.start():
            typer.echo("No site has scheduled publishing enabled.")
            raise typer.Exit(1)
        typer.echo("Scheduler running. Press Ctrl+C to stop.")
        idle = threading.Event()
        try:
            while scheduler.running:
                idle.wait(settings.scheduler_poll_seconds)
        except KeyboardInterrupt:
            typer.echo("Stopping scheduler...")
        finally:
            scheduler.stop()
