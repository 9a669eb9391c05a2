"""CLI for browsing Claude Code sessions."""

import logging
import threading
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import Config
from .errors import SessionParseError
from .models import MessageKind, Session
from .parser import parse_session
from .projects import discover_projects, find_project, find_session
from .search import search_session_content
from .sections import paginate_session
from .tail import watch_session


def _format_time(session: Session) -> str:
    if session.start_time is None:
        return "-"
    return session.start_time.strftime("%Y-%m-%d %H:%M")


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to config file",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, config_path: Optional[Path], verbose: bool):
    """Browse and follow Claude Code session transcripts."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["config"] = Config.load(config_path)


def _projects_dir(cfg: Config, projects_dir: Optional[Path]) -> Path:
    return projects_dir or cfg.projects_dir


projects_dir_option = click.option(
    "--projects-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to Claude projects directory (overrides config)",
)


@main.command()
@projects_dir_option
@click.pass_context
def projects(ctx, projects_dir: Optional[Path]):
    """List projects, most recently active first."""
    cfg: Config = ctx.obj["config"]

    found = discover_projects(_projects_dir(cfg, projects_dir))
    if not found:
        click.echo("No projects found.")
        return

    for project in found:
        click.echo(f"{project.name:<40} {len(project.sessions):>4} sessions")


@main.command()
@click.argument("project")
@projects_dir_option
@click.pass_context
def sessions(ctx, project: str, projects_dir: Optional[Path]):
    """List the sessions of PROJECT."""
    cfg: Config = ctx.obj["config"]

    found = find_project(_projects_dir(cfg, projects_dir), project)
    if found is None:
        click.echo(f"No project found matching '{project}'")
        return

    for session in found.sessions:
        click.echo(
            f"{session.id[:8]}  {_format_time(session)}  "
            f"{session.stats.message_count:>5} msgs  {session.summary}"
        )


@main.command()
@click.argument("project")
@click.argument("session_id")
@projects_dir_option
@click.option("--all", "load_all", is_flag=True, help="Show every section")
@click.pass_context
def info(ctx, project: str, session_id: str, projects_dir: Optional[Path], load_all: bool):
    """Show statistics and sections of a session."""
    cfg: Config = ctx.obj["config"]

    found = find_session(_projects_dir(cfg, projects_dir), project, session_id)
    if found is None:
        click.echo(f"No session found matching '{session_id}'")
        return

    try:
        session = parse_session(found.file_path, found.project_name, cfg.max_line_size)
    except SessionParseError as e:
        raise click.ClickException(str(e))

    s = session.stats
    click.echo(f"Session: {session.id}")
    click.echo(f"Summary: {session.summary}")
    if session.slug:
        click.echo(f"Slug:    {session.slug}")
    if session.git_branch:
        click.echo(f"Branch:  {session.git_branch}")
    click.echo("=" * 40)
    click.echo(f"Messages:          {s.message_count:,}")
    click.echo(f"User prompts:      {s.user_prompts:,}")
    click.echo(f"Tool calls:        {s.tool_calls:,}")
    click.echo(f"Continuations:     {s.continuations:,}")
    click.echo(f"Agent sidechains:  {s.agent_sidechains:,}")
    click.echo(f"Input tokens:      {s.input_tokens:,}")
    click.echo(f"Output tokens:     {s.output_tokens:,}")
    click.echo(f"Cache read tokens: {s.cache_read_tokens:,}")
    click.echo(f"Duration:          {s.duration_seconds:.0f}s")
    if s.parse_errors:
        click.echo(f"Parse errors:      {s.parse_errors:,}")

    window = paginate_session(
        session,
        threshold=cfg.progressive_threshold,
        chunk_size=cfg.section_size,
        visible=cfg.visible_sections,
        load_all=load_all,
    )
    click.echo()
    click.echo(f"Sections: {window.total_sections}")
    if window.hidden_sections:
        click.echo(
            f"  {window.hidden_sections} earlier sections hidden "
            f"(~{window.hidden_messages} messages, use --all)"
        )
    click.echo(f"  {len(window.visible_messages)} messages visible")


@main.command()
@click.argument("query")
@projects_dir_option
@click.option("--limit", type=int, default=30, help="Maximum number of results")
@click.pass_context
def search(ctx, query: str, projects_dir: Optional[Path], limit: int):
    """Search session summaries and content for QUERY."""
    cfg: Config = ctx.obj["config"]
    query = query.lower()

    results = 0
    for project in discover_projects(_projects_dir(cfg, projects_dir)):
        for session in project.sessions:
            if results >= limit:
                return

            if query in session.summary.lower():
                click.echo(f"{project.name}/{session.id[:8]}  {session.summary}")
                results += 1
                continue

            try:
                full = parse_session(session.file_path, session.project_name, cfg.max_line_size)
            except SessionParseError as e:
                logging.getLogger("ccx").warning("Skipping %s: %s", session.id, e.reason)
                continue

            snippet, uuid = search_session_content(full, query)
            if snippet:
                click.echo(f"{project.name}/{session.id[:8]}#{uuid[:8]}  {snippet}")
                results += 1

    if not results:
        click.echo("No matches.")


@main.command()
@click.argument("project")
@click.argument("session_id")
@projects_dir_option
@click.pass_context
def watch(ctx, project: str, session_id: str, projects_dir: Optional[Path]):
    """Follow new messages of a session as they are written."""
    cfg: Config = ctx.obj["config"]

    found = find_session(_projects_dir(cfg, projects_dir), project, session_id)
    if found is None:
        click.echo(f"No session found matching '{session_id}'")
        return

    click.echo(f"Watching {found.file_path} (Ctrl-C to stop)")
    stop = threading.Event()
    try:
        for message in watch_session(
            found.file_path,
            stop,
            interval=cfg.poll_interval,
            max_chunk_size=cfg.max_chunk_size,
        ):
            text = next((b.text for b in message.content if b.type == "text"), "")
            tools = [b.tool_name for b in message.content if b.type == "tool_use"]
            if message.kind == MessageKind.TOOL_RESULT:
                text = "(tool result)"
            elif tools:
                text = f"{text} [{', '.join(tools)}]".strip()
            click.echo(f"[{message.kind.value}] {text.splitlines()[0] if text else ''}")
    except KeyboardInterrupt:
        stop.set()


@main.command()
@click.option(
    "--claude-home",
    type=click.Path(path_type=Path),
    default=None,
    help="Set Claude Code home directory",
)
@click.option(
    "--poll-interval",
    type=float,
    default=None,
    help="Set live tail poll interval in seconds",
)
@click.option(
    "--show",
    is_flag=True,
    help="Show current configuration",
)
@click.pass_context
def config(ctx, claude_home: Optional[Path], poll_interval: Optional[float], show: bool):
    """Configure ccx settings."""
    cfg: Config = ctx.obj["config"]

    if show or (claude_home is None and poll_interval is None):
        click.echo("Current configuration:")
        click.echo(f"  Claude home:   {cfg.claude_home}")
        click.echo(f"  Projects dir:  {cfg.projects_dir}")
        click.echo(f"  Poll interval: {cfg.poll_interval}s")
        return

    if claude_home:
        cfg.claude_home = claude_home
    if poll_interval is not None:
        cfg.poll_interval = poll_interval

    cfg.save(ctx.obj["config_path"])
    click.echo("Configuration saved.")
    click.echo(f"  Claude home:   {cfg.claude_home}")
    click.echo(f"  Poll interval: {cfg.poll_interval}s")


if __name__ == "__main__":
    main()
