"""Discover projects and sessions under the Claude projects directory.

Claude Code stores one directory per project, named after the project's
path with ``/`` replaced by ``-`` (e.g. ``-Users-eric-src-myapp``). Each
directory holds one ``<session-id>.jsonl`` file per session.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .models import Project, Session
from .parser import NO_SUMMARY, quick_parse_session

logger = logging.getLogger("ccx")

# Leading path parts that are followed by a username
HOME_ROOTS = {"users", "home", "mnt"}

# Common intermediate directories to skip
SKIP_DIRS = {"wrk", "src", "work", "dev", "code", "projects", "repos"}

HOSTS = {"github", "gitlab", "bitbucket"}
HOST_TLDS = {"com", "org", "io"}

MAX_NAME_PARTS = 4


def decode_path(encoded: str) -> str:
    """``-Users-eric-app`` -> ``/Users/eric/app`` (lossy for dashed names)."""
    if not encoded:
        return ""
    decoded = encoded.replace("-", "/")
    if decoded.startswith("/"):
        return decoded
    return "/" + decoded


def encode_path(path: str) -> str:
    """``/Users/eric/app`` -> ``Users-eric-app``."""
    if not path:
        return ""
    encoded = path.replace("/", "-")
    if encoded.startswith("-"):
        return encoded[1:]
    return encoded


def get_project_display_name(encoded: str) -> str:
    """Extract a readable project name from a project directory name.

    Examples:
    - -Users-eric-wrk-src-github-com-org-repo -> org-repo
    - -home-user-projects-myproject -> myproject
    """
    parts = [p for p in encoded.split("-") if p]
    if not parts:
        return encoded

    start = 0
    # Skip Users/eric or home/user
    if len(parts) > 1 and parts[0].lower() in HOME_ROOTS:
        start = 2

    while start < len(parts) and parts[start].lower() in SKIP_DIRS:
        start += 1

    # Skip github/com pattern
    if (
        start + 1 < len(parts)
        and parts[start].lower() in HOSTS
        and parts[start + 1].lower() in HOST_TLDS
    ):
        start += 2

    if start >= len(parts):
        return parts[-1]

    return "-".join(parts[start:][-MAX_NAME_PARTS:])


def is_listable(session: Session) -> bool:
    """Sessions worth listing: have a summary and aren't cache warmups."""
    if not session.summary or session.summary == NO_SUMMARY:
        return False
    return session.summary.strip().lower() != "warmup"


def _sort_key(session: Session) -> datetime:
    return session.end_time or datetime.min.replace(tzinfo=timezone.utc)


def discover_sessions(project_path: Path) -> list[Session]:
    """Quick-parse the sessions in one project directory, newest first.

    Sub-agent transcripts (``agent-*.jsonl``), empty sessions and warmup
    sessions are skipped.
    """
    sessions = []
    for jsonl_file in sorted(project_path.glob("*.jsonl")):
        if not jsonl_file.is_file() or jsonl_file.name.startswith("agent-"):
            continue
        session = quick_parse_session(jsonl_file, project_name=project_path.name)
        if is_listable(session):
            sessions.append(session)

    sessions.sort(key=_sort_key, reverse=True)
    return sessions


def discover_projects(projects_dir: Path) -> list[Project]:
    """Discover all projects with at least one session, newest first."""
    projects_dir = Path(projects_dir)
    if not projects_dir.exists():
        return []

    projects = []
    for project_dir in projects_dir.iterdir():
        if not project_dir.is_dir():
            continue

        try:
            sessions = discover_sessions(project_dir)
        except OSError as e:
            logger.warning("Skipping project %s: %s", project_dir.name, e)
            continue
        if not sessions:
            continue

        last_modified = sessions[0].end_time
        if last_modified is None:
            last_modified = datetime.fromtimestamp(
                project_dir.stat().st_mtime, tz=timezone.utc
            )

        projects.append(
            Project(
                name=get_project_display_name(project_dir.name),
                encoded_name=project_dir.name,
                path=str(project_dir),
                sessions=sessions,
                last_modified=last_modified,
            )
        )

    projects.sort(key=lambda p: p.last_modified, reverse=True)
    return projects


def find_project(projects_dir: Path, name: str) -> Optional[Project]:
    """Find a project by display name, encoded name or name substring."""
    name = name.lower()
    for project in discover_projects(projects_dir):
        if project.name.lower() == name or project.encoded_name.lower() == name:
            return project
        if name in project.name.lower():
            return project
    return None


def match_session(session: Session, query: str) -> bool:
    """Exact id or id prefix match."""
    return session.id.startswith(query)


def find_session(
    projects_dir: Path, project_name: Optional[str], session_id: str
) -> Optional[Session]:
    """Find a session by id (or prefix), optionally within one project."""
    if project_name:
        project = find_project(projects_dir, project_name)
        if project is None:
            return None
        projects = [project]
    else:
        projects = discover_projects(projects_dir)

    for project in projects:
        for session in project.sessions:
            if match_session(session, session_id):
                return session
    return None
