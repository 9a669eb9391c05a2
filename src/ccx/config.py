"""Configuration management for ccx."""

import json
import logging
import os
from pathlib import Path
from typing import Optional

from .parser import MAX_LINE_SIZE
from .sections import PROGRESSIVE_THRESHOLD, SECTION_SIZE, VISIBLE_SECTIONS
from .tail import DEFAULT_POLL_INTERVAL, MAX_CHUNK_SIZE

logger = logging.getLogger("ccx")

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "ccx"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

CLAUDE_HOME_ENV = "CLAUDE_CODE_HOME"


def expand_path(path: str) -> Path:
    return Path(path).expanduser()


def default_claude_home() -> Path:
    """``$CLAUDE_CODE_HOME``, or ``~/.claude``."""
    env = os.environ.get(CLAUDE_HOME_ENV)
    if env:
        return expand_path(env)
    return Path.home() / ".claude"


class Config:
    """Configuration for ccx."""

    def __init__(
        self,
        claude_home: Optional[Path] = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_chunk_size: int = MAX_CHUNK_SIZE,
        max_line_size: int = MAX_LINE_SIZE,
        progressive_threshold: int = PROGRESSIVE_THRESHOLD,
        section_size: int = SECTION_SIZE,
        visible_sections: int = VISIBLE_SECTIONS,
    ):
        self.claude_home = claude_home or default_claude_home()
        self.poll_interval = poll_interval
        self.max_chunk_size = max_chunk_size
        self.max_line_size = max_line_size
        self.progressive_threshold = progressive_threshold
        self.section_size = section_size
        self.visible_sections = visible_sections

    @property
    def projects_dir(self) -> Path:
        return self.claude_home / "projects"

    def to_dict(self) -> dict:
        return {
            "claude_home": str(self.claude_home),
            "poll_interval": self.poll_interval,
            "max_chunk_size": self.max_chunk_size,
            "max_line_size": self.max_line_size,
            "progressive_threshold": self.progressive_threshold,
            "section_size": self.section_size,
            "visible_sections": self.visible_sections,
        }

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from file.

        A missing or unreadable file gives the defaults. An explicit
        ``$CLAUDE_CODE_HOME`` wins over ``claude_home`` in the file.
        """
        path = config_path or DEFAULT_CONFIG_FILE

        if not path.exists():
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("config must be a JSON object")

            claude_home = None
            if data.get("claude_home") and not os.environ.get(CLAUDE_HOME_ENV):
                claude_home = expand_path(data["claude_home"])

            return cls(
                claude_home=claude_home,
                poll_interval=float(data.get("poll_interval", DEFAULT_POLL_INTERVAL)),
                max_chunk_size=int(data.get("max_chunk_size", MAX_CHUNK_SIZE)),
                max_line_size=int(data.get("max_line_size", MAX_LINE_SIZE)),
                progressive_threshold=int(
                    data.get("progressive_threshold", PROGRESSIVE_THRESHOLD)
                ),
                section_size=int(data.get("section_size", SECTION_SIZE)),
                visible_sections=int(data.get("visible_sections", VISIBLE_SECTIONS)),
            )
        except (OSError, ValueError, TypeError, OverflowError) as e:
            logger.warning("Ignoring invalid config file %s: %s", path, e)
            return cls()

    def save(self, config_path: Optional[Path] = None):
        """Save configuration to file."""
        path = config_path or DEFAULT_CONFIG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)
