"""Split long transcripts into sections for progressive display."""

from dataclasses import dataclass, field

from .models import Message, MessageKind, Session

PROGRESSIVE_THRESHOLD = 500  # Messages above this trigger progressive loading
SECTION_SIZE = 50  # Target messages per size-based section
VISIBLE_SECTIONS = 3  # Sections shown initially


def split_by_compact_boundaries(messages: list[Message]) -> list[list[Message]]:
    """Start a new section at every compact summary (which opens it)."""
    sections = []
    current: list[Message] = []

    for message in messages:
        if message.kind == MessageKind.COMPACT_SUMMARY:
            if current:
                sections.append(current)
            current = [message]
        else:
            current.append(message)

    if current:
        sections.append(current)
    return sections


def split_by_user_prompts(
    messages: list[Message], chunk_size: int = SECTION_SIZE
) -> list[list[Message]]:
    """Split into chunks of about ``chunk_size`` messages.

    A new chunk only starts at a user prompt, so a turn is never split.
    """
    sections = []
    current: list[Message] = []

    for message in messages:
        if message.kind == MessageKind.USER_PROMPT and len(current) >= chunk_size:
            sections.append(current)
            current = []
        current.append(message)

    if current:
        sections.append(current)
    return sections


def split_sections(
    messages: list[Message],
    threshold: int = PROGRESSIVE_THRESHOLD,
    chunk_size: int = SECTION_SIZE,
) -> list[list[Message]]:
    """Split on compactions, falling back to size for long uncompacted logs."""
    sections = split_by_compact_boundaries(messages)
    if len(sections) <= 1 and len(messages) > threshold:
        sections = split_by_user_prompts(messages, chunk_size)
    return sections


@dataclass
class SectionWindow:
    """The last few sections of a transcript plus what was left out."""

    sections: list[list[Message]] = field(default_factory=list)
    start_section: int = 0
    hidden_messages: int = 0

    @property
    def hidden_sections(self) -> int:
        return self.start_section

    @property
    def total_sections(self) -> int:
        return len(self.sections)

    @property
    def visible_sections(self) -> list[list[Message]]:
        return self.sections[self.start_section :]

    @property
    def visible_messages(self) -> list[Message]:
        return [m for section in self.visible_sections for m in section]

    @property
    def hidden(self) -> list[list[Message]]:
        """Sections left out, for loading later."""
        return self.sections[: self.start_section]


def visible_window(
    sections: list[list[Message]], visible: int = VISIBLE_SECTIONS
) -> SectionWindow:
    """Expose only the last ``visible`` sections."""
    start = max(len(sections) - visible, 0)
    hidden_messages = sum(len(section) for section in sections[:start])
    return SectionWindow(
        sections=sections, start_section=start, hidden_messages=hidden_messages
    )


def paginate_session(
    session: Session,
    threshold: int = PROGRESSIVE_THRESHOLD,
    chunk_size: int = SECTION_SIZE,
    visible: int = VISIBLE_SECTIONS,
    load_all: bool = False,
) -> SectionWindow:
    """Window over a parsed session's messages.

    Sessions at or below ``threshold`` messages, or ``load_all``, come back
    as a single fully visible section.
    """
    messages = session.messages
    if load_all or len(messages) <= threshold:
        return SectionWindow(sections=[messages] if messages else [])
    return visible_window(split_sections(messages, threshold, chunk_size), visible)
