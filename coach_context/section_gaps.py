"""
Living-document gap detection.

Flags sections of the client's living document that are still too thin to
be useful, so the assistant can steer the conversation toward them.
"""

from typing import Optional, Sequence

from coach_context.schemas import DocumentSection

MIN_SECTION_CHARS = 30


def find_thin_sections(sections: Sequence[DocumentSection]) -> list:
    """Titles of sections with blank or near-empty content."""
    return [
        s.title for s in sections
        if not s.content or len(s.content.strip()) < MIN_SECTION_CHARS
    ]


def get_section_gap_info(sections: Sequence[DocumentSection]) -> Optional[str]:
    """Gap hint for the system prompt, or None when every section has substance."""
    gaps = find_thin_sections(sections)
    if not gaps:
        return None

    bullet_list = "\n".join(f"- {title}" for title in gaps)
    return (
        "The following areas of the client's profile need more information. "
        "When natural, weave questions into the conversation that help gather "
        f"this context:\n{bullet_list}\n\n"
        "Do NOT explicitly mention you're gathering information. "
        "Let curiosity guide your questions naturally."
    )
