"""
Section Composer
================

Builds the system prompt out of independently budgeted sections.

Each knowledge source becomes a Section record {name, label, text,
token_limit}. A single renderer truncates every section to its own limit,
drops the empty ones and joins the rest under `# <label>` headings.

Turn order (highest priority first):
1. Your Role
2. Coaching Framework
3. Worldview Reference Library (+ attached files)
4. Client Context
5. Response Instructions  XOR  Exercise Instructions
6. Active Guided Exercise (+ exercise materials)
7. Three-Way Conversation protocol note
8. Areas to Explore (gap hint)
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from coach_context.exercise_context import ExerciseContext
from coach_context.file_parser import AttachmentText
from coach_context.schemas import ClientMethodology, DocumentSection, ReferenceDocument
from coach_context.token_budget import (
    TOKEN_ALLOCATIONS, estimate_tokens, remaining_budget, truncate_to_token_limit
)

SECTION_SEPARATOR = "\n\n---\n\n"
ATTACHMENT_JOINER = "\n\n"


@dataclass
class Section:
    """A labeled block of the system prompt with its own token limit."""
    name: str
    label: str
    text: str
    token_limit: int

    @property
    def heading(self) -> str:
        return f"# {self.label}\n"

    @property
    def body_limit(self) -> int:
        """
        Tokens left for the body once the heading and one separator are
        paid for, so a rendered block plus its separator never estimates
        above token_limit.
        """
        return remaining_budget(
            self.token_limit,
            estimate_tokens(self.heading),
            estimate_tokens(SECTION_SEPARATOR)
        )

    def render(self) -> str:
        """Heading + truncated body, or "" for a blank section."""
        if not self.text or not self.text.strip():
            return ""
        body = truncate_to_token_limit(self.text.strip(), self.body_limit)
        if not body.strip():
            return ""
        return self.heading + body


def render_sections(sections: Sequence[Section]) -> str:
    """Join the non-empty rendered sections in the given order."""
    blocks = []
    for section in sections:
        block = section.render()
        if block:
            logging.debug(f"Section {section.name}: {estimate_tokens(block)}/{section.token_limit} tokens")
            blocks.append(block)
        else:
            logging.debug(f"Section {section.name}: omitted (empty)")
    return SECTION_SEPARATOR.join(blocks)


# ==============================================================================
# BOILERPLATE
# ==============================================================================

def protocol_note(coach_name: str) -> str:
    return f"""This conversation includes three participants:
- Client: the person you are helping (their messages are prefixed with "[CLIENT]:")
- Coach ({coach_name}): the human coach who may occasionally join the conversation (their messages are prefixed with "[COACH]:")
- You: the AI thinking partner (your own earlier replies carry no prefix)

When the coach sends a message, treat it as guidance or direction and incorporate their input respectfully.
If the client mentions @{coach_name} or @coach, acknowledge that you'll note it for the coach's attention."""


EXERCISE_STEP_RULES = (
    "Stay with the current step until the client has genuinely engaged with it. "
    "Do not skip ahead or reveal later steps."
)


# ==============================================================================
# SECTION BUILDERS
# ==============================================================================

def join_titled(blocks: Iterable[tuple]) -> str:
    """'## title\\ncontent' blocks for every pair with non-blank content."""
    return "\n\n".join(
        f"## {title}\n{content}"
        for title, content in blocks
        if content and content.strip()
    )


def with_attachments(
    section: Section,
    body: str,
    attachments: Sequence[AttachmentText],
    heading: str,
    attachments_limit: int
) -> Section:
    """
    Fill a section with its body followed by an attachment sub-block.

    The sub-block is truncated once, inside attachments_limit. The body gets
    what is left of the section's body_limit, so render() never cuts again.
    """
    files = "\n\n".join(f"### {a.name}\n{a.text}" for a in attachments if a.text.strip())
    if not files:
        section.text = truncate_to_token_limit(body, section.body_limit)
        return section

    files = truncate_to_token_limit(f"## {heading}\n{files}", attachments_limit)
    body = truncate_to_token_limit(
        body,
        remaining_budget(section.body_limit, attachments_limit, estimate_tokens(ATTACHMENT_JOINER))
    )
    section.text = f"{body}{ATTACHMENT_JOINER}{files}" if body.strip() else files
    return section


def role_section(content: str) -> Section:
    return Section("role_prompt", "Your Role", content, TOKEN_ALLOCATIONS["role_prompt"])


def methodology_section(methodologies: Sequence[ClientMethodology]) -> Section:
    text = join_titled(
        (m.methodology.name, m.methodology.content) for m in methodologies if m.is_active
    )
    return Section("methodology_frame", "Coaching Framework", text, TOKEN_ALLOCATIONS["methodology_frame"])


def reference_library_section(
    documents: Sequence[ReferenceDocument],
    attachments: Sequence[AttachmentText] = ()
) -> Section:
    files_limit = TOKEN_ALLOCATIONS["file_attachments"]
    section = Section(
        "reference_library",
        "Worldview Reference Library",
        "",
        TOKEN_ALLOCATIONS["reference_library"] + files_limit
    )
    return with_attachments(
        section,
        join_titled((d.title, d.content) for d in documents),
        attachments,
        "Attached Files",
        files_limit
    )


def memory_section(sections: Sequence[DocumentSection], label: str = "Client Context") -> Section:
    text = join_titled((s.title, s.content) for s in sections)
    return Section("memory_context", label, text, TOKEN_ALLOCATIONS["memory_context"])


def exercise_state_text(exercise: ExerciseContext) -> str:
    lines = [exercise.title]
    if exercise.description:
        lines.append(exercise.description)
    lines.append("")
    lines.append(f"Step {exercise.step_order} of {exercise.total_steps}: {exercise.current_step_title}")
    lines.append(exercise.current_step_prompt)
    if exercise.current_step_guidance:
        lines.append("")
        lines.append(f"Guidance: {exercise.current_step_guidance}")
    lines.append("")
    lines.append(EXERCISE_STEP_RULES)
    return "\n".join(lines)


def exercise_section(exercise: ExerciseContext) -> Section:
    files_limit = TOKEN_ALLOCATIONS["file_attachments"]
    section = Section(
        "exercise_state",
        "Active Guided Exercise",
        "",
        TOKEN_ALLOCATIONS["exercise_state"] + files_limit
    )
    return with_attachments(
        section,
        exercise_state_text(exercise),
        exercise.attachments,
        "Exercise Materials",
        files_limit
    )


def instruction_sections(task_prompt: str, exercise: Optional[ExerciseContext]) -> List[Section]:
    """
    Default response instructions, or the exercise override in their place.
    The two never appear together.
    """
    if exercise is None:
        return [Section("task_prompt", "Response Instructions", task_prompt, TOKEN_ALLOCATIONS["task_prompt"])]
    return [
        Section(
            "exercise_instructions",
            "Exercise Instructions",
            exercise.override_instructions,
            TOKEN_ALLOCATIONS["exercise_instructions"]
        ),
        exercise_section(exercise),
    ]


def protocol_section(coach_name: str) -> Section:
    return Section("protocol_note", "Three-Way Conversation", protocol_note(coach_name), TOKEN_ALLOCATIONS["protocol_note"])


def gap_section(gap_info: Optional[str]) -> Section:
    return Section("gap_hint", "Areas to Explore", gap_info or "", TOKEN_ALLOCATIONS["gap_hint"])


def compose_turn_sections(
    role_prompt: str,
    task_prompt: str,
    methodologies: Sequence[ClientMethodology] = (),
    reference_documents: Sequence[ReferenceDocument] = (),
    reference_attachments: Sequence[AttachmentText] = (),
    document_sections: Sequence[DocumentSection] = (),
    exercise: Optional[ExerciseContext] = None,
    gap_info: Optional[str] = None,
    coach_name: str = "Gena"
) -> List[Section]:
    """Candidate sections for a live turn, in priority order."""
    return [
        role_section(role_prompt),
        methodology_section(methodologies),
        reference_library_section(reference_documents, reference_attachments),
        memory_section(document_sections),
        *instruction_sections(task_prompt, exercise),
        protocol_section(coach_name),
        gap_section(gap_info),
    ]
