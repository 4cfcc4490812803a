"""
Prompt Assembler
================

Orchestrates one assembly call out of storage reads, attachment parsing,
section composition and conversation windowing.

Three modes share the same section renderer:
1. Turn assembly         - full system prompt + windowed, labeled history
2. Consultation assembly - private coach <-> assistant discussion about a client
3. Opening assembly      - persona/framework/memory/instructions for a thread's first message

The assembler is an explicit service object. Construct it once with its
collaborators and hand it to request handlers; it keeps no per-call state.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from coach_context.config import Settings
from coach_context.conversation_window import (
    ConversationTurn, PromptMessage, Speaker,
    build_conversation_history, format_transcript, turn_from_stored
)
from coach_context.exercise_context import ExerciseContext, ExerciseContextResolver
from coach_context.file_parser import (
    AttachmentText, FileParser, LocalFileParser, extract_attachment_texts
)
from coach_context.schemas import DocumentSection, StoredMessage
from coach_context.section_gaps import get_section_gap_info
from coach_context.sections import (
    Section, compose_turn_sections, instruction_sections, memory_section,
    methodology_section, render_sections, role_section
)
from coach_context.storage import CoachStorage, SqlCoachStorage
from coach_context.token_budget import TOKEN_ALLOCATIONS, TOKEN_BUDGET, estimate_tokens

GapDetector = Callable[[Sequence[DocumentSection]], Optional[str]]

CONSULTATION_MESSAGE_LIMIT = 30
DEFAULT_MESSAGE_LIMIT = 50

CONSULTATION_GUIDELINES = """- Be concise but thorough
- Share specific observations from conversations
- Offer actionable insights
- Be honest about uncertainty
- Support the coach's thinking process"""


@dataclass
class PromptContext:
    """Per-turn inputs gathered by the request handler."""
    client_id: str
    current_message: str
    current_speaker: Speaker = Speaker.CLIENT
    message_already_stored: bool = False
    recent_messages: List[ConversationTurn] = field(default_factory=list)
    document_sections: List[DocumentSection] = field(default_factory=list)
    exercise_context: Optional[ExerciseContext] = None


@dataclass
class AssembledPrompt:
    system_prompt: str
    conversation_history: List[PromptMessage]
    estimated_tokens: int


@dataclass
class OpeningPrompt:
    system_prompt: str
    estimated_tokens: int


def consultation_framing(client_name: str, coach_name: str) -> str:
    return f"""You are now in a private consultation with the coach ({coach_name}) about their client, {client_name}. This conversation is completely separate from the client-facing interactions.

The coach is asking you questions about their client to:
- Better understand the client's patterns, themes, or struggles
- Get insights or observations you've noticed
- Discuss strategies for upcoming sessions
- Explore what might be helpful for the client

Be direct, insightful, and collaborative. You can share observations, patterns you've noticed, and thoughtful suggestions. This is a professional discussion between two people trying to help the client."""


def opening_task(first_name: str, exercise: Optional[ExerciseContext]) -> str:
    if exercise is None:
        return (
            f"Generate an opening message for this new conversation with {first_name}. "
            "Follow the Response Instructions above exactly for how to greet them. "
            "This is the very start of a new conversation thread - there is no prior context from the user yet. "
            "Ignore any placeholder input and simply deliver your opening greeting as instructed."
        )
    return (
        f"Generate an opening message that welcomes {first_name} to the guided exercise "
        f"\"{exercise.title}\". Follow the Exercise Instructions above, briefly introduce what "
        f"the exercise is for, and invite them into step 1: {exercise.current_step_title}. "
        "This is the very start of a new conversation thread - there is no prior context from the user yet."
    )


def first_name_of(name: Optional[str]) -> str:
    if not name or not name.strip():
        return "there"
    return name.split()[0]


def turns_from_stored(messages: Sequence[StoredMessage], limit: int) -> List[ConversationTurn]:
    """The last `limit` messages as turns, ordinals counted over the full list."""
    if limit <= 0:
        return []
    recent = messages[-limit:]
    offset = len(messages) - len(recent)
    return [turn_from_stored(m, offset + i) for i, m in enumerate(recent)]


class PromptAssembler:
    """
    Builds model-ready prompts for a client.

    Collaborators:
        storage: CoachStorage read adapter
        file_parser: FileParser for reference and exercise attachments
        gap_detector: living-document sections -> optional gap hint
        settings: Settings (coach name)
    """

    def __init__(
        self,
        storage: CoachStorage,
        file_parser: FileParser,
        gap_detector: GapDetector = get_section_gap_info,
        settings: Optional[Settings] = None
    ):
        self.storage = storage
        self.file_parser = file_parser
        self.gap_detector = gap_detector
        self.settings = settings or Settings()
        self.exercise_resolver = ExerciseContextResolver(storage, file_parser)

    # ==========================================================================
    # TURN ASSEMBLY
    # ==========================================================================

    async def assemble_prompt(self, context: PromptContext) -> AssembledPrompt:
        """
        Full system prompt plus windowed history for one inbound message.

        Storage and file-parser errors propagate, except that a single
        attachment failing to parse becomes a placeholder line.
        """
        role_prompt = await self.storage.get_or_create_role_prompt(context.client_id)
        task_prompt = await self.storage.get_or_create_task_prompt(context.client_id)
        methodologies = await self.storage.get_client_methodologies(context.client_id)
        reference_documents = await self.storage.get_all_reference_documents()
        reference_attachments = await self._reference_attachments(reference_documents)

        sections = compose_turn_sections(
            role_prompt=role_prompt.content,
            task_prompt=task_prompt.content,
            methodologies=methodologies,
            reference_documents=reference_documents,
            reference_attachments=reference_attachments,
            document_sections=context.document_sections,
            exercise=context.exercise_context,
            gap_info=self.gap_detector(context.document_sections),
            coach_name=self.settings.COACH_NAME
        )
        system_prompt = render_sections(sections)

        if not context.message_already_stored:
            current_tokens = estimate_tokens(context.current_message)
            if current_tokens > TOKEN_ALLOCATIONS["current_input"]:
                logging.warning(
                    f"Incoming message for client {context.client_id} is ~{current_tokens} tokens, "
                    f"over the {TOKEN_ALLOCATIONS['current_input']} token input allocation"
                )

        history = build_conversation_history(
            context.recent_messages,
            TOKEN_ALLOCATIONS["conversation_buffer"],
            current_message=context.current_message,
            current_speaker=context.current_speaker,
            message_already_stored=context.message_already_stored
        )

        estimated_tokens = estimate_tokens(system_prompt) + sum(
            estimate_tokens(m.content) for m in history
        )
        logging.info(
            f"Assembled prompt for client {context.client_id}: ~{estimated_tokens} tokens, "
            f"{len(history)} history messages"
        )
        if estimated_tokens > TOKEN_BUDGET:
            logging.warning(
                f"Prompt for client {context.client_id} is ~{estimated_tokens} tokens, "
                f"over the {TOKEN_BUDGET} token context budget"
            )

        return AssembledPrompt(
            system_prompt=system_prompt,
            conversation_history=history,
            estimated_tokens=estimated_tokens
        )

    async def _reference_attachments(self, documents) -> List[AttachmentText]:
        attachments = []
        for document in documents:
            attachments.extend(await self.storage.get_reference_document_attachments(document.id))
        return await extract_attachment_texts(self.file_parser, attachments)

    # ==========================================================================
    # CONSULTATION & OPENING
    # ==========================================================================

    async def assemble_consultation_prompt(self, client_id: str) -> str:
        """System prompt for a private coach <-> assistant discussion about a client."""
        client = await self.storage.get_client(client_id)
        client_name = client.name if client and client.name else "Unknown Client"

        document_sections = await self.get_client_context(client_id)
        recent = await self.get_recent_messages(client_id, CONSULTATION_MESSAGE_LIMIT)

        transcript = Section(
            "consultation_transcript",
            "Recent Client-AI Conversations",
            "",
            TOKEN_ALLOCATIONS["consultation_transcript"]
        )
        transcript.text = format_transcript(recent, transcript.body_limit)

        sections = [
            Section(
                "consultation_framing",
                "Private Coach Consultation",
                consultation_framing(client_name, self.settings.COACH_NAME),
                TOKEN_ALLOCATIONS["consultation_framing"]
            ),
            memory_section(document_sections, label="Client Profile (Living Document)"),
            transcript,
            Section(
                "consultation_guidance",
                "Response Guidelines",
                CONSULTATION_GUIDELINES,
                TOKEN_ALLOCATIONS["consultation_guidance"]
            ),
        ]
        system_prompt = render_sections(sections)
        logging.info(f"Assembled consultation prompt for client {client_id}: ~{estimate_tokens(system_prompt)} tokens")
        return system_prompt

    async def assemble_opening_prompt(
        self,
        client_id: str,
        exercise_id: Optional[str] = None
    ) -> OpeningPrompt:
        """
        System prompt for generating a thread's first message. No history.

        With an exercise_id the exercise's first step takes the place of the
        Response Instructions, as it does during a turn.
        """
        role_prompt = await self.storage.get_or_create_role_prompt(client_id)
        task_prompt = await self.storage.get_or_create_task_prompt(client_id)
        client = await self.storage.get_client(client_id)
        methodologies = await self.storage.get_client_methodologies(client_id)
        document_sections = await self.get_client_context(client_id)

        exercise = None
        if exercise_id:
            exercise = await self.exercise_resolver.resolve_for_exercise(exercise_id)
            if exercise is None:
                logging.warning(f"Exercise {exercise_id} not found, using default opening")

        sections = [
            role_section(role_prompt.content),
            methodology_section(methodologies),
            memory_section(document_sections),
            *instruction_sections(task_prompt.content, exercise),
            Section(
                "opening_task",
                "Opening Message Task",
                opening_task(first_name_of(client.name if client else None), exercise),
                TOKEN_ALLOCATIONS["opening_task"]
            ),
        ]
        system_prompt = render_sections(sections)
        return OpeningPrompt(system_prompt=system_prompt, estimated_tokens=estimate_tokens(system_prompt))

    # ==========================================================================
    # FETCH HELPERS
    # ==========================================================================

    async def get_client_context(self, client_id: str) -> List[DocumentSection]:
        """Living-document sections in display order, or [] without a document."""
        document = await self.storage.get_client_document(client_id)
        if document is None:
            return []
        return await self.storage.get_document_sections(document.id)

    async def get_recent_messages(self, client_id: str, limit: int = DEFAULT_MESSAGE_LIMIT) -> List[ConversationTurn]:
        messages = await self.storage.get_client_messages(client_id)
        return turns_from_stored(messages, limit)

    async def get_thread_messages(self, thread_id: str, limit: int = DEFAULT_MESSAGE_LIMIT) -> List[ConversationTurn]:
        messages = await self.storage.get_thread_messages(thread_id)
        return turns_from_stored(messages, limit)

    async def get_exercise_context(self, client_id: str, thread_id: str) -> Optional[ExerciseContext]:
        return await self.exercise_resolver.resolve(client_id, thread_id)


def create_prompt_assembler(settings: Optional[Settings] = None) -> PromptAssembler:
    """Wire a PromptAssembler to the configured database and upload directory."""
    settings = settings or Settings()
    engine = create_async_engine(settings.DATABASE_URL)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    return PromptAssembler(
        storage=SqlCoachStorage(session_factory),
        file_parser=LocalFileParser(settings.FILE_STORAGE_ROOT),
        settings=settings
    )
