"""
Coach Context Storage Interface
===============================

Narrow, read-only view of the coaching platform's data used by prompt
assembly. `CoachStorage` is the protocol the assembler depends on;
`SqlCoachStorage` implements it over the SQLAlchemy tables in
`coach_context.models`.
"""

import logging
from typing import Protocol, Optional, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import joinedload

from coach_context.models import (
    ClientRow, RolePromptRow, TaskPromptRow, ClientMethodologyRow,
    ReferenceDocumentRow, FileAttachmentRow, GuidedExerciseRow,
    ExerciseStepRow, ExerciseSessionRow, ClientDocumentRow,
    DocumentSectionRow, MessageRow, DEFAULT_ROLE_PROMPT, DEFAULT_TASK_PROMPT
)
from coach_context.schemas import (
    Client, RolePrompt, TaskPrompt, ClientMethodology, ReferenceDocument,
    FileAttachment, GuidedExercise, ExerciseStep, ExerciseSession,
    ClientDocument, DocumentSection, StoredMessage
)


class CoachStorage(Protocol):
    """
    Protocol for storage collaborators.
    Every method is a coroutine; failures propagate to the caller.
    """

    async def get_client(self, client_id: str) -> Optional[Client]: ...

    async def get_or_create_role_prompt(self, client_id: str) -> RolePrompt: ...

    async def get_or_create_task_prompt(self, client_id: str) -> TaskPrompt: ...

    async def get_client_methodologies(self, client_id: str) -> List[ClientMethodology]: ...

    async def get_all_reference_documents(self) -> List[ReferenceDocument]: ...

    async def get_reference_document_attachments(self, document_id: str) -> List[FileAttachment]: ...

    async def get_client_exercise_sessions(self, client_id: str) -> List[ExerciseSession]: ...

    async def get_guided_exercise(self, exercise_id: str) -> Optional[GuidedExercise]: ...

    async def get_exercise_steps(self, exercise_id: str) -> List[ExerciseStep]: ...

    async def get_exercise_attachments(self, exercise_id: str) -> List[FileAttachment]: ...

    async def get_client_document(self, client_id: str) -> Optional[ClientDocument]: ...

    async def get_document_sections(self, document_id: str) -> List[DocumentSection]: ...

    async def get_client_messages(self, client_id: str) -> List[StoredMessage]: ...

    async def get_thread_messages(self, thread_id: str) -> List[StoredMessage]: ...


class SqlCoachStorage:
    """
    CoachStorage over an async SQLAlchemy session factory.

    Each call opens its own short-lived session, so one instance can be
    shared by concurrent requests.
    """

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    # ==========================================================================
    # CLIENT & PROMPTS
    # ==========================================================================

    async def get_client(self, client_id: str) -> Optional[Client]:
        async with self.session_factory() as session:
            row = await session.get(ClientRow, client_id)
            return Client.model_validate(row) if row else None

    async def get_or_create_role_prompt(self, client_id: str) -> RolePrompt:
        return await self._get_or_create_prompt(RolePromptRow, RolePrompt, client_id, DEFAULT_ROLE_PROMPT)

    async def get_or_create_task_prompt(self, client_id: str) -> TaskPrompt:
        return await self._get_or_create_prompt(TaskPromptRow, TaskPrompt, client_id, DEFAULT_TASK_PROMPT)

    async def get_client_methodologies(self, client_id: str) -> List[ClientMethodology]:
        stmt = (
            select(ClientMethodologyRow)
            .options(joinedload(ClientMethodologyRow.methodology))
            .where(ClientMethodologyRow.client_id == client_id)
            .order_by(ClientMethodologyRow.created_at)
        )
        async with self.session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [ClientMethodology.model_validate(r) for r in rows]

    # ==========================================================================
    # REFERENCE LIBRARY & ATTACHMENTS
    # ==========================================================================

    async def get_all_reference_documents(self) -> List[ReferenceDocument]:
        stmt = select(ReferenceDocumentRow).order_by(ReferenceDocumentRow.created_at.desc())
        return await self._all(stmt, ReferenceDocument)

    async def get_reference_document_attachments(self, document_id: str) -> List[FileAttachment]:
        stmt = (
            select(FileAttachmentRow)
            .where(FileAttachmentRow.reference_document_id == document_id)
            .order_by(FileAttachmentRow.created_at)
        )
        return await self._all(stmt, FileAttachment)

    async def get_exercise_attachments(self, exercise_id: str) -> List[FileAttachment]:
        stmt = (
            select(FileAttachmentRow)
            .where(FileAttachmentRow.exercise_id == exercise_id)
            .order_by(FileAttachmentRow.created_at)
        )
        return await self._all(stmt, FileAttachment)

    # ==========================================================================
    # GUIDED EXERCISES
    # ==========================================================================

    async def get_client_exercise_sessions(self, client_id: str) -> List[ExerciseSession]:
        stmt = (
            select(ExerciseSessionRow)
            .where(ExerciseSessionRow.client_id == client_id)
            .order_by(ExerciseSessionRow.started_at.desc())
        )
        return await self._all(stmt, ExerciseSession)

    async def get_guided_exercise(self, exercise_id: str) -> Optional[GuidedExercise]:
        async with self.session_factory() as session:
            row = await session.get(GuidedExerciseRow, exercise_id)
            return GuidedExercise.model_validate(row) if row else None

    async def get_exercise_steps(self, exercise_id: str) -> List[ExerciseStep]:
        stmt = (
            select(ExerciseStepRow)
            .where(ExerciseStepRow.exercise_id == exercise_id)
            .order_by(ExerciseStepRow.step_order)
        )
        return await self._all(stmt, ExerciseStep)

    # ==========================================================================
    # LIVING DOCUMENT & MESSAGES
    # ==========================================================================

    async def get_client_document(self, client_id: str) -> Optional[ClientDocument]:
        async with self.session_factory() as session:
            row = await self._first(session, select(ClientDocumentRow).where(ClientDocumentRow.client_id == client_id))
            return ClientDocument.model_validate(row) if row else None

    async def get_document_sections(self, document_id: str) -> List[DocumentSection]:
        stmt = (
            select(DocumentSectionRow)
            .where(DocumentSectionRow.document_id == document_id)
            .order_by(DocumentSectionRow.sort_order)
        )
        return await self._all(stmt, DocumentSection)

    async def get_client_messages(self, client_id: str) -> List[StoredMessage]:
        stmt = (
            select(MessageRow)
            .where(MessageRow.client_id == client_id)
            .order_by(MessageRow.timestamp)
        )
        return await self._all(stmt, StoredMessage)

    async def get_thread_messages(self, thread_id: str) -> List[StoredMessage]:
        stmt = (
            select(MessageRow)
            .where(MessageRow.thread_id == thread_id)
            .order_by(MessageRow.timestamp)
        )
        return await self._all(stmt, StoredMessage)

    # ==========================================================================
    # HELPERS
    # ==========================================================================

    async def _get_or_create_prompt(self, row_type, record_type, client_id: str, default_content: str):
        """
        Existing prompt row for the client, or a new one with default content.

        A concurrent request may insert the same client's row first. The
        unique client_id then rejects our insert and the winner's row is
        read back instead.
        """
        stmt = select(row_type).where(row_type.client_id == client_id)
        async with self.session_factory() as session:
            row = await self._first(session, stmt)
            if row is not None:
                return record_type.model_validate(row)

            session.add(row_type(client_id=client_id, content=default_content))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                logging.info(f"{row_type.__tablename__} row for client {client_id} created concurrently, re-reading")

            row = await self._first(session, stmt)
            return record_type.model_validate(row)

    async def _all(self, stmt, record_type):
        async with self.session_factory() as session:
            rows = (await session.execute(stmt)).scalars().all()
            return [record_type.model_validate(r) for r in rows]

    @staticmethod
    async def _first(session: AsyncSession, stmt):
        return (await session.execute(stmt.limit(1))).scalars().first()
