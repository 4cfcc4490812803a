"""
Coach Context SQLAlchemy Models
===============================

The subset of the coaching platform's tables that prompt assembly reads.
Column names follow the platform's schema so the adapter can point at the
production database unchanged.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, ForeignKey
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


DEFAULT_ROLE_PROMPT = (
    "You are an assistant to a coach who works with ambitious founders and "
    "builders. You do not prescribe advice. You ask clarifying questions when "
    "needed."
)

DEFAULT_TASK_PROMPT = (
    "Open each new conversation by welcoming the client to their AI-assisted "
    "coaching log. By default, mostly listen and hang back to give them space "
    "to self-reflect. Offer to help them identify what they are feeling, work "
    "through a difficult decision, or call their coach into the chat by typing "
    "\"@coach\"."
)


class ClientRow(Base):
    __tablename__ = "clients"

    id = Column(String, primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True)
    status = Column(Text, nullable=False, default="active")


class RolePromptRow(Base):
    __tablename__ = "role_prompts"

    id = Column(String, primary_key=True, default=_uuid)
    client_id = Column(String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, unique=True)
    content = Column(Text, nullable=False, default=DEFAULT_ROLE_PROMPT)
    updated_at = Column(DateTime, default=datetime.utcnow)


class TaskPromptRow(Base):
    __tablename__ = "task_prompts"

    id = Column(String, primary_key=True, default=_uuid)
    client_id = Column(String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, unique=True)
    content = Column(Text, nullable=False, default=DEFAULT_TASK_PROMPT)
    updated_at = Column(DateTime, default=datetime.utcnow)


class MethodologyFrameRow(Base):
    __tablename__ = "methodology_frames"

    id = Column(String, primary_key=True, default=_uuid)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    content = Column(Text, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)


class ClientMethodologyRow(Base):
    __tablename__ = "client_methodologies"

    id = Column(String, primary_key=True, default=_uuid)
    client_id = Column(String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    methodology_id = Column(String, ForeignKey("methodology_frames.id", ondelete="CASCADE"), nullable=False)
    is_active = Column(Integer, nullable=False, default=1)  # 1 = active, 0 = paused
    created_at = Column(DateTime, default=datetime.utcnow)

    methodology = relationship("MethodologyFrameRow")


class ReferenceDocumentRow(Base):
    __tablename__ = "reference_documents"

    id = Column(String, primary_key=True, default=_uuid)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False, default="")
    description = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)


class FileAttachmentRow(Base):
    """Uploaded file, linked to either an exercise or a reference document."""
    __tablename__ = "file_attachments"

    id = Column(String, primary_key=True, default=_uuid)
    filename = Column(Text, nullable=False)
    original_name = Column(Text, nullable=False)
    mime_type = Column(Text, nullable=False)
    size = Column(Integer, nullable=False, default=0)
    object_path = Column(Text, nullable=False)
    exercise_id = Column(String, ForeignKey("guided_exercises.id", ondelete="CASCADE"))
    reference_document_id = Column(String, ForeignKey("reference_documents.id", ondelete="CASCADE"))
    created_at = Column(DateTime, default=datetime.utcnow)


class GuidedExerciseRow(Base):
    __tablename__ = "guided_exercises"

    id = Column(String, primary_key=True, default=_uuid)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    system_prompt = Column(Text, nullable=False, default="")
    is_published = Column(Integer, nullable=False, default=0)


class ExerciseStepRow(Base):
    __tablename__ = "exercise_steps"

    id = Column(String, primary_key=True, default=_uuid)
    exercise_id = Column(String, ForeignKey("guided_exercises.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    instructions = Column(Text, nullable=False)
    supporting_material = Column(Text)
    step_order = Column(Integer, nullable=False, default=0)


class ExerciseSessionRow(Base):
    __tablename__ = "client_exercise_sessions"

    id = Column(String, primary_key=True, default=_uuid)
    client_id = Column(String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    exercise_id = Column(String, ForeignKey("guided_exercises.id", ondelete="CASCADE"), nullable=False)
    thread_id = Column(String)
    current_step_id = Column(String)
    status = Column(Text, nullable=False, default="in_progress")
    started_at = Column(DateTime, default=datetime.utcnow)


class ClientDocumentRow(Base):
    """The client's living document."""
    __tablename__ = "client_documents"

    id = Column(String, primary_key=True, default=_uuid)
    client_id = Column(String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, unique=True)
    title = Column(Text, nullable=False, default="Client Profile")


class DocumentSectionRow(Base):
    __tablename__ = "document_sections"

    id = Column(String, primary_key=True, default=_uuid)
    document_id = Column(String, ForeignKey("client_documents.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False, default="")
    sort_order = Column(Integer, nullable=False, default=0)


class MessageRow(Base):
    __tablename__ = "messages"

    id = Column(String, primary_key=True, default=_uuid)
    client_id = Column(String, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    thread_id = Column(String)
    role = Column(Text, nullable=False)  # "user", "coach" or "ai"
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime, nullable=False, default=datetime.utcnow)
