"""
Pydantic Schemas for Coach Context
Typed records for the storage rows the prompt assembler reads
"""
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from enum import Enum


class ExerciseSessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class StoredRecord(BaseModel):
    """Base for records validated straight from ORM rows."""
    model_config = ConfigDict(from_attributes=True)


# ============ Client & Prompts ============

class Client(StoredRecord):
    id: str
    name: str
    email: Optional[str] = None


class RolePrompt(StoredRecord):
    """Per-client persona definition."""
    client_id: str
    content: str = ""


class TaskPrompt(StoredRecord):
    """Per-client default response instructions."""
    client_id: str
    content: str = ""


class MethodologyFrame(StoredRecord):
    id: str
    name: str
    content: str
    description: str = ""


class ClientMethodology(StoredRecord):
    """A methodology assigned to a client, active or paused."""
    client_id: str
    is_active: bool = True
    methodology: MethodologyFrame


# ============ Reference Library & Files ============

class ReferenceDocument(StoredRecord):
    id: str
    title: str
    content: str = ""


class FileAttachment(StoredRecord):
    """An uploaded file linked to an exercise or reference document."""
    id: str
    object_path: str
    mime_type: str
    original_name: str


class ParsedFile(BaseModel):
    """Text extracted from an uploaded file."""
    text: str
    mime_type: str
    filename: str
    page_count: Optional[int] = None


# ============ Guided Exercises ============

class GuidedExercise(StoredRecord):
    id: str
    title: str
    description: str = ""
    system_prompt: str = ""


class ExerciseStep(StoredRecord):
    id: str
    exercise_id: str
    title: str
    instructions: str
    supporting_material: Optional[str] = None
    step_order: int = 0


class ExerciseSession(StoredRecord):
    id: str
    client_id: str
    exercise_id: str
    thread_id: Optional[str] = None
    current_step_id: Optional[str] = None
    status: str = ExerciseSessionStatus.IN_PROGRESS.value


# ============ Living Document & Messages ============

class ClientDocument(StoredRecord):
    id: str
    client_id: str
    title: str = "Client Profile"


class DocumentSection(StoredRecord):
    """A titled block of the client's living document."""
    title: str
    content: str = ""
    sort_order: int = 0


class StoredMessage(StoredRecord):
    id: str
    client_id: str
    thread_id: Optional[str] = None
    role: str  # "user", "coach" or "ai"
    content: str
    timestamp: Optional[datetime] = None
