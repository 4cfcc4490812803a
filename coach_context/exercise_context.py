"""
Exercise Context Resolver
=========================

Finds the guided exercise a thread is currently working through.

A missing link anywhere in the chain (no in-progress session for the
thread, no current step, exercise deleted, step not found) means "no active
exercise" and resolves to None. Storage errors propagate.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from coach_context.file_parser import AttachmentText, FileParser, extract_attachment_texts
from coach_context.schemas import ExerciseSessionStatus, ExerciseStep, GuidedExercise
from coach_context.storage import CoachStorage


@dataclass
class ExerciseContext:
    """State of the active guided exercise, resolved fresh per assembly."""
    exercise_id: str
    title: str
    description: str
    override_instructions: str
    current_step_title: str
    current_step_prompt: str
    step_order: int           # 1-based position of the current step
    total_steps: int
    current_step_guidance: Optional[str] = None
    attachments: List[AttachmentText] = field(default_factory=list)


class ExerciseContextResolver:
    """Resolves ExerciseContext from storage and the file parser."""

    def __init__(self, storage: CoachStorage, file_parser: FileParser):
        self.storage = storage
        self.file_parser = file_parser

    async def resolve(self, client_id: str, thread_id: str) -> Optional[ExerciseContext]:
        """Context for the in-progress exercise of a thread, or None."""
        sessions = await self.storage.get_client_exercise_sessions(client_id)
        session = next(
            (s for s in sessions
             if s.thread_id == thread_id and s.status == ExerciseSessionStatus.IN_PROGRESS.value),
            None
        )
        if session is None or not session.current_step_id:
            logging.debug(f"No active exercise for client {client_id} thread {thread_id}")
            return None

        exercise = await self.storage.get_guided_exercise(session.exercise_id)
        if exercise is None:
            logging.debug(f"Exercise {session.exercise_id} not found for session {session.id}")
            return None

        steps = await self.storage.get_exercise_steps(exercise.id)
        step = next((s for s in steps if s.id == session.current_step_id), None)
        if step is None:
            logging.debug(f"Step {session.current_step_id} not found in exercise {exercise.id}")
            return None

        return await self._build(exercise, steps, step)

    async def resolve_for_exercise(self, exercise_id: str) -> Optional[ExerciseContext]:
        """Context positioned on the first step of an exercise, for opening messages."""
        exercise = await self.storage.get_guided_exercise(exercise_id)
        if exercise is None:
            return None

        steps = await self.storage.get_exercise_steps(exercise.id)
        if not steps:
            return None

        return await self._build(exercise, steps, steps[0])

    async def _build(
        self,
        exercise: GuidedExercise,
        steps: Sequence[ExerciseStep],
        step: ExerciseStep
    ) -> ExerciseContext:
        attachments = await self.storage.get_exercise_attachments(exercise.id)
        attachment_texts = await extract_attachment_texts(self.file_parser, attachments)

        position = next(i for i, s in enumerate(steps) if s.id == step.id) + 1

        return ExerciseContext(
            exercise_id=exercise.id,
            title=exercise.title,
            description=exercise.description,
            override_instructions=exercise.system_prompt,
            current_step_title=step.title,
            current_step_prompt=step.instructions,
            current_step_guidance=step.supporting_material or None,
            step_order=position,
            total_steps=len(steps),
            attachments=attachment_texts
        )
