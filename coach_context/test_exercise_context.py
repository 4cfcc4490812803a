"""
Exercise Context Resolver Tests
===============================
"""

import asyncio

import pytest
from unittest.mock import AsyncMock

from coach_context.exercise_context import ExerciseContextResolver
from coach_context.file_parser import FileParseError
from coach_context.schemas import (
    ExerciseSession, ExerciseStep, FileAttachment, GuidedExercise, ParsedFile
)


EXERCISE = GuidedExercise(id="ex1", title="Values Compass", description="Find what matters.", system_prompt="Guide slowly.")
STEPS = [
    ExerciseStep(id="s1", exercise_id="ex1", title="Warm up", instructions="Breathe.", step_order=1),
    ExerciseStep(id="s2", exercise_id="ex1", title="Name values", instructions="List five.", supporting_material="Offer examples.", step_order=2),
    ExerciseStep(id="s3", exercise_id="ex1", title="Rank", instructions="Order them.", step_order=3),
]


def session(**overrides):
    values = dict(id="sess1", client_id="c1", exercise_id="ex1", thread_id="t1", current_step_id="s2", status="in_progress")
    values.update(overrides)
    return ExerciseSession(**values)


def make_storage(sessions=None, exercise=EXERCISE, steps=STEPS, attachments=()):
    storage = AsyncMock()
    storage.get_client_exercise_sessions.return_value = [session()] if sessions is None else sessions
    storage.get_guided_exercise.return_value = exercise
    storage.get_exercise_steps.return_value = list(steps)
    storage.get_exercise_attachments.return_value = list(attachments)
    return storage


def make_parser():
    parser = AsyncMock()
    parser.parse_file_from_storage.return_value = ParsedFile(text="parsed", mime_type="text/plain", filename="f")
    return parser


class TestResolve:

    def test_resolves_current_step(self):
        resolver = ExerciseContextResolver(make_storage(), make_parser())
        context = asyncio.run(resolver.resolve("c1", "t1"))

        assert context.exercise_id == "ex1"
        assert context.title == "Values Compass"
        assert context.override_instructions == "Guide slowly."
        assert context.current_step_title == "Name values"
        assert context.current_step_prompt == "List five."
        assert context.current_step_guidance == "Offer examples."
        assert context.step_order == 2
        assert context.total_steps == 3
        assert context.attachments == []

    @pytest.mark.parametrize("storage", [
        make_storage(sessions=[]),
        make_storage(sessions=[session(thread_id="other")]),
        make_storage(sessions=[session(status="completed")]),
        make_storage(sessions=[session(current_step_id=None)]),
        make_storage(exercise=None),
        make_storage(sessions=[session(current_step_id="missing")]),
    ], ids=["no-session", "other-thread", "completed", "no-step", "exercise-gone", "step-gone"])
    def test_missing_link_resolves_to_none(self, storage):
        resolver = ExerciseContextResolver(storage, make_parser())
        assert asyncio.run(resolver.resolve("c1", "t1")) is None

    def test_storage_error_propagates(self):
        storage = make_storage()
        storage.get_guided_exercise.side_effect = RuntimeError("db down")
        resolver = ExerciseContextResolver(storage, make_parser())

        with pytest.raises(RuntimeError):
            asyncio.run(resolver.resolve("c1", "t1"))


class TestAttachments:

    def test_failed_attachment_becomes_placeholder(self):
        attachments = [
            FileAttachment(id="a1", object_path="ok.txt", mime_type="text/plain", original_name="ok.txt"),
            FileAttachment(id="a2", object_path="bad.pdf", mime_type="application/pdf", original_name="bad.pdf"),
            FileAttachment(id="a3", object_path="late.txt", mime_type="text/plain", original_name="late.txt"),
        ]
        parser = AsyncMock()
        parser.parse_file_from_storage.side_effect = [
            ParsedFile(text="first", mime_type="text/plain", filename="ok.txt"),
            FileParseError("corrupt"),
            ParsedFile(text="third", mime_type="text/plain", filename="late.txt"),
        ]
        resolver = ExerciseContextResolver(make_storage(attachments=attachments), parser)

        context = asyncio.run(resolver.resolve("c1", "t1"))

        assert [(a.name, a.text) for a in context.attachments] == [
            ("ok.txt", "first"),
            ("bad.pdf", "[Unable to read attached file: bad.pdf]"),
            ("late.txt", "third"),
        ]


class TestResolveForExercise:

    def test_positions_on_first_step(self):
        resolver = ExerciseContextResolver(make_storage(), make_parser())
        context = asyncio.run(resolver.resolve_for_exercise("ex1"))

        assert context.current_step_title == "Warm up"
        assert context.step_order == 1
        assert context.current_step_guidance is None

    def test_unknown_exercise(self):
        resolver = ExerciseContextResolver(make_storage(exercise=None), make_parser())
        assert asyncio.run(resolver.resolve_for_exercise("nope")) is None

    def test_exercise_without_steps(self):
        resolver = ExerciseContextResolver(make_storage(steps=[]), make_parser())
        assert asyncio.run(resolver.resolve_for_exercise("ex1")) is None
