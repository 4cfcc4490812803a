"""
Coach Context - Prompt Assembly and Model Routing
==================================================

Builds bounded-size prompts for an AI journaling coach out of many
independently sized knowledge sources, and routes each message to a
model tier.

Key Design Principles:
1. Every section has its own token allocation - nothing can starve the rest
2. Exercise mode replaces the default instructions, never appends to them
3. One unreadable attachment degrades to a placeholder, not a failed request
4. Windowing keeps the newest contiguous history that fits the buffer
"""

from coach_context.config import Settings
from coach_context.conversation_window import ConversationTurn, PromptMessage, Speaker
from coach_context.exercise_context import ExerciseContext, ExerciseContextResolver
from coach_context.file_parser import FileParseError, LocalFileParser
from coach_context.mentions import detect_coach_mention, highlight_mentions
from coach_context.model_router import RoutingResult, route_message
from coach_context.prompt_assembler import (
    AssembledPrompt, OpeningPrompt, PromptAssembler, PromptContext, create_prompt_assembler
)
from coach_context.section_gaps import get_section_gap_info
from coach_context.storage import CoachStorage, SqlCoachStorage

__all__ = [
    'Settings',
    'ConversationTurn',
    'PromptMessage',
    'Speaker',
    'ExerciseContext',
    'ExerciseContextResolver',
    'FileParseError',
    'LocalFileParser',
    'detect_coach_mention',
    'highlight_mentions',
    'RoutingResult',
    'route_message',
    'AssembledPrompt',
    'OpeningPrompt',
    'PromptAssembler',
    'PromptContext',
    'create_prompt_assembler',
    'get_section_gap_info',
    'CoachStorage',
    'SqlCoachStorage',
]
