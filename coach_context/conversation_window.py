"""
Conversation Window
===================

Selects the part of a thread's history that fits the conversation buffer:
- Greedy suffix selection (newest first, stop at the first turn that does not fit)
- Chronological order restored for the output
- Every turn labeled by speaker, since the model sees a three-party
  conversation (client, human coach, assistant) only through message content
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from coach_context.schemas import StoredMessage
from coach_context.token_budget import estimate_tokens, truncate_to_token_limit


class Speaker(str, Enum):
    CLIENT = "client"
    COACH = "coach"
    ASSISTANT = "assistant"


# Stored message roles -> speakers
STORED_ROLE_SPEAKERS = {
    "user": Speaker.CLIENT,
    "client": Speaker.CLIENT,
    "coach": Speaker.COACH,
    "ai": Speaker.ASSISTANT,
    "assistant": Speaker.ASSISTANT,
}

SPEAKER_PREFIXES = {
    Speaker.CLIENT: "[CLIENT]: ",
    Speaker.COACH: "[COACH]: ",
}


@dataclass(frozen=True)
class ConversationTurn:
    """Single recorded turn. Immutable once recorded."""
    speaker: Speaker
    content: str
    ordinal: int = 0


@dataclass(frozen=True)
class PromptMessage:
    """Model-facing message: role is 'user' or 'assistant'."""
    role: str
    content: str


def turn_from_stored(message: StoredMessage, ordinal: int) -> ConversationTurn:
    """Map a stored message onto a turn. Unknown roles are read as the assistant."""
    speaker = STORED_ROLE_SPEAKERS.get(message.role)
    if speaker is None:
        logging.warning(f"Unknown role {message.role!r} on message {message.id}, treating as assistant")
        speaker = Speaker.ASSISTANT
    return ConversationTurn(speaker=speaker, content=message.content, ordinal=ordinal)


def label_turn(speaker: Speaker, content: str) -> PromptMessage:
    """Fold the speaker into the message content."""
    if speaker == Speaker.ASSISTANT:
        return PromptMessage(role="assistant", content=content)
    return PromptMessage(role="user", content=f"{SPEAKER_PREFIXES[speaker]}{content}")


def labeled_tokens(turn: ConversationTurn) -> int:
    return estimate_tokens(label_turn(turn.speaker, turn.content).content)


def select_window(turns: Sequence[ConversationTurn], budget: int) -> List[ConversationTurn]:
    """
    Select the newest contiguous suffix of turns that fits the budget.

    Walks newest -> oldest and stops at the first turn that would overflow,
    so the result is always a suffix of `turns` in its original order.
    """
    used = 0
    start = len(turns)
    for index in range(len(turns) - 1, -1, -1):
        cost = labeled_tokens(turns[index])
        if used + cost > budget:
            break
        used += cost
        start = index
    return list(turns[start:])


def conversation_budget(buffer_tokens: int, reserve_tokens: int = 0) -> int:
    """Buffer left for history after reserving room for the incoming message."""
    return max(buffer_tokens - reserve_tokens, 0)


def build_conversation_history(
    turns: Sequence[ConversationTurn],
    buffer_tokens: int,
    current_message: Optional[str] = None,
    current_speaker: Speaker = Speaker.CLIENT,
    message_already_stored: bool = False
) -> List[PromptMessage]:
    """
    Window the history and label it for the model.

    When the incoming message is not part of `turns` it is appended last,
    labeled, and never truncated.
    """
    current = None
    if current_message is not None and not message_already_stored:
        current = label_turn(current_speaker, current_message)

    reserve = estimate_tokens(current.content) if current else 0
    budget = conversation_budget(buffer_tokens, reserve)

    history = [label_turn(t.speaker, t.content) for t in select_window(turns, budget)]

    if current:
        history.append(current)

    return history


def format_transcript(turns: Sequence[ConversationTurn], budget: int) -> str:
    """
    Flat 'SPEAKER: content' excerpt of the newest turns that fit the budget,
    oldest first. A newest turn that alone overflows is head-truncated.
    """
    lines = []
    used = 0
    for turn in reversed(turns):
        line = f"{turn.speaker.value.upper()}: {turn.content}"
        cost = estimate_tokens(line + "\n\n")
        if used + cost > budget:
            if not lines:
                lines.append(truncate_to_token_limit(line, budget))
            break
        used += cost
        lines.append(line)
    return "\n\n".join(reversed(lines))
