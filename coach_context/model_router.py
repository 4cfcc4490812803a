"""
Message Router
==============

Maps one inbound message to a model tier with a fixed decision table.
No LLM calls, no I/O - pure Python logic.

Decision order (first match wins):
1. simple greeting / acknowledgement, or very short  -> fast
2. deep or existential question phrasing            -> deep
3. emotional vocabulary, or a long message          -> balanced
4. anything else                                    -> fast
"""

import re
from dataclasses import dataclass
from typing import Literal, Optional

from coach_context.config import Settings


ModelTier = Literal["fast", "balanced", "deep"]

SHORT_MESSAGE_CHARS = 20
LONG_MESSAGE_CHARS = 200

EMOTIONAL_KEYWORDS = [
    "feel", "feeling", "felt", "emotion", "scared", "afraid", "anxious", "worried",
    "sad", "depressed", "angry", "frustrated", "overwhelmed", "stressed", "hurt",
    "confused", "lost", "stuck", "hopeless", "excited", "happy", "grateful",
    "love", "hate", "fear", "grief", "shame", "guilt", "jealous", "lonely",
]

DEEP_QUESTION_PATTERNS = [
    re.compile(r"why (do|did|am|is|are|was|were) (i|we|they|he|she)", re.IGNORECASE),
    re.compile(r"what (does|do) .+ mean", re.IGNORECASE),
    re.compile(r"how (do|can|should) i .+ (life|career|relationship|meaning|purpose)", re.IGNORECASE),
    re.compile(r"what is (the meaning|my purpose|wrong with)", re.IGNORECASE),
    re.compile(r"(struggle|struggling) (with|to)", re.IGNORECASE),
    re.compile(r"can('t| not) (seem to|stop|figure out)", re.IGNORECASE),
    re.compile(r"keep (thinking|wondering|asking)", re.IGNORECASE),
    re.compile(r"deeper|underlying|root cause", re.IGNORECASE),
]

SIMPLE_GREETING_PATTERNS = [
    re.compile(r"^(hi|hello|hey|good morning|good afternoon|good evening)[\s!.]*$", re.IGNORECASE),
    re.compile(r"^(thanks|thank you|ok|okay|got it|sure|yes|no)[\s!.]*$", re.IGNORECASE),
    re.compile(r"^(bye|goodbye|see you|talk later)[\s!.]*$", re.IGNORECASE),
]


@dataclass
class MessageCharacteristics:
    length: int
    has_emotional_keywords: bool
    has_deep_questions: bool
    is_simple_greeting: bool


@dataclass
class RoutingResult:
    """Tier, model and the rule that selected them."""
    tier: ModelTier
    model: str
    provider: str
    reasoning: str


def analyze_message(content: str) -> MessageCharacteristics:
    lower_content = content.lower()
    return MessageCharacteristics(
        length=len(content),
        has_emotional_keywords=any(k in lower_content for k in EMOTIONAL_KEYWORDS),
        has_deep_questions=any(p.search(content) for p in DEEP_QUESTION_PATTERNS),
        is_simple_greeting=any(p.match(content.strip()) for p in SIMPLE_GREETING_PATTERNS),
    )


def route_message(content: str, settings: Optional[Settings] = None) -> RoutingResult:
    """Classify a message into a tier and pick the tier's model."""
    settings = settings or Settings()
    msg = analyze_message(content)

    def result(tier: ModelTier, reasoning: str) -> RoutingResult:
        return RoutingResult(
            tier=tier,
            model=settings.model_for_tier(tier),
            provider=settings.MODEL_PROVIDER,
            reasoning=reasoning
        )

    if msg.is_simple_greeting:
        return result("fast", "Simple greeting or acknowledgement - using fast model")

    if msg.length < SHORT_MESSAGE_CHARS:
        return result("fast", f"Short message ({msg.length} chars) - using fast model")

    if msg.has_deep_questions:
        return result("deep", "Deep existential/complex question detected - using deep model for thoughtful response")

    if msg.has_emotional_keywords:
        return result("balanced", "Emotional content detected - using balanced model for empathetic response")

    if msg.length > LONG_MESSAGE_CHARS:
        return result("balanced", f"Long message ({msg.length} chars) - using balanced model")

    return result("fast", "Standard message - using fast model")
