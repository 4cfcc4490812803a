"""
Message Router Tests
====================
"""

import pytest

from coach_context.config import Settings
from coach_context.model_router import RoutingResult, analyze_message, route_message


class TestRouteMessage:

    @pytest.mark.parametrize("message", ["ok", "Hi!", "thank you", "Good morning.", "bye"])
    def test_greetings_and_acknowledgements_are_fast(self, message):
        result = route_message(message)
        assert result.tier == "fast"
        assert result.model == Settings.FAST_MODEL

    def test_short_message_is_fast_even_if_emotional(self):
        result = route_message("I feel sad")
        assert result.tier == "fast"
        assert "Short message" in result.reasoning

    def test_long_emotional_message_is_balanced(self):
        message = (
            "This week at the clinic has been relentless and I am completely overwhelmed by "
            "the schedule changes, the extra shifts, the paperwork that piles up every evening, "
            "and the sense that nobody upstairs notices how much the team is carrying right now "
            "while the kids need me at home."
        )
        assert len(message) > 200

        result = route_message(message)

        assert result.tier == "balanced"
        assert result.model == Settings.BALANCED_MODEL
        assert "Emotional" in result.reasoning

    def test_why_do_i_question_is_deep(self):
        result = route_message("Why do I always feel like an imposter at work?")
        assert result.tier == "deep"
        assert result.model == Settings.DEEP_MODEL

    def test_deep_beats_emotional(self):
        assert route_message("I keep wondering if I'm scared of success").tier == "deep"

    def test_long_neutral_message_is_balanced(self):
        message = "Today I went to the market, bought some apples and pears, walked the dog twice " * 3
        result = route_message(message)
        assert result.tier == "balanced"
        assert "Long message" in result.reasoning

    def test_standard_message_is_fast(self):
        result = route_message("I went for a run this morning before work")
        assert result.tier == "fast"
        assert result.reasoning == "Standard message - using fast model"

    def test_every_branch_has_distinct_reasoning(self):
        messages = [
            "ok",
            "short note",
            "Why do I always do this before deadlines?",
            "Honestly I am frustrated with how the meeting went today",
            "Today I went to the market, bought some apples and pears, walked the dog twice " * 3,
            "I went for a run this morning before work",
        ]
        reasons = {route_message(m).reasoning.split(" - ")[0].split(" (")[0] for m in messages}
        assert len(reasons) == len(messages)

    def test_models_come_from_settings(self):
        settings = Settings()
        settings.FAST_MODEL = "tiny-model"
        settings.MODEL_PROVIDER = "acme"

        result = route_message("hello", settings)

        assert result == RoutingResult(
            tier="fast",
            model="tiny-model",
            provider="acme",
            reasoning="Simple greeting or acknowledgement - using fast model",
        )


class TestAnalyzeMessage:

    def test_characteristics(self):
        msg = analyze_message("What is the meaning of all this stress?")
        assert msg.has_deep_questions
        assert msg.has_emotional_keywords is False
        assert msg.is_simple_greeting is False
        assert msg.length == 39


class TestSettings:

    def test_model_for_tier(self):
        settings = Settings()
        assert settings.model_for_tier("deep") == Settings.DEEP_MODEL
        with pytest.raises(KeyError):
            settings.model_for_tier("huge")

    def test_validate_reports_missing_models(self, monkeypatch):
        monkeypatch.setattr(Settings, "DEEP_MODEL", "")

        with pytest.raises(ValueError, match="COACH_DEEP_MODEL"):
            Settings.validate()
