import json

import pytest

from src.storyteller.story_generator import StoryGenerator, parse_json_response
from src.storyteller.models import ContentAnalysisResult, StoryConfiguration, StoryPhase
from src.storyteller.exceptions import AIServiceError, AIServiceErrorType

from conftest import FakeLLMService


def user_prompt(call):
    return call["messages"][-1]["content"]


def test_parse_plain_json():
    assert parse_json_response('{"a": 1}') == {"a": 1}


def test_parse_fenced_json():
    assert parse_json_response('```json\n{"a": 1}\n```') == {"a": 1}


def test_parse_json_wrapped_in_prose():
    assert parse_json_response('Sure! Here you go: {"a": {"b": 2}} Enjoy.') == {"a": {"b": 2}}


def test_parse_rejects_non_json():
    with pytest.raises(json.JSONDecodeError):
        parse_json_response("no json here")


def test_analyze_content(fake_llm):
    generator = StoryGenerator(fake_llm)
    analysis = generator.analyze_content("Dragons hoard gold.")

    assert analysis.key_facts[0] == "Dragons hoard gold"
    assert analysis.source_type == "manual"
    call = fake_llm.chat_calls[0]
    assert call["fallback"] == AIServiceErrorType.CONTENT_ANALYSIS_FAILED
    assert "Dragons hoard gold." in user_prompt(call)
    assert "content analyzer" in call["messages"][0]["content"]


def test_analyze_content_invalid_json():
    generator = StoryGenerator(FakeLLMService(analysis="I could not read that document, sorry."))
    with pytest.raises(AIServiceError) as exc_info:
        generator.analyze_content("text")
    assert exc_info.value.error_type == AIServiceErrorType.INVALID_RESPONSE


def test_analyze_content_passes_through_service_errors():
    error = AIServiceError("limited", AIServiceErrorType.RATE_LIMIT_EXCEEDED, "Content analysis")
    generator = StoryGenerator(FakeLLMService(chat_errors={"Content analysis": error}))
    with pytest.raises(AIServiceError) as exc_info:
        generator.analyze_content("text")
    assert exc_info.value is error


def test_generate_story_returns_four_phases(fake_llm):
    generator = StoryGenerator(fake_llm)
    result = generator.generate_story(ContentAnalysisResult(overall_context="dragons"))

    assert result.title == "The Winter Hoard"
    assert [p.name for p in result.phases] == ["Introduction", "Conflict", "Climax", "Resolution"]


def test_generate_story_defaults_to_german_neutral(fake_llm):
    StoryGenerator(fake_llm).generate_story(ContentAnalysisResult())
    prompt = user_prompt(fake_llm.chat_calls[0])
    assert "Schreibe die Geschichte auf Deutsch." in prompt
    assert "ausgewogenen, neutralen Ton" in prompt
    assert "Schlüsselwörter" not in prompt


def test_generate_story_english_mood_and_keywords(fake_llm):
    config = StoryConfiguration(language="en", mood="horror", keywords=["lantern", "fog"])
    StoryGenerator(fake_llm).generate_story(ContentAnalysisResult(entities=["Smaug"]), config)
    prompt = user_prompt(fake_llm.chat_calls[0])
    assert "Write the story in English." in prompt
    assert "sense of dread and horror" in prompt
    assert "Incorporate these keywords into the story: lantern, fog" in prompt
    assert '"Smaug"' in prompt


def test_generate_story_unknown_mood_is_neutral(fake_llm):
    config = StoryConfiguration(language="en", mood="whimsical")
    StoryGenerator(fake_llm).generate_story(ContentAnalysisResult(), config)
    assert "balanced, neutral tone" in user_prompt(fake_llm.chat_calls[0])


def test_generate_story_with_too_few_phases():
    story = json.dumps({
        "title": "Short",
        "phases": [{"name": "Introduction", "summary": "Only one.", "mood": "calm"}]
    })
    generator = StoryGenerator(FakeLLMService(story=story))
    with pytest.raises(AIServiceError) as exc_info:
        generator.generate_story(ContentAnalysisResult())
    assert exc_info.value.error_type == AIServiceErrorType.STORY_GENERATION_FAILED


def test_generate_story_invalid_json():
    generator = StoryGenerator(FakeLLMService(story="Once upon a time..."))
    with pytest.raises(AIServiceError) as exc_info:
        generator.generate_story(ContentAnalysisResult())
    assert exc_info.value.error_type == AIServiceErrorType.INVALID_RESPONSE


def test_generate_image_prompt_is_trimmed(fake_llm):
    phase = StoryPhase(name="Climax", summary="A bargain over gold.", mood="dramatic", order=2)
    prompt = StoryGenerator(fake_llm).generate_image_prompt(phase)

    assert prompt == "A lone cartographer on a snowy ridge, painterly, dawn light"
    call = fake_llm.chat_calls[0]
    assert call["fallback"] == AIServiceErrorType.IMAGE_PROMPT_GENERATION_FAILED
    assert "Phase: Climax" in user_prompt(call)
    assert "Mood: dramatic" in user_prompt(call)


def test_generate_image_prompt_empty_reply():
    phase = StoryPhase(name="Climax", summary="s", mood="m", order=2)
    generator = StoryGenerator(FakeLLMService(image_prompt="   "))
    with pytest.raises(AIServiceError) as exc_info:
        generator.generate_image_prompt(phase)
    assert exc_info.value.error_type == AIServiceErrorType.IMAGE_PROMPT_GENERATION_FAILED


def test_generate_image_delegates(fake_llm):
    assert StoryGenerator(fake_llm).generate_image("a dragon") == fake_llm.image_bytes
    assert fake_llm.image_calls == ["a dragon"]


def test_generate_story_accepts_long_replies():
    long_summary = "The dragon circled the frozen lake for hours. " * 30
    story = json.dumps({
        "title": "A " + "very " * 60 + "long title",
        "phases": [
            {"name": name, "summary": long_summary, "mood": "brooding " * 20}
            for name in ("Introduction", "Conflict", "Climax", "Resolution")
        ]
    })
    result = StoryGenerator(FakeLLMService(story=story)).generate_story(ContentAnalysisResult())

    assert len(result.phases) == 4
    assert len(result.phases[0].summary) > 1000


def test_analyze_content_accepts_long_context():
    analysis = json.dumps({
        "keyFacts": ["fact"],
        "overallContext": "Northern dragons and their habits. " * 80,
        "sourceType": "a long and rambling field guide to the dragons of the north " * 2
    })
    result = StoryGenerator(FakeLLMService(analysis=analysis)).analyze_content("text")

    assert len(result.overall_context) > 2000
    assert len(result.source_type) > 50
