"""Pytest configuration and shared fixtures.

Puts the project root on ``sys.path`` so ``import src.storyteller`` works, and
provides an in-process stand-in for the AI endpoint plus small real PDFs and
images built with PyMuPDF.
"""

import os
import sys
import json

import fitz  # PyMuPDF
import pytest

# Project root = parent directory of this tests/ folder
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from src.storyteller.models import GeneratedStory, StoryPhase  # noqa: E402
from src.storyteller.pdf_parser import PDFParser  # noqa: E402
from src.storyteller.pdf_generator import PdfGenerator  # noqa: E402
from src.storyteller.storage import StoryStorageService  # noqa: E402
from src.storyteller.story_cache import TTLCache  # noqa: E402
from src.storyteller.story_generator import StoryGenerator  # noqa: E402
from src.storyteller.processing_service import StoryProcessingService  # noqa: E402


ANALYSIS_RESPONSE = json.dumps({
    "keyFacts": ["Dragons hoard gold", "The mountain pass closes in winter"],
    "entities": ["Smaug", "Lake-town"],
    "concepts": ["greed", "courage"],
    "overallContext": "A field guide to northern dragons",
    "sourceType": "manual"
})

STORY_RESPONSE = "```json\n" + json.dumps({
    "title": "The Winter Hoard",
    "phases": [
        {"name": "Introduction", "summary": "A young cartographer hears of a dragon in the north.", "mood": "mysterious"},
        {"name": "Conflict", "summary": "The pass closes and the dragon wakes.", "mood": "tense"},
        {"name": "Climax", "summary": "She bargains with the dragon over its gold.", "mood": "dramatic"},
        {"name": "Resolution", "summary": "Spring returns and the map is finished.", "mood": "triumphant"}
    ]
}) + "\n```"


def make_pdf(*pages: str) -> bytes:
    """Build a PDF with one page per argument, each holding a single line of text."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text, fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


def make_png(width: int = 8, height: int = 8) -> bytes:
    pix = fitz.Pixmap(fitz.csRGB, fitz.IRect(0, 0, width, height), False)
    pix.clear_with(200)
    return pix.tobytes("png")


class FakeLLMService:
    """Answers chat calls by context, the way the real service is called by StoryGenerator."""

    def __init__(self, analysis=ANALYSIS_RESPONSE, story=STORY_RESPONSE,
                 image_prompt="  A lone cartographer on a snowy ridge, painterly, dawn light  ",
                 image_bytes=None, failing_image_calls=(), chat_errors=None):
        self.analysis = analysis
        self.story = story
        self.image_prompt = image_prompt
        self.image_bytes = image_bytes if image_bytes is not None else make_png()
        self.failing_image_calls = set(failing_image_calls)
        self.chat_errors = chat_errors or {}
        self.chat_calls = []
        self.image_calls = []

    def generate_chat_completion(self, messages, max_tokens=2000, temperature=0.7, fallback=None, context="Chat completion"):
        self.chat_calls.append({"messages": messages, "context": context, "fallback": fallback})
        for prefix, error in self.chat_errors.items():
            if context.startswith(prefix):
                raise error
        if context == "Content analysis":
            return self.analysis
        if context == "Story generation":
            return self.story
        return self.image_prompt

    def generate_image(self, prompt):
        call_index = len(self.image_calls)
        self.image_calls.append(prompt)
        if call_index in self.failing_image_calls:
            raise RuntimeError("image endpoint exploded")
        return self.image_bytes


@pytest.fixture
def fake_llm():
    return FakeLLMService()


@pytest.fixture
def sample_pdf_bytes():
    return make_pdf("Northern dragons sleep through the winter.", "They guard gold in mountain caves.")


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def storage(tmp_path):
    return StoryStorageService(root=str(tmp_path / "wwwroot"), folder="generated-stories")


@pytest.fixture
def service(fake_llm, storage):
    return StoryProcessingService(
        pdf_parser=PDFParser(),
        story_generator=StoryGenerator(fake_llm),
        pdf_generator=PdfGenerator(),
        storage=storage,
        cache=TTLCache(24 * 3600)
    )


@pytest.fixture
def sample_story(png_bytes):
    import base64
    image_data = base64.b64encode(png_bytes).decode("ascii")
    return GeneratedStory(
        id="0123456789abcdef0123456789abcdef",
        title="The Winter Hoard",
        source_file_name="dragons.pdf",
        phases=[
            StoryPhase(name="Introduction", summary="A cartographer hears of a dragon.", mood="mysterious",
                       image_prompt="snowy ridge", order=0, image_data=image_data),
            StoryPhase(name="Conflict", summary="The pass closes.", mood="tense",
                       image_prompt="blizzard", order=1),
            StoryPhase(name="Climax", summary="A bargain over gold.", mood="dramatic",
                       image_prompt="dragon cave", order=2, image_data=image_data),
            StoryPhase(name="Resolution", summary="Spring returns.", mood="triumphant",
                       image_prompt="green valley", order=3),
        ]
    )
