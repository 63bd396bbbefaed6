"""
Prompt templates for content analysis, story generation and image prompts.
"""

from typing import Dict, List


# =============================================================================
# System messages
# =============================================================================

ANALYSIS_SYSTEM_MESSAGE = "You are an expert content analyzer. Always respond with valid JSON only."

STORY_SYSTEM_MESSAGE = "You are a creative storyteller. Always respond with valid JSON only."

IMAGE_PROMPT_SYSTEM_MESSAGE = (
    "You are an expert at creating detailed image generation prompts. "
    "Respond with only the prompt text."
)


# =============================================================================
# Content analysis
# =============================================================================

ANALYSIS_PROMPT = """Analyze the following text extracted from a document.
Identify key facts, entities, concepts, and contextual information.
The document may be of any type (manual, article, list, etc.).
Extract elements that could be creatively transformed into narrative components.

Text: {text}

Return a JSON object with the following structure:
{{
  "key_facts": ["fact1", "fact2", ...],
  "entities": ["entity1", "entity2", ...],
  "concepts": ["concept1", "concept2", ...],
  "overall_context": "description of the overall context",
  "source_type": "type of document (e.g., manual, article, list)"
}}

Respond ONLY with valid JSON, no additional text."""


# =============================================================================
# Story generation
# =============================================================================

STORY_PHASE_NAMES = ["Introduction", "Conflict", "Climax", "Resolution"]

LANGUAGE_INSTRUCTIONS = {
    "en": "Write the story in English.",
    "de": "Schreibe die Geschichte auf Deutsch.",
}

# mood -> (english, german)
MOOD_INSTRUCTIONS: Dict[str, tuple] = {
    "adventure": (
        "The story should be adventurous, exciting, and full of exploration and discovery with a sense of journey and wonder.",
        "Die Geschichte soll abenteuerlich, aufregend und voller Entdeckungen sein mit einem Gefühl von Reise und Staunen.",
    ),
    "epic": (
        "The story should be epic, grand, and heroic with larger-than-life characters and monumental events.",
        "Die Geschichte soll episch, großartig und heroisch sein mit überdimensionalen Charakteren und monumentalen Ereignissen.",
    ),
    "happy": (
        "The story should be funny, lighthearted, and humorous with comedic elements.",
        "Die Geschichte soll lustig, heiter und humorvoll mit komödiantischen Elementen sein.",
    ),
    "sad": (
        "The story should be sad, melancholic, and emotionally touching.",
        "Die Geschichte soll traurig, melancholisch und emotional berührend sein.",
    ),
    "horror": (
        "The story should be scary, suspenseful, and create a sense of dread and horror.",
        "Die Geschichte soll gruselig, spannend sein und ein Gefühl von Angst und Horror erzeugen.",
    ),
    "dramatic": (
        "The story should be dramatic, intense, and emotionally powerful with high stakes.",
        "Die Geschichte soll dramatisch, intensiv und emotional kraftvoll mit hohen Einsätzen sein.",
    ),
    "romantic": (
        "The story should be romantic, passionate, and emotionally intimate with themes of love and connection.",
        "Die Geschichte soll romantisch, leidenschaftlich und emotional intim sein mit Themen von Liebe und Verbindung.",
    ),
    "mysterious": (
        "The story should be mysterious, enigmatic, and intriguing with secrets to uncover and puzzles to solve.",
        "Die Geschichte soll mysteriös, rätselhaft und faszinierend sein mit Geheimnissen zum Aufdecken und Rätseln zum Lösen.",
    ),
    "inspirational": (
        "The story should be inspirational, uplifting, and motivational with themes of overcoming challenges and personal growth.",
        "Die Geschichte soll inspirierend, erhebend und motivierend sein mit Themen des Überwindens von Herausforderungen und persönlichem Wachstum.",
    ),
    "dark": (
        "The story should be dark, gritty, and somber with mature themes and a pessimistic or cynical tone.",
        "Die Geschichte soll düster, rau und ernst sein mit reifen Themen und einem pessimistischen oder zynischen Ton.",
    ),
}

NEUTRAL_MOOD_INSTRUCTION = (
    "The story should have a balanced, neutral tone.",
    "Die Geschichte soll einen ausgewogenen, neutralen Ton haben.",
)

STORY_PROMPT = """Create a creative, engaging story based on the following analysis.
Transform the source material into a narrative with 4 distinct phases:
1. Introduction
2. Conflict
3. Climax
4. Resolution

IMPORTANT INSTRUCTIONS:
{language_instruction}
{mood_instruction}
{keywords_instruction}

Source Analysis:
{analysis_json}

For each phase, provide:
- Phase name (e.g., "Introduction", "Conflict", "Climax", "Resolution")
- Detailed summary (2-3 sentences)
- Mood/atmosphere that matches the overall story mood

Be creative and imaginative while incorporating elements from the source material.

Return a JSON object with the following structure:
{{
  "title": "Creative Story Title",
  "phases": [
    {{"name": "Introduction", "summary": "Detailed summary of this phase...", "mood": "mysterious"}},
    {{"name": "Conflict", "summary": "Detailed summary of this phase...", "mood": "tense"}},
    {{"name": "Climax", "summary": "Detailed summary of this phase...", "mood": "dramatic"}},
    {{"name": "Resolution", "summary": "Detailed summary of this phase...", "mood": "triumphant"}}
  ]
}}

Respond ONLY with valid JSON, no additional text."""


def language_instruction(language: str) -> str:
    return LANGUAGE_INSTRUCTIONS["en"] if language == "en" else LANGUAGE_INSTRUCTIONS["de"]


def mood_instruction(mood: str, language: str) -> str:
    """Pick the tone instruction for a mood, falling back to neutral for unknown moods."""
    english, german = MOOD_INSTRUCTIONS.get((mood or "").lower(), NEUTRAL_MOOD_INSTRUCTION)
    return english if language == "en" else german


def keywords_instruction(keywords: List[str], language: str) -> str:
    if not keywords:
        return ""
    joined = ", ".join(keywords)
    if language == "en":
        return f"Incorporate these keywords into the story: {joined}"
    return f"Baue diese Schlüsselwörter in die Geschichte ein: {joined}"


# =============================================================================
# Image prompts
# =============================================================================

IMAGE_PROMPT_TEMPLATE = """Create a detailed image generation prompt for the following story phase.
The prompt should be suitable for AI image generation models.

Phase: {name}
Summary: {summary}
Mood: {mood}

Generate a prompt that includes:
- Visual composition and framing
- Lighting and atmosphere
- Art style and mood
- Key visual elements

Format: Single paragraph, descriptive, specific.
Respond with ONLY the image prompt text, no additional formatting or explanation."""
