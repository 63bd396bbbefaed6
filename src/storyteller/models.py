# pydantic models for data validation and structure
from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from pydantic.alias_generators import to_camel
from typing import List, Optional
from datetime import datetime, timezone
from enum import Enum

# api responses and exports are serialized with camelCase keys
CAMEL_CASE_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# enum for the overall tone a story can be written in
class StoryMood(str, Enum):
    NEUTRAL = "neutral"
    ADVENTURE = "adventure"
    EPIC = "epic"
    HAPPY = "happy"
    SAD = "sad"
    HORROR = "horror"
    DRAMATIC = "dramatic"
    ROMANTIC = "romantic"
    MYSTERIOUS = "mysterious"
    INSPIRATIONAL = "inspirational"
    DARK = "dark"

# model for the user's story settings
class StoryConfiguration(BaseModel):
    language: str = Field("de", pattern=r"^(de|en)$")  # de = german, en = english
    mood: str = StoryMood.NEUTRAL.value
    keywords: List[str] = []

    # build a configuration from raw form values
    @classmethod
    def from_form(cls, language: str = "de", mood: str = "neutral", keywords: Optional[str] = None) -> "StoryConfiguration":
        """Create configuration from form fields, splitting comma separated keywords"""
        keyword_list = []
        if keywords and keywords.strip():
            keyword_list = [k.strip() for k in keywords.split(",") if k.strip()]
        return cls(language=language, mood=mood, keywords=keyword_list)

# model for the facts extracted from the source document
class ContentAnalysisResult(BaseModel):
    key_facts: List[str] = Field(default_factory=list, validation_alias=AliasChoices("key_facts", "keyFacts"))
    entities: List[str] = []
    concepts: List[str] = []
    overall_context: str = Field("", validation_alias=AliasChoices("overall_context", "overallContext"))
    source_type: str = Field("", validation_alias=AliasChoices("source_type", "sourceType"))

# model for a phase as returned by the narrative call
class StoryPhaseData(BaseModel):
    name: str
    summary: str
    mood: str

# model for the raw narrative returned by the llm
class StoryGenerationResult(BaseModel):
    title: str
    phases: List[StoryPhaseData] = []

# model for a single narrative beat of a finished story
class StoryPhase(BaseModel):
    model_config = CAMEL_CASE_CONFIG

    name: str
    summary: str
    mood: str
    image_prompt: str = ""
    order: int = Field(..., ge=0)
    image_data: Optional[str] = None  # base64 encoded image

# model for a complete generated story
class GeneratedStory(BaseModel):
    model_config = CAMEL_CASE_CONFIG

    id: str
    title: str
    phases: List[StoryPhase]
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source_file_name: str
    pdf_file_path: Optional[str] = None

# response model for story endpoints
class StoryResponse(BaseModel):
    model_config = CAMEL_CASE_CONFIG

    success: bool
    story_id: Optional[str] = None
    story: Optional[GeneratedStory] = None
    error_message: Optional[str] = None

# response model for every error the api returns
class ErrorResponse(BaseModel):
    model_config = CAMEL_CASE_CONFIG

    error_code: str
    message: str
    user_friendly_message: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
