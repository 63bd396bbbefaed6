# turns extracted pdf text into an analysis, a four phase story and image prompts
from typing import Any, Dict, Optional
import json
import logging
import re
import time

from pydantic import ValidationError

from .models import ContentAnalysisResult, StoryConfiguration, StoryGenerationResult, StoryPhase
from .exceptions import AIServiceError, AIServiceErrorType
from .llm_service import get_llm_service
from . import prompts

logger = logging.getLogger(__name__)

REQUIRED_PHASE_COUNT = 4


# pull a json object out of an llm reply that may be wrapped in prose or code fences
def parse_json_response(response: str) -> Dict[str, Any]:
    response = (response or "").strip()
    # remove markdown code blocks if present
    if response.startswith("```"):
        response = response.split("```")[1]
        if response.startswith("json"):
            response = response[4:]
        response = response.strip()

    try:
        data = json.loads(response)
    except json.JSONDecodeError:
        json_match = re.search(r'\{.*\}', response, re.DOTALL)
        if not json_match:
            raise
        data = json.loads(json_match.group())

    if not isinstance(data, dict):
        raise json.JSONDecodeError("Expected a JSON object", response, 0)
    return data


# wraps each ai step of the story pipeline
class StoryGenerator:
    # initialize with llm service
    def __init__(self, llm_service=None):
        self.llm_service = llm_service or get_llm_service()

    def analyze_content(self, text: str) -> ContentAnalysisResult:
        """Extract facts, entities and concepts from document text"""
        start_time = time.time()
        context = "Content analysis"
        logger.info(f"Starting content analysis for text of length {len(text)}")

        messages = [
            {"role": "system", "content": prompts.ANALYSIS_SYSTEM_MESSAGE},
            {"role": "user", "content": prompts.ANALYSIS_PROMPT.format(text=text)}
        ]

        try:
            response = self.llm_service.generate_chat_completion(
                messages,
                max_tokens=2000,
                temperature=0.3,
                fallback=AIServiceErrorType.CONTENT_ANALYSIS_FAILED,
                context=context
            )
            logger.debug(f"Received analysis response: {response}")
            analysis = ContentAnalysisResult.model_validate(parse_json_response(response))
        except AIServiceError:
            raise
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Failed to parse AI response as JSON after {self._elapsed_ms(start_time):.0f}ms")
            raise AIServiceError(
                "Failed to parse AI response. The response was not valid JSON.",
                AIServiceErrorType.INVALID_RESPONSE,
                context
            ) from e
        except Exception as e:
            logger.error(f"Unexpected error during content analysis: {str(e)}", exc_info=True)
            raise AIServiceError(
                f"Unexpected error during content analysis: {str(e)}",
                AIServiceErrorType.CONTENT_ANALYSIS_FAILED,
                context
            ) from e

        logger.info(f"Content analysis completed successfully in {self._elapsed_ms(start_time):.0f}ms")
        return analysis

    def build_story_prompt(self, analysis: ContentAnalysisResult, config: StoryConfiguration) -> str:
        return prompts.STORY_PROMPT.format(
            language_instruction=prompts.language_instruction(config.language),
            mood_instruction=prompts.mood_instruction(config.mood, config.language),
            keywords_instruction=prompts.keywords_instruction(config.keywords, config.language),
            analysis_json=json.dumps(analysis.model_dump(), indent=2, ensure_ascii=False)
        )

    def generate_story(self, analysis: ContentAnalysisResult, config: Optional[StoryConfiguration] = None) -> StoryGenerationResult:
        """Generate a titled four phase story from a content analysis"""
        start_time = time.time()
        context = "Story generation"
        config = config or StoryConfiguration()
        logger.info(f"Starting story generation from analysis with config: Language={config.language}, Mood={config.mood}")

        messages = [
            {"role": "system", "content": prompts.STORY_SYSTEM_MESSAGE},
            {"role": "user", "content": self.build_story_prompt(analysis, config)}
        ]

        try:
            response = self.llm_service.generate_chat_completion(
                messages,
                max_tokens=2000,
                temperature=0.8,
                fallback=AIServiceErrorType.STORY_GENERATION_FAILED,
                context=context
            )
            logger.debug(f"Received story generation response: {response}")
            result = StoryGenerationResult.model_validate(parse_json_response(response))
        except AIServiceError:
            raise
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(f"Failed to parse AI response as JSON after {self._elapsed_ms(start_time):.0f}ms")
            raise AIServiceError(
                "Failed to parse AI response. The response was not valid JSON.",
                AIServiceErrorType.INVALID_RESPONSE,
                context
            ) from e
        except Exception as e:
            logger.error(f"Unexpected error during story generation: {str(e)}", exc_info=True)
            raise AIServiceError(
                f"Unexpected error during story generation: {str(e)}",
                AIServiceErrorType.STORY_GENERATION_FAILED,
                context
            ) from e

        if len(result.phases) < REQUIRED_PHASE_COUNT:
            logger.error(f"Failed to generate a complete story with 4 phases. Received {len(result.phases)} phases")
            raise AIServiceError(
                "Failed to generate a complete story with 4 phases",
                AIServiceErrorType.STORY_GENERATION_FAILED,
                context
            )

        logger.info(f"Story generation completed successfully with title: {result.title} in {self._elapsed_ms(start_time):.0f}ms")
        return result

    def generate_image_prompt(self, phase: StoryPhase) -> str:
        """Describe a phase as a single paragraph image prompt"""
        start_time = time.time()
        context = f"Image prompt generation for phase: {phase.name}"
        logger.info(f"Generating image prompt for phase: {phase.name}")

        messages = [
            {"role": "system", "content": prompts.IMAGE_PROMPT_SYSTEM_MESSAGE},
            {"role": "user", "content": prompts.IMAGE_PROMPT_TEMPLATE.format(
                name=phase.name, summary=phase.summary, mood=phase.mood
            )}
        ]

        try:
            image_prompt = self.llm_service.generate_chat_completion(
                messages,
                max_tokens=500,
                temperature=0.7,
                fallback=AIServiceErrorType.IMAGE_PROMPT_GENERATION_FAILED,
                context=context
            ).strip()
        except AIServiceError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error during image prompt generation: {str(e)}", exc_info=True)
            raise AIServiceError(
                f"Unexpected error during image prompt generation: {str(e)}",
                AIServiceErrorType.IMAGE_PROMPT_GENERATION_FAILED,
                context
            ) from e

        if not image_prompt:
            raise AIServiceError(
                "Received an empty image prompt",
                AIServiceErrorType.IMAGE_PROMPT_GENERATION_FAILED,
                context
            )

        logger.info(f"Image prompt generated successfully for phase: {phase.name} in {self._elapsed_ms(start_time):.0f}ms")
        logger.debug(f"Generated prompt: {image_prompt}")
        return image_prompt

    def generate_image(self, prompt: str) -> bytes:
        return self.llm_service.generate_image(prompt)

    @staticmethod
    def _elapsed_ms(start_time: float) -> float:
        return (time.time() - start_time) * 1000
