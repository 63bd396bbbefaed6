# llm service for an openai compatible endpoint (nebius ai studio)
import requests
import base64
import binascii
import logging
import time
from typing import List, Dict, Optional

from .config import get_settings
from .exceptions import AIServiceError, AIServiceErrorType, error_type_for_status

logger = logging.getLogger(__name__)

# service for chat completions and image generation over http
class NebiusLLMService:
    """LLM and image service using the OpenAI compatible Nebius API"""

    # initialize service and validate configuration
    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str],
        text_model: str,
        image_model: str,
        chat_timeout: int = 120,
        image_timeout: int = 120
    ):
        if not api_key or not api_key.strip():
            raise ValueError("Nebius AI API key is not configured.")
        if not base_url or not base_url.strip():
            raise ValueError("Nebius AI base URL is not configured.")

        self.base_url = base_url.rstrip("/")
        self.text_model = text_model
        self.image_model = image_model
        self.chat_timeout = chat_timeout
        self.image_timeout = image_timeout

        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json"
        })

    # post json to the api and translate transport failures into service errors
    def _post(self, path: str, payload: Dict, timeout: int, fallback: AIServiceErrorType, context: str) -> Dict:
        url = f"{self.base_url}/{path}"
        try:
            response = self.session.post(url, json=payload, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise AIServiceError(
                f"{context} timed out. Please try again.",
                AIServiceErrorType.SERVICE_UNAVAILABLE,
                context
            ) from e
        except requests.exceptions.RequestException as e:
            raise AIServiceError(
                f"Network error during {context.lower()}: {str(e)}",
                AIServiceErrorType.SERVICE_UNAVAILABLE,
                context
            ) from e

        if response.status_code != 200:
            logger.error(f"{context} API error: {response.status_code} - {response.text}")
            raise AIServiceError(
                f"AI service error {response.status_code}: {response.text}",
                error_type_for_status(response.status_code, fallback),
                context
            )

        try:
            return response.json()
        except ValueError as e:
            raise AIServiceError(
                f"Failed to parse {context.lower()} response",
                AIServiceErrorType.INVALID_RESPONSE,
                context
            ) from e

    # generate chat completion from message history
    def generate_chat_completion(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int = 2000,
        temperature: float = 0.7,
        fallback: AIServiceErrorType = AIServiceErrorType.STORY_GENERATION_FAILED,
        context: str = "Chat completion"
    ) -> str:
        """Generate chat completion and return the message text"""
        payload = {
            "model": self.text_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature
        }

        result = self._post("chat/completions", payload, self.chat_timeout, fallback, context)

        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise AIServiceError(
                "Invalid response from chat completion API: no message content",
                AIServiceErrorType.INVALID_RESPONSE,
                context
            ) from e

        return (content or "").strip()

    # generate an image and return the raw bytes
    def generate_image(self, prompt: str, size: str = "1024x1024") -> bytes:
        """Generate an image from a prompt"""
        start_time = time.time()
        context = "Image generation"
        logger.info(f"Starting image generation with prompt length: {len(prompt)}")
        logger.debug(f"Image prompt: {prompt}")

        payload = {
            "model": self.image_model,
            "prompt": prompt,
            "n": 1,
            "size": size,
            "response_format": "b64_json"
        }

        result = self._post(
            "images/generations", payload, self.image_timeout,
            AIServiceErrorType.IMAGE_GENERATION_FAILED, context
        )

        data = result.get("data") if isinstance(result, dict) else None
        if not data:
            logger.error("Invalid image generation response: no data array")
            raise AIServiceError(
                "Invalid response from image generation API: no image data",
                AIServiceErrorType.INVALID_RESPONSE,
                context
            )

        b64_image = data[0].get("b64_json") if isinstance(data[0], dict) else None
        if not b64_image:
            logger.error("Invalid image generation response: no b64_json field")
            raise AIServiceError(
                "Invalid response from image generation API: no base64 image data",
                AIServiceErrorType.INVALID_RESPONSE,
                context
            )

        try:
            image_bytes = base64.b64decode(b64_image, validate=True)
        except (binascii.Error, ValueError) as e:
            raise AIServiceError(
                "Image generation API returned invalid base64 data",
                AIServiceErrorType.INVALID_RESPONSE,
                context
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"Image generated successfully in {duration_ms:.0f}ms, size: {len(image_bytes)} bytes")
        return image_bytes

    # test if the endpoint accepts our key and model
    def test_connection(self) -> bool:
        """Test if the LLM service is working"""
        try:
            response = self.generate_chat_completion(
                [{"role": "user", "content": "Hello! Please respond with just 'OK' to confirm you're working."}],
                max_tokens=10,
                context="Connection test"
            )
            logger.info(f"✓ LLM test successful. Response: {response}")
            return True
        except AIServiceError as e:
            logger.error(f"✗ LLM test failed: {str(e)}")
            return False

# global instance for singleton pattern
llm_service = None

# get or create the global llm service instance
def get_llm_service() -> NebiusLLMService:
    """Get or create the global LLM service instance"""
    global llm_service
    if llm_service is None:
        settings = get_settings()
        llm_service = NebiusLLMService(
            api_key=settings.NEBIUS_API_KEY,
            base_url=settings.NEBIUS_BASE_URL,
            text_model=settings.NEBIUS_TEXT_MODEL,
            image_model=settings.NEBIUS_IMAGE_MODEL,
            chat_timeout=settings.CHAT_TIMEOUT_SECONDS,
            image_timeout=settings.IMAGE_TIMEOUT_SECONDS
        )
    return llm_service
