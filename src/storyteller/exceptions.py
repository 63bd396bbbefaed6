# domain exceptions raised by the story services
from enum import Enum
from typing import Optional


class PDFProcessingErrorType(str, Enum):
    INVALID_FORMAT = "invalid_format"
    FILE_SIZE_EXCEEDED = "file_size_exceeded"
    CORRUPTED_FILE = "corrupted_file"
    NO_TEXT_CONTENT = "no_text_content"
    EXTRACTION_FAILED = "extraction_failed"


class AIServiceErrorType(str, Enum):
    AUTHENTICATION_FAILED = "authentication_failed"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    SERVICE_UNAVAILABLE = "service_unavailable"
    INVALID_RESPONSE = "invalid_response"
    CONTENT_ANALYSIS_FAILED = "content_analysis_failed"
    STORY_GENERATION_FAILED = "story_generation_failed"
    IMAGE_PROMPT_GENERATION_FAILED = "image_prompt_generation_failed"
    IMAGE_GENERATION_FAILED = "image_generation_failed"


class StorageErrorType(str, Enum):
    FILE_NOT_FOUND = "file_not_found"
    SAVE_FAILED = "save_failed"
    READ_FAILED = "read_failed"
    DIRECTORY_CREATION_FAILED = "directory_creation_failed"


class PDFProcessingError(Exception):
    """Raised when an uploaded PDF cannot be read"""

    def __init__(self, message: str, error_type: PDFProcessingErrorType, file_name: Optional[str] = None):
        super().__init__(message)
        self.error_type = error_type
        self.file_name = file_name


class AIServiceError(Exception):
    """Raised when a call to the AI endpoint fails or returns something unusable"""

    def __init__(self, message: str, error_type: AIServiceErrorType, request_context: Optional[str] = None):
        super().__init__(message)
        self.error_type = error_type
        self.request_context = request_context


class StorageError(Exception):
    """Raised when a story PDF cannot be written or read"""

    def __init__(self, message: str, error_type: StorageErrorType, file_path: Optional[str] = None):
        super().__init__(message)
        self.error_type = error_type
        self.file_path = file_path


class StoryNotFoundError(Exception):
    def __init__(self, story_id: str, message: Optional[str] = None):
        super().__init__(message or f"Story with ID '{story_id}' was not found")
        self.story_id = story_id


# map an http status from the ai endpoint to an error type
def error_type_for_status(status_code: int, fallback: AIServiceErrorType) -> AIServiceErrorType:
    if status_code in (401, 403):
        return AIServiceErrorType.AUTHENTICATION_FAILED
    if status_code == 429:
        return AIServiceErrorType.RATE_LIMIT_EXCEEDED
    if status_code == 503:
        return AIServiceErrorType.SERVICE_UNAVAILABLE
    return fallback
