# fastapi web api for pdf to story conversion
from fastapi import FastAPI, UploadFile, File, Form, Depends
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from pydantic import ValidationError
import time
import uuid
import logging
from typing import Optional

from .config import get_settings
from .processing_service import StoryProcessingService, get_processing_service
from .models import StoryConfiguration, StoryResponse, ErrorResponse
from .exceptions import (
    PDFProcessingError, PDFProcessingErrorType,
    AIServiceError, AIServiceErrorType,
    StorageError, StorageErrorType,
    StoryNotFoundError
)

# configure logging
logging.basicConfig(
    level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
)
logger = logging.getLogger(__name__)

# initialize fastapi application
app = FastAPI(
    title="Dragonscale Storyteller API",
    description="Turn PDF documents into illustrated four phase stories using AI",
    version="1.0.0"
)

# add cors middleware to allow cross-origin requests
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# log every request with a short id, its status and duration
class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        request_id = uuid.uuid4().hex[:8]
        start_time = time.time()
        logger.info(f"[{request_id}] Request started: {request.method} {request.url.path}")
        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] Request failed: {request.method} {request.url.path} - "
                f"Duration: {duration_ms:.0f}ms - Error: {str(e)}"
            )
            raise
        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            f"[{request_id}] Request completed: {request.method} {request.url.path} - "
            f"Status: {response.status_code} - Duration: {duration_ms:.0f}ms"
        )
        response.headers["X-Request-ID"] = request_id
        return response

app.add_middleware(RequestLoggingMiddleware)

STORY_NOT_FOUND_MESSAGE = "The requested story could not be found. It may have expired or never existed."

PDF_ERROR_MESSAGES = {
    PDFProcessingErrorType.INVALID_FORMAT: "The file format is not supported. Please upload a valid PDF file.",
    PDFProcessingErrorType.FILE_SIZE_EXCEEDED: "The file size exceeds the maximum allowed size of 10MB.",
    PDFProcessingErrorType.CORRUPTED_FILE: "The PDF file appears to be corrupted or unreadable.",
    PDFProcessingErrorType.NO_TEXT_CONTENT: "The PDF file contains no extractable text content.",
    PDFProcessingErrorType.EXTRACTION_FAILED: "Failed to extract text from the PDF file.",
}

AI_ERROR_MESSAGES = {
    AIServiceErrorType.AUTHENTICATION_FAILED: "AI service authentication failed. Please contact support.",
    AIServiceErrorType.RATE_LIMIT_EXCEEDED: "Too many requests. Please try again in a few moments.",
    AIServiceErrorType.SERVICE_UNAVAILABLE: "AI service is temporarily unavailable. Please try again later.",
    AIServiceErrorType.INVALID_RESPONSE: "Received an invalid response from AI service. Please try again.",
}


def error_response(status_code: int, error_code: str, message: str, user_friendly_message: str) -> JSONResponse:
    body = ErrorResponse(error_code=error_code, message=message, user_friendly_message=user_friendly_message)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", by_alias=True))


def no_file_response() -> JSONResponse:
    logger.warning("Upload failed: No file provided")
    return error_response(400, "NO_FILE", "No file was provided in the request", "Please select a PDF file to upload")


def invalid_file_response(file_name: str) -> JSONResponse:
    return error_response(
        400, "INVALID_FILE",
        f"File validation failed for {file_name}",
        "The file must be a valid PDF and not exceed 10MB in size"
    )


def invalid_id_response() -> JSONResponse:
    return error_response(400, "INVALID_ID", "Story ID cannot be empty", "Please provide a valid story ID")


def story_not_found_response(message: str) -> JSONResponse:
    return error_response(404, "STORY_NOT_FOUND", message, STORY_NOT_FOUND_MESSAGE)


def attachment(content: bytes, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )

# ============================================================================
# API ROUTES
# ============================================================================

# endpoint to upload a pdf and generate a story from it
@app.post("/api/storygenerator/upload")
async def upload_pdf(
    file: Optional[UploadFile] = File(None),
    language: str = Form("de"),
    mood: str = Form("neutral"),
    keywords: Optional[str] = Form(None),
    service: StoryProcessingService = Depends(get_processing_service)
):
    """Upload a PDF file and generate a story from its content"""
    file_name = file.filename if file else None
    logger.info(f"Received PDF upload request: {file_name}")

    try:
        if not file:
            return no_file_response()

        # reject oversized uploads before reading them, then read at most one byte past the limit
        max_size = service.pdf_parser.max_file_size
        if file.size is not None and file.size > max_size:
            logger.warning(f"Upload failed: file size {file.size} exceeds maximum {max_size} - {file.filename}")
            return invalid_file_response(file.filename)

        content = await file.read(max_size + 1)
        if not content:
            return no_file_response()

        # validate pdf file format and size
        if not service.pdf_parser.validate_pdf_file(file.filename, file.content_type, len(content)):
            logger.warning(f"Upload failed: Invalid PDF file - {file.filename}")
            return invalid_file_response(file.filename)

        try:
            config = StoryConfiguration.from_form(language, mood, keywords)
        except ValidationError as e:
            logger.warning(f"Upload failed: Invalid story configuration - {str(e)}")
            return error_response(
                400, "INVALID_CONFIGURATION",
                f"Invalid story configuration: language must be 'de' or 'en', got '{language}'",
                "Please choose a supported language (de or en)"
            )

        logger.info(f"Story configuration: Language={config.language}, Mood={config.mood}, Keywords={', '.join(config.keywords)}")

        # run the blocking pipeline off the event loop
        story = await run_in_threadpool(service.create_story_from_pdf, content, file.filename, config)

        logger.info(f"Story generated successfully: {story.id} from {file.filename}")
        return StoryResponse(success=True, story_id=story.id, story=story).model_dump(mode="json", by_alias=True)

    except PDFProcessingError as e:
        logger.error(f"PDF processing error for file: {file_name}, ErrorType: {e.error_type.value}")
        return error_response(
            400, f"PDF_{e.error_type.name}", str(e),
            PDF_ERROR_MESSAGES.get(e.error_type, "Unable to process the PDF file.")
        )
    except AIServiceError as e:
        logger.error(f"AI service error for file: {file_name}, ErrorType: {e.error_type.value}")
        status_code = 429 if e.error_type == AIServiceErrorType.RATE_LIMIT_EXCEEDED else 503
        return error_response(
            status_code, f"AI_{e.error_type.name}", str(e),
            AI_ERROR_MESSAGES.get(e.error_type, "An error occurred while generating the story. Please try again.")
        )
    except StorageError as e:
        logger.error(f"Storage error for file: {file_name}, ErrorType: {e.error_type.value}")
        return error_response(
            500, f"STORAGE_{e.error_type.name}", str(e),
            "Failed to save the generated story. Please try again."
        )
    except Exception as e:
        logger.error(f"Unexpected error during story generation for file: {file_name}: {str(e)}", exc_info=True)
        return error_response(
            500, "INTERNAL_ERROR",
            "An unexpected error occurred during story generation",
            "We encountered an error while processing your file. Please try again later."
        )

# endpoint to fetch a cached story
@app.get("/api/storygenerator/{story_id}")
async def get_story(story_id: str, service: StoryProcessingService = Depends(get_processing_service)):
    """Retrieve a generated story by its ID"""
    if not story_id.strip():
        logger.warning("Get story failed: Invalid story ID")
        return invalid_id_response()

    try:
        story = service.get_story_by_id(story_id)
    except Exception as e:
        logger.error(f"Error retrieving story: {story_id}: {str(e)}", exc_info=True)
        return error_response(
            500, "INTERNAL_ERROR",
            "An unexpected error occurred while retrieving the story",
            "We encountered an error while retrieving your story. Please try again later."
        )

    if story is None:
        return story_not_found_response(f"Story with ID '{story_id}' was not found")

    logger.info(f"Story retrieved successfully: {story_id}")
    return StoryResponse(success=True, story_id=story.id, story=story).model_dump(mode="json", by_alias=True)

@app.get("/api/storygenerator/{story_id}/export/json")
async def export_story_json(story_id: str, service: StoryProcessingService = Depends(get_processing_service)):
    """Download a story as JSON"""
    if not story_id.strip():
        return invalid_id_response()

    try:
        json_content = service.export_story_as_json(story_id)
    except StoryNotFoundError as e:
        logger.warning(f"Story not found for JSON export: {story_id}")
        return story_not_found_response(str(e))
    except Exception as e:
        logger.error(f"Error exporting story as JSON: {story_id}: {str(e)}", exc_info=True)
        return error_response(
            500, "INTERNAL_ERROR",
            "An unexpected error occurred while exporting the story",
            "We encountered an error while exporting your story. Please try again later."
        )

    return attachment(json_content.encode("utf-8"), "application/json", f"story-{story_id}.json")

@app.get("/api/storygenerator/{story_id}/export/pdf")
async def export_story_pdf(story_id: str, service: StoryProcessingService = Depends(get_processing_service)):
    """Download a story as PDF"""
    if not story_id.strip():
        return invalid_id_response()

    try:
        pdf_content = await run_in_threadpool(service.export_story_as_pdf, story_id)
    except StoryNotFoundError as e:
        logger.warning(f"Story not found for PDF export: {story_id}")
        return story_not_found_response(str(e))
    except StorageError as e:
        logger.error(f"Storage error during PDF export: {story_id}, ErrorType: {e.error_type.value}")
        status_code = 404 if e.error_type == StorageErrorType.FILE_NOT_FOUND else 500
        return error_response(
            status_code, f"STORAGE_{e.error_type.name}", str(e),
            "Failed to retrieve the PDF file. Please try regenerating the story."
        )
    except Exception as e:
        logger.error(f"Error exporting story as PDF: {story_id}: {str(e)}", exc_info=True)
        return error_response(
            500, "INTERNAL_ERROR",
            "An unexpected error occurred while exporting the story",
            "We encountered an error while exporting your story. Please try again later."
        )

    return attachment(pdf_content, "application/pdf", f"story-{story_id}.pdf")

@app.get("/helloworld")
async def hello_world():
    return "Hello from the other side."

@app.get("/api")
async def api_info():
    """API information endpoint"""
    return {
        "message": "Dragonscale Storyteller API",
        "version": "1.0.0",
        "endpoints": {
            "upload": "/api/storygenerator/upload",
            "story": "/api/storygenerator/{story_id}",
            "export_json": "/api/storygenerator/{story_id}/export/json",
            "export_pdf": "/api/storygenerator/{story_id}/export/pdf",
            "health": "/health"
        }
    }

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "dragonscale-storyteller"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
