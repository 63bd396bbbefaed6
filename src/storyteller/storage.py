# stores generated story pdfs on the local filesystem
import os
import logging
from pathlib import Path

from .exceptions import StorageError, StorageErrorType

logger = logging.getLogger(__name__)

# pdfs live under <root>/<folder>/<story id>.pdf
class StoryStorageService:
    def __init__(self, root: str = "wwwroot", folder: str = "generated-stories"):
        self.root = Path(root)
        self.folder = folder
        self._ensure_storage_directory()

    @property
    def storage_path(self) -> Path:
        return self.root / self.folder

    def _ensure_storage_directory(self):
        try:
            if not self.storage_path.exists():
                logger.info(f"Creating storage directory at {self.storage_path}")
                self.storage_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Failed to create storage directory: {str(e)}")
            raise StorageError(
                f"Failed to create storage directory: {str(e)}",
                StorageErrorType.DIRECTORY_CREATION_FAILED,
                str(self.storage_path)
            ) from e

    # write the pdf and return its path relative to the storage root
    def save_story_pdf(self, story_id: str, pdf_content: bytes) -> str:
        """Save a story PDF and return its relative path"""
        if not story_id or not story_id.strip():
            logger.error("Story ID is empty")
            raise ValueError("story_id must not be empty")
        if not pdf_content:
            logger.error(f"PDF content is empty for story {story_id}")
            raise ValueError("PDF content cannot be empty")

        file_name = f"{story_id}.pdf"
        file_path = self.storage_path / file_name
        logger.info(f"Saving PDF for story {story_id} to {file_path}")

        try:
            # the folder may have been removed since startup
            self.storage_path.mkdir(parents=True, exist_ok=True)
            with open(file_path, "wb") as f:
                f.write(pdf_content)
        except PermissionError as e:
            logger.error(f"Access denied when saving PDF for story {story_id}")
            raise StorageError("Access denied when saving PDF file", StorageErrorType.SAVE_FAILED, story_id) from e
        except OSError as e:
            logger.error(f"IO error saving PDF for story {story_id}: {str(e)}")
            raise StorageError(f"Failed to save PDF file: {str(e)}", StorageErrorType.SAVE_FAILED, story_id) from e

        logger.info(f"PDF saved successfully for story {story_id}, Size: {len(pdf_content)} bytes")
        return os.path.join(self.folder, file_name)

    # read a pdf previously returned by save_story_pdf
    def get_story_pdf(self, file_path: str) -> bytes:
        """Read a stored story PDF"""
        if not file_path or not file_path.strip():
            logger.error("File path is empty")
            raise ValueError("file_path must not be empty")

        full_path = self.root / file_path
        logger.info(f"Retrieving PDF from {full_path}")

        if not full_path.is_file():
            logger.warning(f"PDF file not found at {full_path}")
            raise StorageError(f"PDF file not found: {file_path}", StorageErrorType.FILE_NOT_FOUND, file_path)

        try:
            with open(full_path, "rb") as f:
                pdf_content = f.read()
        except PermissionError as e:
            logger.error(f"Access denied when retrieving PDF from {file_path}")
            raise StorageError("Access denied when reading PDF file", StorageErrorType.READ_FAILED, file_path) from e
        except OSError as e:
            logger.error(f"IO error retrieving PDF from {file_path}: {str(e)}")
            raise StorageError(f"Failed to read PDF file: {str(e)}", StorageErrorType.READ_FAILED, file_path) from e

        logger.info(f"PDF retrieved successfully from {full_path}, Size: {len(pdf_content)} bytes")
        return pdf_content
