# pdf parsing using pymupdf
import fitz  # PyMuPDF
import os
import logging
from typing import Optional

from .exceptions import PDFProcessingError, PDFProcessingErrorType

logger = logging.getLogger(__name__)

MAX_FILE_SIZE_BYTES = 10 * 1024 * 1024  # 10MB
ALLOWED_CONTENT_TYPES = ("application/pdf",)
ALLOWED_EXTENSIONS = (".pdf",)

# class for validating uploads and extracting their text
class PDFParser:
    def __init__(self, max_file_size: int = MAX_FILE_SIZE_BYTES):
        self.max_file_size = max_file_size

    # check an upload's size, content type and extension before reading it
    def validate_pdf_file(self, filename: Optional[str], content_type: Optional[str], size: int) -> bool:
        """Validate an uploaded file before processing"""
        if not filename:
            logger.warning("File validation failed: no file name")
            return False

        if size == 0:
            logger.warning("File validation failed: file is empty")
            return False

        if size > self.max_file_size:
            logger.warning(f"File validation failed: file size {size} exceeds maximum {self.max_file_size}")
            return False

        if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
            logger.warning(f"File validation failed: invalid content type {content_type}")
            return False

        extension = os.path.splitext(filename)[1].lower()
        if extension not in ALLOWED_EXTENSIONS:
            logger.warning(f"File validation failed: invalid extension {extension}")
            return False

        logger.info(f"File validation successful: {filename}, Size: {size} bytes")
        return True

    # extract the text of every page into a single string
    def extract_text(self, pdf_bytes: bytes, file_name: Optional[str] = None) -> str:
        """Extract text from PDF bytes"""
        if pdf_bytes is None:
            logger.error("PDF content is None")
            raise ValueError("pdf_bytes must not be None")

        logger.info("Starting PDF text extraction")

        try:
            doc = fitz.open(stream=pdf_bytes, filetype="pdf")
        except Exception as e:
            logger.error(f"Error opening PDF: {str(e)}")
            raise PDFProcessingError(
                "Failed to extract text from PDF. The file may be corrupted or unreadable.",
                PDFProcessingErrorType.CORRUPTED_FILE,
                file_name
            ) from e

        try:
            logger.info(f"PDF opened successfully. Page count: {doc.page_count}")

            if doc.page_count == 0:
                logger.warning("PDF document contains no pages")
                raise PDFProcessingError(
                    "PDF document contains no pages",
                    PDFProcessingErrorType.NO_TEXT_CONTENT,
                    file_name
                )

            # keep a blank line between pages
            page_texts = []
            for page in doc:
                page_text = page.get_text()
                if page_text and page_text.strip():
                    page_texts.append(page_text.strip())

            result = "\n\n".join(page_texts).strip()
        except PDFProcessingError:
            raise
        except Exception as e:
            logger.error(f"Error extracting text from PDF: {str(e)}")
            raise PDFProcessingError(
                "Failed to extract text from PDF. The file may be corrupted or unreadable.",
                PDFProcessingErrorType.CORRUPTED_FILE,
                file_name
            ) from e
        finally:
            doc.close()

        if not result:
            logger.warning("PDF document contains no extractable text")
            raise PDFProcessingError(
                "PDF document contains no extractable text",
                PDFProcessingErrorType.NO_TEXT_CONTENT,
                file_name
            )

        logger.info(f"PDF text extraction completed. Extracted {len(result)} characters")
        return result
