# renders a generated story into a pdf document using pymupdf
import fitz  # PyMuPDF
import base64
import logging
import time
from typing import Optional

from .models import GeneratedStory, StoryPhase
from .exceptions import StorageError, StorageErrorType

logger = logging.getLogger(__name__)

CM = 72 / 2.54  # points per centimetre

TITLE_COLOR = (0.05, 0.28, 0.63)
HEADING_COLOR = (0.08, 0.4, 0.75)
TEXT_COLOR = (0, 0, 0)
SEPARATOR_COLOR = (0.88, 0.88, 0.88)
FOOTER_COLOR = (0.4, 0.4, 0.4)


class StoryPdfRenderError(Exception):
    pass


# class that lays out a story page by page
class PdfGenerator:
    # initialize page geometry and font sizes
    def __init__(self):
        self.page_rect = fitz.paper_rect("a4")
        self.margin = 2 * CM
        self.title_size = 24
        self.heading_size = 18
        self.body_size = 12
        self.footer_size = 9
        self.image_max_height = 300
        self.section_spacing = 20

    @property
    def content_width(self) -> float:
        return self.page_rect.width - 2 * self.margin

    @property
    def content_bottom(self) -> float:
        # keep room for the footer
        return self.page_rect.height - self.margin - self.footer_size * 2

    # main method to create the pdf bytes for a story
    def generate_story_pdf(self, story: GeneratedStory) -> bytes:
        """Generate a PDF document for a story"""
        start_time = time.time()

        if story is None:
            logger.error("Story object is None")
            raise ValueError("story must not be None")
        if not story.id or not story.id.strip():
            logger.error("Story ID is empty")
            raise ValueError("Story ID cannot be empty")
        if not story.phases:
            logger.error(f"Story has no phases: {story.id}")
            raise ValueError("Story must have at least one phase")

        logger.info(f"Generating PDF for story: {story.id}")

        try:
            doc = fitz.open()
            try:
                doc.set_metadata({
                    "title": story.title,
                    "creator": "Dragonscale Storyteller",
                    "subject": f"Story generated from {story.source_file_name}",
                })

                page, y = self._new_page(doc, story.title)

                for phase in sorted(story.phases, key=lambda p: p.order):
                    page, y = self._render_phase(doc, page, y, phase, story.title)

                self._add_footers(doc)
                pdf_bytes = doc.tobytes(garbage=3, deflate=True)
            finally:
                doc.close()
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(f"Error generating PDF for story: {story.id} after {duration_ms:.0f}ms: {str(e)}", exc_info=True)
            raise StorageError(
                f"Failed to generate PDF: {str(e)}",
                StorageErrorType.SAVE_FAILED,
                story.id
            ) from e

        duration_ms = (time.time() - start_time) * 1000
        logger.info(f"PDF generated successfully for story: {story.id}, Size: {len(pdf_bytes)} bytes, Duration: {duration_ms:.0f}ms")
        return pdf_bytes

    # start a new page with the story title as header
    def _new_page(self, doc, title: str):
        page = doc.new_page(width=self.page_rect.width, height=self.page_rect.height)
        y = self.margin
        y = self._write_text(page, y, title, self.title_size, "hebo", TITLE_COLOR, align=fitz.TEXT_ALIGN_CENTER)
        if y is None:
            raise StoryPdfRenderError("Story title does not fit on a page")
        return page, y + 1 * CM

    # write wrapped text at y and return the new y, or None if it does not fit
    def _write_text(self, page, y: float, text: str, fontsize: float, fontname: str, color, align=fitz.TEXT_ALIGN_LEFT) -> Optional[float]:
        rect = fitz.Rect(self.margin, y, self.margin + self.content_width, self.content_bottom)
        if rect.is_empty:
            return None
        remaining = page.insert_textbox(rect, text, fontsize=fontsize, fontname=fontname, color=color, align=align)
        if remaining < 0:
            return None
        return y + (rect.height - remaining)

    # write text, moving to a fresh page when it does not fit
    def _write_flowing(self, doc, page, y: float, title: str, text: str, fontsize: float, fontname: str, color):
        new_y = self._write_text(page, y, text, fontsize, fontname, color)
        if new_y is None:
            page, y = self._new_page(doc, title)
            new_y = self._write_text(page, y, text, fontsize, fontname, color)
            if new_y is None:
                raise StoryPdfRenderError(f"Text block does not fit on a page: {text[:40]}...")
        return page, new_y

    def _decode_image(self, phase: StoryPhase):
        """Decode a phase image, returning (bytes, width, height) or None"""
        try:
            image_bytes = base64.b64decode(phase.image_data, validate=True)
            pixmap = fitz.Pixmap(image_bytes)
            return image_bytes, pixmap.width, pixmap.height
        except Exception as e:
            logger.warning(f"Failed to embed image for phase: {phase.name}: {str(e)}")
            return None

    # render heading, image, summary and separator for one phase
    def _render_phase(self, doc, page, y: float, phase: StoryPhase, title: str):
        page, y = self._write_flowing(doc, page, y, title, phase.name, self.heading_size, "hebo", HEADING_COLOR)

        if phase.image_data:
            decoded = self._decode_image(phase)
            if decoded:
                image_bytes, width, height = decoded
                display_height = min(self.image_max_height, self.content_width * height / max(width, 1))
                y += 10
                if y + display_height > self.content_bottom:
                    page, y = self._new_page(doc, title)
                image_rect = fitz.Rect(self.margin, y, self.margin + self.content_width, y + display_height)
                page.insert_image(image_rect, stream=image_bytes, keep_proportion=True)
                y += display_height
                logger.debug(f"Embedded image for phase: {phase.name}")

        page, y = self._write_flowing(doc, page, y + 10, title, phase.summary, self.body_size, "helv", TEXT_COLOR)

        # separator line between phases
        y += self.section_spacing
        if y < self.content_bottom:
            page.draw_line(
                fitz.Point(self.margin, y),
                fitz.Point(self.margin + self.content_width, y),
                color=SEPARATOR_COLOR,
                width=1
            )
        return page, y + self.section_spacing

    # add "page x of y" to every page
    def _add_footers(self, doc):
        total = doc.page_count
        for index, page in enumerate(doc):
            footer_rect = fitz.Rect(
                self.margin,
                self.page_rect.height - self.margin - self.footer_size * 1.5,
                self.margin + self.content_width,
                self.page_rect.height - self.margin + self.footer_size
            )
            page.insert_textbox(
                footer_rect,
                f"Page {index + 1} of {total}",
                fontsize=self.footer_size,
                fontname="helv",
                color=FOOTER_COLOR,
                align=fitz.TEXT_ALIGN_CENTER
            )
