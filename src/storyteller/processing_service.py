import time
import uuid
import base64
import logging
from datetime import datetime, timezone
from typing import Optional

from .config import get_settings
from .pdf_parser import PDFParser
from .story_generator import StoryGenerator
from .pdf_generator import PdfGenerator
from .storage import StoryStorageService
from .story_cache import TTLCache
from .exceptions import StoryNotFoundError
from .models import GeneratedStory, StoryConfiguration, StoryPhase

logger = logging.getLogger(__name__)

# story processing service orchestrates extraction, analysis, narrative, images, pdf rendering and caching
class StoryProcessingService:
    def __init__(
        self,
        pdf_parser: Optional[PDFParser] = None,
        story_generator: Optional[StoryGenerator] = None,
        pdf_generator: Optional[PdfGenerator] = None,
        storage: Optional[StoryStorageService] = None,
        cache: Optional[TTLCache] = None
    ):
        settings = get_settings()
        self.pdf_parser = pdf_parser or PDFParser(settings.max_upload_size_bytes)
        self.story_generator = story_generator or StoryGenerator()
        self.pdf_generator = pdf_generator or PdfGenerator()
        self.storage = storage or StoryStorageService(settings.STORAGE_ROOT, settings.STORAGE_FOLDER)
        self.cache = cache if cache is not None else TTLCache(settings.CACHE_EXPIRATION_HOURS * 3600)

    def create_story_from_pdf(self, pdf_bytes: bytes, file_name: str, config: Optional[StoryConfiguration] = None) -> GeneratedStory:
        """Main processing pipeline"""
        start_time = time.time()

        if pdf_bytes is None:
            logger.error("PDF content is None")
            raise ValueError("pdf_bytes must not be None")
        if not file_name or not file_name.strip():
            logger.error("File name is empty")
            raise ValueError("file_name must not be empty")

        config = config or StoryConfiguration()

        try:
            logger.info(
                f"Starting story generation pipeline for file: {file_name} with config: "
                f"Language={config.language}, Mood={config.mood}, Keywords={', '.join(config.keywords)}"
            )
            logger.info("=" * 60)

            # Step 1: Extract text
            logger.info("Step 1: Extracting text from PDF...")
            extracted_text = self.pdf_parser.extract_text(pdf_bytes, file_name)

            # Step 2: Analyze content
            logger.info("Step 2: Analyzing content...")
            analysis = self.story_generator.analyze_content(extracted_text)

            # Step 3: Generate story
            logger.info("Step 3: Generating story with configuration...")
            story_result = self.story_generator.generate_story(analysis, config)

            # Step 4: Image prompts and images
            logger.info(f"Step 4: Generating image prompts and images for {len(story_result.phases)} phases...")
            phases = []
            for index, phase_data in enumerate(story_result.phases):
                phase = StoryPhase(
                    name=phase_data.name,
                    summary=phase_data.summary,
                    mood=phase_data.mood,
                    order=index
                )

                logger.info(f"  Generating image prompt for phase {index}: {phase.name}")
                phase.image_prompt = self.story_generator.generate_image_prompt(phase)

                # image failures leave the phase without an image
                logger.info(f"  Generating image for phase {index}: {phase.name}")
                try:
                    image_bytes = self.story_generator.generate_image(phase.image_prompt)
                    phase.image_data = base64.b64encode(image_bytes).decode("ascii")
                    logger.info(f"  ✓ Image generated for phase {index}, size: {len(image_bytes)} bytes")
                except Exception as e:
                    logger.error(
                        f"  ✗ Failed to generate image for phase {index}: {phase.name}. Continuing without image. {str(e)}",
                        exc_info=True
                    )
                    phase.image_data = None

                phases.append(phase)

            # assemble story
            story = GeneratedStory(
                id=self._generate_story_id(),
                title=story_result.title,
                phases=phases,
                created_at=datetime.now(timezone.utc),
                source_file_name=file_name
            )

            # Step 5/6: render and save pdf
            logger.info("Step 5: Generating PDF for story...")
            pdf_content = self.pdf_generator.generate_story_pdf(story)

            logger.info("Step 6: Saving PDF to storage...")
            story.pdf_file_path = self.storage.save_story_pdf(story.id, pdf_content)

            # Step 7: cache
            logger.info(f"Step 7: Storing story in cache with ID: {story.id}")
            self._store_in_cache(story)

            duration_ms = (time.time() - start_time) * 1000
            logger.info("=" * 60)
            logger.info(f"✓ SUCCESS! Story {story.id} from {file_name} completed in {duration_ms:.0f}ms")
            logger.info("=" * 60)
            return story

        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(f"✗ ERROR in story generation pipeline for file: {file_name} after {duration_ms:.0f}ms: {str(e)}", exc_info=True)
            raise

    def get_story_by_id(self, story_id: str) -> Optional[GeneratedStory]:
        """Return a cached story or None when it is unknown or expired"""
        if not story_id or not story_id.strip():
            logger.error("Story ID is empty")
            raise ValueError("story_id must not be empty")

        logger.info(f"Retrieving story with ID: {story_id}")
        story = self.cache.get(story_id)
        if story is None:
            logger.warning(f"Story not found in cache: {story_id}")
            return None

        logger.info(f"Story found in cache: {story_id}")
        return story

    def export_story_as_json(self, story_id: str) -> str:
        """Export a cached story as indented JSON"""
        story = self._require_story(story_id, "JSON export")
        json_content = story.model_dump_json(indent=2, by_alias=True)
        logger.info(f"Story exported as JSON successfully: {story_id}, Size: {len(json_content)} bytes")
        return json_content

    def export_story_as_pdf(self, story_id: str) -> bytes:
        """Export a cached story as PDF, rendering it again if it was never saved"""
        story = self._require_story(story_id, "PDF export")

        if not story.pdf_file_path:
            logger.warning(f"PDF file path not set for story {story_id}, generating new PDF")
            pdf_content = self.pdf_generator.generate_story_pdf(story)
            story.pdf_file_path = self.storage.save_story_pdf(story.id, pdf_content)
            self._store_in_cache(story)
            logger.info(f"New PDF generated and saved for story {story_id}")
            return pdf_content

        pdf_content = self.storage.get_story_pdf(story.pdf_file_path)
        logger.info(f"Story PDF exported successfully: {story_id}, Size: {len(pdf_content)} bytes")
        return pdf_content

    def _require_story(self, story_id: str, action: str) -> GeneratedStory:
        if not story_id or not story_id.strip():
            logger.error(f"Story ID is empty for {action}")
            raise ValueError("story_id must not be empty")

        logger.info(f"{action}: {story_id}")
        story = self.get_story_by_id(story_id)
        if story is None:
            logger.warning(f"Story not found for {action}: {story_id}")
            raise StoryNotFoundError(story_id)
        return story

    def _generate_story_id(self) -> str:
        story_id = uuid.uuid4().hex
        logger.debug(f"Generated unique story ID: {story_id}")
        return story_id

    def _store_in_cache(self, story: GeneratedStory):
        self.cache.set(story.id, story)
        logger.debug(f"Story stored in cache with {self.cache.ttl_seconds / 3600:.0f} hour expiration: {story.id}")


# global instance for singleton pattern
processing_service = None

def get_processing_service() -> StoryProcessingService:
    """Get or create the global processing service instance"""
    global processing_service
    if processing_service is None:
        processing_service = StoryProcessingService()
    return processing_service
