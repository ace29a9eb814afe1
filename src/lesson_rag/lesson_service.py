"""Lesson service for reading lesson transcripts from Supabase."""

import asyncio

from supabase import Client, create_client

from src.utils.logging import get_logger

from .config import LessonRAGConfig
from .errors import TranscriptSourceError

logger = get_logger(__name__)


class LessonService:
    """Read-only access to the lessons table.

    Lessons are owned by the course management side of the product; the RAG
    core only ever reads the ``transcript`` column.
    """

    def __init__(self, config: LessonRAGConfig, client: Client | None = None):
        """Initialize lesson service with configuration.

        Args:
            config: Configuration object with Supabase credentials.
            client: Existing Supabase client to reuse (optional).
        """
        self.config = config
        self.client: Client = client or create_client(
            config.supabase_url,
            config.supabase_key,
        )
        logger.info("lesson_service_initialized", table=config.lessons_table)

    async def get_transcript(self, lesson_id: str) -> str | None:
        """Fetch the raw transcript of a lesson.

        Args:
            lesson_id: Lesson identifier.

        Returns:
            The raw transcript, or None if the lesson does not exist or has
            no transcript.

        Raises:
            TranscriptSourceError: If the lesson store cannot be read.
        """
        logger.info("fetching_transcript", lesson_id=lesson_id)

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    lambda: self.client.table(self.config.lessons_table)
                    .select("id, transcript")
                    .eq("id", lesson_id)
                    .limit(1)
                    .execute()
                ),
                timeout=self.config.request_timeout_seconds,
            )
        except TimeoutError as e:
            logger.error("transcript_fetch_timeout", lesson_id=lesson_id)
            raise TranscriptSourceError(f"Timed out reading lesson {lesson_id}") from e
        except Exception as e:
            logger.exception(
                "transcript_fetch_error",
                lesson_id=lesson_id,
                error_type=type(e).__name__,
            )
            raise TranscriptSourceError(f"Failed to read lesson {lesson_id}: {e}") from e

        if not response.data:
            logger.warning("lesson_not_found", lesson_id=lesson_id)
            return None

        transcript = response.data[0].get("transcript")
        if not transcript:
            logger.warning("transcript_unavailable", lesson_id=lesson_id)
            return None

        logger.info(
            "transcript_fetched",
            lesson_id=lesson_id,
            transcript_chars=len(transcript),
        )
        return transcript

    async def list_lessons_with_transcripts(self) -> list[str]:
        """Return the ids of every lesson that has a non-empty transcript.

        Raises:
            TranscriptSourceError: If the lesson store cannot be read.
        """
        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    lambda: self.client.table(self.config.lessons_table)
                    .select("id, transcript")
                    .not_.is_("transcript", "null")
                    .execute()
                ),
                timeout=self.config.request_timeout_seconds,
            )
        except TimeoutError as e:
            logger.error("lesson_listing_timeout")
            raise TranscriptSourceError("Timed out listing lessons") from e
        except Exception as e:
            logger.exception("lesson_listing_failed", error_type=type(e).__name__)
            raise TranscriptSourceError(f"Failed to list lessons: {e}") from e

        lesson_ids = [
            str(row["id"])
            for row in response.data or []
            if (row.get("transcript") or "").strip()
        ]
        logger.info("lessons_listed", count=len(lesson_ids))
        return lesson_ids


class InMemoryLessonService:
    """Lesson transcript source kept in a dict, used with the memory backend."""

    def __init__(self, transcripts: dict[str, str | None] | None = None):
        self.transcripts: dict[str, str | None] = dict(transcripts or {})

    def set_transcript(self, lesson_id: str, transcript: str | None) -> None:
        self.transcripts[lesson_id] = transcript

    async def get_transcript(self, lesson_id: str) -> str | None:
        return self.transcripts.get(lesson_id) or None

    async def list_lessons_with_transcripts(self) -> list[str]:
        return [
            lesson_id
            for lesson_id, transcript in self.transcripts.items()
            if (transcript or "").strip()
        ]
