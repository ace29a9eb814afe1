"""Unit tests for lesson transcript sources."""

from unittest.mock import MagicMock

import pytest

from src.lesson_rag.config import LessonRAGConfig
from src.lesson_rag.errors import TranscriptSourceError
from src.lesson_rag.lesson_service import InMemoryLessonService, LessonService


@pytest.mark.unit
class TestLessonService:
    """Test suite for LessonService class."""

    @pytest.fixture
    def config(self) -> LessonRAGConfig:
        return LessonRAGConfig(
            supabase_url="https://test.supabase.co",
            supabase_key="test_key",
            lessons_table="lessons",
            request_timeout_seconds=5,
        )

    @pytest.fixture
    def mock_client(self) -> MagicMock:
        return MagicMock()

    def _select_chain(self, client: MagicMock) -> MagicMock:
        return client.table.return_value.select.return_value.eq.return_value.limit.return_value

    @pytest.mark.asyncio
    async def test_get_transcript_returns_text(
        self, config: LessonRAGConfig, mock_client: MagicMock
    ) -> None:
        self._select_chain(mock_client).execute.return_value = MagicMock(
            data=[{"id": "L1", "transcript": "Hello."}]
        )
        service = LessonService(config, client=mock_client)

        assert await service.get_transcript("L1") == "Hello."
        mock_client.table.assert_called_with("lessons")
        mock_client.table.return_value.select.return_value.eq.assert_called_with("id", "L1")

    @pytest.mark.asyncio
    async def test_missing_lesson_returns_none(
        self, config: LessonRAGConfig, mock_client: MagicMock
    ) -> None:
        self._select_chain(mock_client).execute.return_value = MagicMock(data=[])
        service = LessonService(config, client=mock_client)

        assert await service.get_transcript("missing") is None

    @pytest.mark.asyncio
    async def test_empty_transcript_returns_none(
        self, config: LessonRAGConfig, mock_client: MagicMock
    ) -> None:
        self._select_chain(mock_client).execute.return_value = MagicMock(
            data=[{"id": "L1", "transcript": None}]
        )
        service = LessonService(config, client=mock_client)

        assert await service.get_transcript("L1") is None

    @pytest.mark.asyncio
    async def test_read_failure_raises(self, config: LessonRAGConfig, mock_client: MagicMock) -> None:
        self._select_chain(mock_client).execute.side_effect = Exception("connection reset")
        service = LessonService(config, client=mock_client)

        with pytest.raises(TranscriptSourceError, match="connection reset"):
            await service.get_transcript("L1")

    @pytest.mark.asyncio
    async def test_list_lessons_skips_blank_transcripts(
        self, config: LessonRAGConfig, mock_client: MagicMock
    ) -> None:
        chain = mock_client.table.return_value.select.return_value.not_.is_.return_value
        chain.execute.return_value = MagicMock(
            data=[
                {"id": 1, "transcript": "Hello."},
                {"id": 2, "transcript": "   "},
            ]
        )
        service = LessonService(config, client=mock_client)

        assert await service.list_lessons_with_transcripts() == ["1"]


@pytest.mark.unit
class TestInMemoryLessonService:
    """Test suite for InMemoryLessonService class."""

    @pytest.mark.asyncio
    async def test_transcripts_round_trip(self) -> None:
        service = InMemoryLessonService({"L1": "Hello.", "L2": ""})
        service.set_transcript("L3", "Bye.")

        assert await service.get_transcript("L1") == "Hello."
        assert await service.get_transcript("L2") is None
        assert await service.get_transcript("missing") is None
        assert await service.list_lessons_with_transcripts() == ["L1", "L3"]
