"""Unit tests for the command-line interface."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.lesson_rag.cli import main
from src.lesson_rag.errors import QueryFailedError
from src.lesson_rag.schemas import Answer, IngestionResult, IngestionState, QueryResult


@pytest.fixture
def transcript_file(tmp_path: Path) -> Path:
    path = tmp_path / "aula.vtt"
    path.write_text(
        "WEBVTT\n\n1\n00:00.000 --> 00:02.000\nHello. This is lesson one about loops.\n",
        encoding="utf-8",
    )
    return path


@pytest.mark.unit
class TestCli:
    """Test suite for the CLI entry point."""

    @pytest.mark.asyncio
    async def test_dry_run_only_chunks(
        self, transcript_file: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with patch("src.lesson_rag.cli.build_services") as mock_build:
            code = await main(
                ["ingest", "--lesson-id", "L1", "--transcript-file", str(transcript_file), "--dry-run"]
            )

        assert code == 0
        mock_build.assert_not_called()
        output = capsys.readouterr().out
        assert "subtitle cues" in output
        assert "Chunks: 1" in output

    @pytest.mark.asyncio
    async def test_dry_run_requires_file(self) -> None:
        assert await main(["ingest", "--lesson-id", "L1", "--dry-run"]) == 2

    @pytest.mark.asyncio
    async def test_ingest_from_file(self, transcript_file: Path) -> None:
        services = MagicMock()
        services.ingestion.ingest_text = AsyncMock(
            return_value=IngestionResult(
                lesson_id="L1",
                state=IngestionState.DONE,
                chunks_created=1,
                message="Successfully generated and stored 1 chunks.",
                transitions=[IngestionState.IDLE, IngestionState.DONE],
            )
        )

        with patch("src.lesson_rag.cli.build_services", return_value=services):
            code = await main(
                ["ingest", "--lesson-id", "L1", "--transcript-file", str(transcript_file)]
            )

        assert code == 0
        lesson_id, raw = services.ingestion.ingest_text.call_args.args
        assert lesson_id == "L1"
        assert raw.startswith("WEBVTT")

    @pytest.mark.asyncio
    async def test_ask_prints_answer(self, capsys: pytest.CaptureFixture[str]) -> None:
        services = MagicMock()
        services.query.ask = AsyncMock(
            return_value=QueryResult(
                lesson_id="L1",
                answer=Answer(text="A loop repeats code.", grounded=True),
                chunks_retrieved=1,
            )
        )

        with patch("src.lesson_rag.cli.build_services", return_value=services):
            code = await main(["ask", "--lesson-id", "L1", "--question", "What is a loop?"])

        assert code == 0
        assert "A loop repeats code." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_failure_returns_non_zero(self) -> None:
        services = MagicMock()
        services.query.ask = AsyncMock(side_effect=QueryFailedError("retrieving", "L1", "down"))

        with patch("src.lesson_rag.cli.build_services", return_value=services):
            code = await main(["ask", "--lesson-id", "L1", "--question", "Why?"])

        assert code == 1

    @pytest.mark.asyncio
    async def test_non_positive_max_tokens_rejected(self, transcript_file: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            await main(
                [
                    "ingest",
                    "--lesson-id",
                    "L1",
                    "--transcript-file",
                    str(transcript_file),
                    "--dry-run",
                    "--max-tokens",
                    "-5",
                ]
            )

        assert exc_info.value.code == 2

    @pytest.mark.asyncio
    async def test_max_tokens_override_builds_services_with_budget(self) -> None:
        services = MagicMock()
        services.ingestion.ingest = AsyncMock(
            return_value=IngestionResult(
                lesson_id="L1",
                state=IngestionState.DONE,
                chunks_created=0,
                message="Nothing to do.",
            )
        )

        with patch("src.lesson_rag.cli.build_services", return_value=services) as mock_build:
            code = await main(["ingest", "--lesson-id", "L1", "--max-tokens", "50"])

        assert code == 0
        assert mock_build.call_args.args[0].max_chunk_tokens == 50
