"""Command-line interface for lesson ingestion and question answering."""

import argparse
import asyncio
import sys
from pathlib import Path

from src.utils.logging import get_logger

from .chunking_service import ChunkingService
from .config import get_config
from .errors import LessonRAGError, ValidationError
from .services import build_services
from .transcript_normalizer import is_cue_format, normalize_transcript

logger = get_logger(__name__)


def positive_int(value: str) -> int:
    """argparse type accepting integers greater than zero."""
    try:
        number = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from e
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than zero, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Lesson RAG - index lesson transcripts and answer questions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Rebuild the chunks of a lesson from its stored transcript
  python -m src.lesson_rag.cli ingest --lesson-id 42

  # Index a local subtitle file for a lesson
  python -m src.lesson_rag.cli ingest --lesson-id 42 --transcript-file aula.vtt

  # Preview chunking only (no embedding calls or database writes)
  python -m src.lesson_rag.cli ingest --lesson-id 42 --transcript-file aula.vtt --dry-run

  # Ask a question about a lesson
  python -m src.lesson_rag.cli ask --lesson-id 42 --question "O que é um loop?"
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Rebuild the chunk set of a lesson")
    ingest.add_argument("--lesson-id", required=True, help="Lesson identifier")
    ingest.add_argument(
        "--transcript-file",
        type=Path,
        help="Read the transcript from this file instead of the lessons table",
    )
    ingest.add_argument(
        "--max-tokens",
        type=positive_int,
        help="Override the chunk token budget",
    )
    ingest.add_argument(
        "--dry-run",
        action="store_true",
        help="Normalize and chunk only; requires --transcript-file",
    )

    ask = subparsers.add_parser("ask", help="Answer a question about a lesson")
    ask.add_argument("--lesson-id", required=True, help="Lesson identifier")
    ask.add_argument("--question", required=True, help="Question to answer")

    return parser


def preview_chunks(transcript: str, max_tokens: int | None) -> int:
    """Print how a transcript would be normalized and chunked."""
    config = get_config()
    if max_tokens is not None:
        config = config.model_copy(update={"max_chunk_tokens": max_tokens})

    text = normalize_transcript(transcript)
    chunks = ChunkingService(config).chunk_text(text)

    print(f"Format: {'subtitle cues' if is_cue_format(transcript) else 'plain text'}")
    print(f"Normalized characters: {len(text)}")
    print(f"Chunks: {len(chunks)} (budget {config.max_chunk_tokens} tokens)")
    for index, chunk in enumerate(chunks):
        preview = chunk if len(chunk) <= 80 else chunk[:77] + "..."
        print(f"  [{index}] ~{len(chunk) // 4} tokens: {preview}")
    return 0


async def run_ingest(args: argparse.Namespace) -> int:
    if args.dry_run:
        if not args.transcript_file:
            print("❌ --dry-run requires --transcript-file")
            return 2
        return preview_chunks(args.transcript_file.read_text(encoding="utf-8"), args.max_tokens)

    config = get_config()
    if args.max_tokens is not None:
        config = config.model_copy(update={"max_chunk_tokens": args.max_tokens})
    services = build_services(config)

    if args.transcript_file:
        transcript = args.transcript_file.read_text(encoding="utf-8")
        result = await services.ingestion.ingest_text(args.lesson_id, transcript)
    else:
        result = await services.ingestion.ingest(args.lesson_id)

    print(f"✅ {result.message}")
    print(f"States: {' -> '.join(state.value for state in result.transitions)}")
    return 0


async def run_ask(args: argparse.Namespace) -> int:
    services = build_services()
    result = await services.query.ask(args.lesson_id, args.question)

    print(result.answer.text)
    if not result.answer.grounded:
        print("\n(no lesson content matched this question)")
    return 0


async def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Returns:
        Process exit code.
    """
    args = build_parser().parse_args(argv)
    logger.info("cli_started", command=args.command, lesson_id=args.lesson_id)

    try:
        if args.command == "ingest":
            return await run_ingest(args)
        return await run_ask(args)
    except ValidationError as e:
        print(f"❌ Invalid input: {e}")
        return 2
    except LessonRAGError as e:
        logger.exception("cli_command_failed", command=args.command, error_type=type(e).__name__)
        print(f"❌ {args.command.capitalize()} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
