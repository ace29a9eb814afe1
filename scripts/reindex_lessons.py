"""Script to rebuild the chunk set of every lesson that has a transcript.

This script:
1. Lists lessons with a non-empty transcript
2. Runs ingestion for each of them
3. Prints a summary of chunks created and failures
"""

import asyncio

from dotenv import load_dotenv

from src.lesson_rag.errors import LessonRAGError
from src.lesson_rag.services import build_services

load_dotenv()


async def reindex_lessons() -> None:
    """Re-run ingestion for every lesson with a transcript."""
    services = build_services()
    lesson_ids = await services.lesson_service.list_lessons_with_transcripts()

    print(f"Lessons with transcripts: {len(lesson_ids)}")
    if not lesson_ids:
        print("Nothing to do")
        return

    print("\nThis will REPLACE the stored chunks of every listed lesson.")
    confirm = input("\nAre you sure? Type 'yes' to continue: ")

    if confirm.lower() != "yes":
        print("Aborted")
        return

    total_chunks = 0
    failed: list[str] = []

    for lesson_id in lesson_ids:
        try:
            result = await services.ingestion.ingest(lesson_id)
        except LessonRAGError as e:
            print(f"  ❌ {lesson_id}: {e}")
            failed.append(lesson_id)
            continue

        total_chunks += result.chunks_created
        print(f"  ✅ {lesson_id}: {result.chunks_created} chunks")

    print("\nDone!")
    print(f"  Lessons processed: {len(lesson_ids) - len(failed)}")
    print(f"  Chunks created: {total_chunks}")
    print(f"  Failed: {len(failed)}")


if __name__ == "__main__":
    asyncio.run(reindex_lessons())
