"""Transcript normalization: subtitle cues to plain prose.

Lesson transcripts arrive either as plain text or as subtitle files (WebVTT,
and SRT-style cues that share the ``-->`` timing arrow). Cue files are reduced
to the spoken text only so chunking and embedding never see timestamps or cue
numbers.
"""

import re

from src.utils.logging import get_logger

logger = get_logger(__name__)

CUE_HEADER = "WEBVTT"
TIMING_ARROW = "-->"

_CUE_INDEX_PATTERN = re.compile(r"^[0-9]+$")


def _is_header(line: str) -> bool:
    """Check whether the first non-empty line opens a WebVTT file.

    The header may carry a title after a space or tab ("WEBVTT - Aula 1").
    """
    upper = line.strip().upper()
    return upper == CUE_HEADER or upper.startswith((CUE_HEADER + " ", CUE_HEADER + "\t"))


def is_cue_format(raw: str | None) -> bool:
    """Detect whether a transcript is in a subtitle-cue format.

    The transcript is treated as cue formatted when its first non-empty line
    is the WebVTT header, or when any line carries a ``-->`` timing arrow.

    Args:
        raw: Raw transcript text (may be None).

    Returns:
        True if the text looks like a subtitle file.
    """
    if not raw:
        return False

    lines = raw.splitlines()
    first_line = next((line for line in lines if line.strip()), "")
    if _is_header(first_line):
        return True

    return any(TIMING_ARROW in line for line in lines)


def _is_cue_noise(line: str, is_first: bool) -> bool:
    stripped = line.strip()
    return (
        not stripped
        or TIMING_ARROW in stripped
        or _CUE_INDEX_PATTERN.match(stripped) is not None
        or stripped.upper() == CUE_HEADER
        or (is_first and _is_header(stripped))
    )


def normalize_transcript(raw: str | None) -> str:
    """Normalize a raw lesson transcript to plain prose.

    Cue formatted input has timing lines, bare cue numbers, the header and
    blank lines removed; the remaining lines are joined with single spaces.
    Plain input is only trimmed. Never raises: anything unusable comes back
    as an empty string, which callers treat as "nothing to ingest".

    Args:
        raw: Raw transcript text, plain or cue formatted.

    Returns:
        Normalized transcript text (possibly empty).

    Examples:
        >>> normalize_transcript("WEBVTT\\n\\n1\\n00:00.000 --> 00:02.000\\nHello.")
        'Hello.'
        >>> normalize_transcript("  Plain text.  ")
        'Plain text.'
    """
    if not isinstance(raw, str):
        return ""

    if not is_cue_format(raw):
        return raw.strip()

    lines = raw.splitlines()
    first_index = next((i for i, line in enumerate(lines) if line.strip()), -1)
    kept = [
        line.strip()
        for i, line in enumerate(lines)
        if not _is_cue_noise(line, is_first=i == first_index)
    ]
    normalized = " ".join(kept).strip()

    logger.debug(
        "cue_transcript_normalized",
        input_chars=len(raw),
        output_chars=len(normalized),
        lines_kept=len(kept),
    )
    return normalized
