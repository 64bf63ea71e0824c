"""Audio metadata helpers."""

import io
import logging

import mutagen

logger = logging.getLogger(__name__)


def duration_ms(data: bytes) -> int:
    """
    Return the playback length of an audio buffer in whole milliseconds.

    LINE audio messages require a duration; 0 is returned when the
    container cannot be parsed or carries no length.
    """
    try:
        parsed = mutagen.File(io.BytesIO(data))
    except mutagen.MutagenError as e:
        logger.warning(f"Could not read audio metadata: {e}")
        return 0

    if parsed is None or parsed.info is None:
        return 0

    length = getattr(parsed.info, "length", None)
    if not length:
        return 0
    return int(round(length * 1000))
