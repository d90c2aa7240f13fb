"""Still-frame extraction from video clips."""

import io
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from moviepy import VideoFileClip
from PIL import Image

from ..models import ImagePayload

# Stay this far inside the clip so the decoder still has a frame to return.
END_GUARD = 0.05


@contextmanager
def clip_file(clip: bytes, suffix: str = ".mp4") -> Iterator[Path]:
    """Spill clip bytes to a temporary file for moviepy."""
    with tempfile.TemporaryDirectory(prefix="shotchain_") as tmp:
        path = Path(tmp) / f"clip{suffix}"
        path.write_bytes(clip)
        yield path


def frame_at(video_path: Path, at: float) -> ImagePayload:
    """Grab the frame at ``at`` seconds from a video file as PNG.

    The timestamp is clamped into ``[0, duration - END_GUARD]``.

    Raises:
        FileNotFoundError: If the video doesn't exist.
    """
    if not video_path.exists():
        raise FileNotFoundError(f"Clip not found: {video_path}")

    video = VideoFileClip(str(video_path), audio=False)
    try:
        t = min(max(0.0, at), max(0.0, video.duration - END_GUARD))
        pixels = video.get_frame(t)
    finally:
        video.close()

    buffer = io.BytesIO()
    Image.fromarray(pixels).save(buffer, format="PNG")
    return ImagePayload.from_bytes(buffer.getvalue(), "image/png")


def grab_frame(clip: bytes, at: float) -> ImagePayload:
    """Grab the frame at ``at`` seconds from in-memory clip bytes."""
    with clip_file(clip) as path:
        return frame_at(path, at)

