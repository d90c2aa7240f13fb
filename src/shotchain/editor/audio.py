"""Audio track extraction for dialogue evaluation."""

from pathlib import Path

from moviepy import VideoFileClip

from .frames import clip_file


def extract_audio(video_path: Path, output_path: Path) -> Path:
    """Extract the audio track of a video file.

    Args:
        video_path: Path to the video file.
        output_path: Path for output audio file (format follows the suffix).

    Returns:
        Path to extracted audio file.

    Raises:
        FileNotFoundError: If the video doesn't exist.
        ValueError: If the video has no audio track.
    """
    if not video_path.exists():
        raise FileNotFoundError(f"Clip not found: {video_path}")

    video = VideoFileClip(str(video_path))
    try:
        if video.audio is None:
            raise ValueError("Video has no audio track")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        video.audio.write_audiofile(str(output_path), logger=None)
    finally:
        video.close()

    return output_path


def extract_audio_track(clip: bytes) -> bytes:
    """Return the audio of in-memory clip bytes as MP3 bytes."""
    with clip_file(clip) as path:
        audio_path = extract_audio(path, path.with_name("audio.mp3"))
        return audio_path.read_bytes()
