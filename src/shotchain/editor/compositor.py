"""Join generated scene clips into a single video."""

import logging
from pathlib import Path
from typing import List, Sequence

from moviepy import VideoFileClip, concatenate_videoclips
from moviepy.video.fx import CrossFadeIn, CrossFadeOut

logger = logging.getLogger(__name__)


def add_transitions(
    clips: List[VideoFileClip],
    duration: float = 0.5
) -> List[VideoFileClip]:
    """Add crossfade transitions between clips.

    Args:
        clips: List of video clips.
        duration: Duration of each crossfade in seconds.

    Returns:
        List of clips with fade effects applied.
    """
    if len(clips) < 2:
        return clips

    result: List[VideoFileClip] = []

    for i, clip in enumerate(clips):
        # Apply fade out to all clips except the last
        if i < len(clips) - 1:
            clip = clip.with_effects([CrossFadeOut(duration)])

        # Apply fade in to all clips except the first
        if i > 0:
            clip = clip.with_effects([CrossFadeIn(duration)])

        result.append(clip)

    return result


def concatenate_scenes(
    clip_paths: Sequence[Path],
    output_path: Path,
    transition: float = 0.0,
    fps: int = 24,
    codec: str = "libx264",
    audio_codec: str = "aac",
) -> Path:
    """Concatenate scene clips in order and write the result.

    Args:
        clip_paths: Clip files in playback order.
        output_path: Path for output file.
        transition: Crossfade duration in seconds; 0 joins clips back to back.
        fps: Frames per second of the output.
        codec: Video codec (default libx264).
        audio_codec: Audio codec (default aac).

    Returns:
        Path to the exported video file.

    Raises:
        ValueError: If clip_paths is empty.
        FileNotFoundError: If a clip file doesn't exist.
    """
    if not clip_paths:
        raise ValueError("No clips provided")

    for clip_path in clip_paths:
        if not Path(clip_path).exists():
            raise FileNotFoundError(f"Clip not found: {clip_path}")

    clips: List[VideoFileClip] = [VideoFileClip(str(p)) for p in clip_paths]
    try:
        if transition > 0 and len(clips) > 1:
            sequence = add_transitions(clips, transition)
            video = concatenate_videoclips(sequence, method="compose", padding=-transition)
        else:
            video = concatenate_videoclips(clips, method="compose")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"Writing {len(clips)} clip(s) ({video.duration:.1f}s) to {output_path}")
        video.write_videofile(
            str(output_path),
            fps=fps,
            codec=codec,
            audio_codec=audio_codec,
            logger=None,
        )
    finally:
        for clip in clips:
            clip.close()

    return output_path
