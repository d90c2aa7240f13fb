"""Frame, audio and compositing helpers built on moviepy."""

from .audio import extract_audio, extract_audio_track
from .compositor import add_transitions, concatenate_scenes
from .frames import clip_file, frame_at, grab_frame

__all__ = [
    # Compositor
    "add_transitions",
    "concatenate_scenes",
    # Frames
    "clip_file",
    "frame_at",
    "grab_frame",
    # Audio
    "extract_audio",
    "extract_audio_track",
]
