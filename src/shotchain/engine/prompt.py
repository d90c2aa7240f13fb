"""Synthesis prompt construction."""

from typing import Optional

from ..models import Scene

# Fixed attribution; not derived from character metadata.
SPEAKER_TAG = "A woman"


def build_prompt(
    prompt: str,
    dialogue: Optional[str] = None,
    camera: Optional[str] = None,
) -> str:
    """Join visual description, dialogue and camera directive into one prompt.

    Veo speaks quoted dialogue when it follows a speaker tag, and the
    "(no subtitles)" note keeps it from burning captions into the frame.
    """
    result = prompt

    if dialogue and dialogue.strip():
        result += f'. {SPEAKER_TAG} says, "{dialogue.strip()}" (no subtitles)'

    if camera:
        result += f". {camera}"

    return result


def build_scene_prompt(scene: Scene) -> str:
    return build_prompt(scene.prompt, scene.dialogue, scene.camera)
