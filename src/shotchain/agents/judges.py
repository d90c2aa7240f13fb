"""Claude judges for frame and dialogue quality."""

from ..interfaces import Judgement
from ..models import ImagePayload
from .base import BaseAgent


FRAME_SYSTEM_PROMPT = """You are a meticulous video quality reviewer. You compare still frames taken from AI generated clips with the prompt the clip was generated from.

Be strict but fair: reward frames that show the subjects, setting, action and framing the prompt asks for, and penalise missing or contradictory elements. Always answer with a single JSON object and nothing else."""

FRAME_PROMPT_TEMPLATE = """You are looking at the {frame_type} frame of a generated video.

Video prompt: "{prompt}"

Decide:
1. Does this frame match the intended prompt?
2. What do you see in the frame?
3. Which elements match the prompt and which do not?
4. How well does it align with the prompt, as a score from 0 to 100?

Respond in JSON format:
{{
  "matches": true or false,
  "analysis": "what you see and how it compares to the prompt",
  "score": 0-100
}}"""

DIALOGUE_SYSTEM_PROMPT = """You check spoken dialogue in generated video against its script. Transcripts come from automatic speech recognition, so ignore punctuation and capitalisation and allow for minor recognition slips. Always answer with a single JSON object and nothing else."""

DIALOGUE_PROMPT_TEMPLATE = """Compare the transcribed audio with the expected dialogue.

Expected dialogue:
"{expected}"

Transcribed audio:
"{transcribed}"

Consider the exact words, meaning, tone and completeness, then decide:
1. Does the transcription match the expected dialogue?
2. What are the key differences or similarities?
3. How accurate is the match, as a score from 0 to 100?

Respond in JSON format:
{{
  "matches": true or false,
  "analysis": "the key differences or similarities",
  "score": 0-100
}}"""


class FrameJudge(BaseAgent):
    """Scores a single video frame against the prompt that produced it."""

    @property
    def name(self) -> str:
        return "frame_judge"

    @property
    def system_prompt(self) -> str:
        return FRAME_SYSTEM_PROMPT

    def score_frame(self, image: ImagePayload, expected_prompt: str, frame_type: str) -> Judgement:
        """Ask Claude how well ``image`` matches ``expected_prompt``.

        Raises:
            ValueError: If Claude's reply cannot be parsed.
        """
        self._logger.info(f"Judging {frame_type} frame")
        prompt = FRAME_PROMPT_TEMPLATE.format(frame_type=frame_type, prompt=expected_prompt)
        response = self._create_message(prompt, images=[image])
        judgement = self._parse_judgement(response)
        self._logger.info(f"{frame_type.capitalize()} frame scored {judgement.score:.0f}")
        return judgement


class DialogueJudge(BaseAgent):
    """Compares a transcript with the dialogue the scene was meant to contain."""

    @property
    def name(self) -> str:
        return "dialogue_judge"

    @property
    def system_prompt(self) -> str:
        return DIALOGUE_SYSTEM_PROMPT

    def compare_dialogue(self, expected: str, transcribed: str) -> Judgement:
        if not transcribed.strip():
            # Nothing was said; no need to ask.
            return Judgement(score=0.0, analysis="No speech was detected in the audio track.", matches=False)

        response = self._create_message(
            DIALOGUE_PROMPT_TEMPLATE.format(expected=expected, transcribed=transcribed)
        )
        judgement = self._parse_judgement(response)
        self._logger.info(f"Dialogue scored {judgement.score:.0f}")
        return judgement
