"""OpenAI Whisper transcription client."""

import logging
from typing import Optional

from openai import OpenAI

from ..config import config

logger = logging.getLogger(__name__)


class WhisperClient:
    """Transcribe audio tracks with OpenAI's hosted Whisper model."""

    DEFAULT_MODEL = "whisper-1"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        client: Optional[OpenAI] = None,
    ) -> None:
        self._api_key = api_key or config.openai_api_key
        if client is None and not self._api_key:
            raise ValueError("OpenAI API key not provided. Set OPENAI_API_KEY env var.")

        self._client = client or OpenAI(api_key=self._api_key)
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    def transcribe(self, audio: bytes, filename: str = "audio.mp3") -> str:
        """Return the transcript of ``audio``.

        The filename only tells the API which container format to expect.
        """
        logger.debug(f"Transcribing {len(audio)} bytes with {self._model}")
        transcription = self._client.audio.transcriptions.create(
            model=self._model,
            file=(filename, audio),
        )
        text = transcription.text.strip()
        logger.info(f"Transcribed audio: {text[:80]!r}")
        return text
