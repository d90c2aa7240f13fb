"""Base agent abstraction."""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from ..config import config
from ..interfaces import Judgement
from ..models import ImagePayload
from ..services.anthropic import AnthropicClient

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """Abstract base class for Claude-backed judges.

    Provides shared functionality for agents that ask Claude for a
    structured verdict. Subclasses define their system prompt.
    """

    def __init__(
        self,
        client: Optional[AnthropicClient] = None,
        model: Optional[str] = None,
    ) -> None:
        """Initialize the agent.

        Args:
            client: AnthropicClient instance. Created if not provided.
            model: Model to use. Defaults to config.default_model.
        """
        self._model = model or config.default_model
        self._client = client or AnthropicClient(model=self._model)
        self._logger = logging.getLogger(f"{__name__}.{self.name}")

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the agent's name."""
        ...

    @property
    @abstractmethod
    def system_prompt(self) -> str:
        """Return the system prompt for this agent."""
        ...

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

    def _create_message(
        self,
        prompt: str,
        max_tokens: int = 1024,
        temperature: float = 0.0,
        images: Sequence[ImagePayload] = (),
    ) -> str:
        """Create a message using the agent's client and system prompt.

        Args:
            prompt: The user prompt to send.
            max_tokens: Maximum tokens in the response.
            temperature: Sampling temperature.
            images: Images to show Claude alongside the prompt.

        Returns:
            The text content of Claude's response.
        """
        self._logger.debug(f"Creating message with prompt length: {len(prompt)}")

        try:
            response = self._client.create_message(
                prompt=prompt,
                max_tokens=max_tokens,
                system=self.system_prompt,
                temperature=temperature,
                images=images,
            )
            self._logger.debug(f"Received response of length: {len(response)}")
            return response

        except Exception as e:
            self._logger.error(f"Error creating message: {e}")
            raise

    def _extract_json(self, response: str) -> str:
        """Extract JSON from a response that may contain markdown or other text."""
        # Try to find JSON in code blocks
        if "```json" in response:
            start = response.find("```json") + 7
            end = response.find("```", start)
            if end > start:
                return response[start:end].strip()

        if "```" in response:
            start = response.find("```") + 3
            end = response.find("```", start)
            if end > start:
                return response[start:end].strip()

        start = response.find("{")
        if start != -1:
            depth = 0
            for i, char in enumerate(response[start:], start):
                if char == "{":
                    depth += 1
                elif char == "}":
                    depth -= 1
                    if depth == 0:
                        return response[start:i + 1]

        return response.strip()

    def _parse_judgement(self, response: str) -> Judgement:
        """Parse a ``{"matches", "analysis", "score"}`` verdict.

        Raises:
            ValueError: If the response holds no usable verdict.
        """
        try:
            data: Any = json.loads(self._extract_json(response))
        except json.JSONDecodeError as e:
            self._logger.error(f"Failed to parse JSON: {e}")
            self._logger.debug(f"Raw response: {response}")
            raise ValueError(f"Invalid JSON in response: {e}")

        if not isinstance(data, dict) or "score" not in data:
            raise ValueError("Response does not contain a score")

        try:
            score = float(data["score"])
        except (TypeError, ValueError) as e:
            raise ValueError(f"Score is not a number: {data['score']!r}") from e

        return Judgement(
            score=score,
            analysis=str(data.get("analysis", "")),
            matches=bool(data.get("matches", False)),
        )
