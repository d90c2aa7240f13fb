"""External service integrations."""

from .anthropic import AnthropicClient
from .veo import VeoClient
from .whisper import WhisperClient

__all__ = [
    "AnthropicClient",
    "VeoClient",
    "WhisperClient",
]
