"""
Tests for the Claude judges, the Anthropic wrapper and the Whisper client
"""

import pytest
from unittest.mock import MagicMock, Mock, patch

from shotchain.agents import DialogueJudge, FrameJudge
from shotchain.models import ImagePayload
from shotchain.services.anthropic import AnthropicClient
from shotchain.services.whisper import WhisperClient


@pytest.fixture
def claude():
    client = Mock(spec=AnthropicClient)
    return client


@pytest.fixture
def image():
    return ImagePayload.from_bytes(b"png", "image/png")


class TestFrameJudge:
    def test_parses_verdict(self, claude, image):
        claude.create_message.return_value = (
            '```json\n{"matches": true, "analysis": "Woman beside a car", "score": 82}\n```'
        )

        judgement = FrameJudge(client=claude).score_frame(image, "A woman walks to her car", "first")

        assert judgement.score == 82
        assert judgement.matches is True
        assert judgement.analysis == "Woman beside a car"

    def test_sends_image_and_prompt(self, claude, image):
        claude.create_message.return_value = '{"matches": false, "analysis": "", "score": 10}'

        FrameJudge(client=claude).score_frame(image, "A quiet lake", "last")

        kwargs = claude.create_message.call_args.kwargs
        assert kwargs["images"] == [image]
        assert 'Video prompt: "A quiet lake"' in kwargs["prompt"]
        assert "last frame" in kwargs["prompt"]
        assert "JSON" in kwargs["system"]

    def test_json_surrounded_by_prose(self, claude, image):
        claude.create_message.return_value = (
            'Here is my verdict: {"matches": true, "analysis": "ok {mostly}", "score": 64}. Thanks!'
        )

        judgement = FrameJudge(client=claude).score_frame(image, "x", "first")

        assert judgement.score == 64
        assert judgement.analysis == "ok {mostly}"

    def test_out_of_range_score_clamped(self, claude, image):
        claude.create_message.return_value = '{"matches": true, "score": 140}'
        assert FrameJudge(client=claude).score_frame(image, "x", "first").score == 100

    def test_invalid_json(self, claude, image):
        claude.create_message.return_value = "I cannot evaluate this frame."
        with pytest.raises(ValueError, match="Invalid JSON"):
            FrameJudge(client=claude).score_frame(image, "x", "first")

    def test_missing_score(self, claude, image):
        claude.create_message.return_value = '{"matches": true}'
        with pytest.raises(ValueError, match="score"):
            FrameJudge(client=claude).score_frame(image, "x", "first")

    def test_non_numeric_score(self, claude, image):
        claude.create_message.return_value = '{"score": "high"}'
        with pytest.raises(ValueError):
            FrameJudge(client=claude).score_frame(image, "x", "first")


class TestDialogueJudge:
    def test_compares(self, claude):
        claude.create_message.return_value = '{"matches": true, "analysis": "same words", "score": 95}'

        judgement = DialogueJudge(client=claude).compare_dialogue("Hello there", "hello there")

        assert judgement.score == 95
        prompt = claude.create_message.call_args.kwargs["prompt"]
        assert '"Hello there"' in prompt
        assert '"hello there"' in prompt
        assert claude.create_message.call_args.kwargs["images"] == ()

    def test_silence_scores_zero_without_calling_claude(self, claude):
        judgement = DialogueJudge(client=claude).compare_dialogue("Hello there", "  ")

        assert judgement.score == 0
        assert judgement.matches is False
        claude.create_message.assert_not_called()


class TestAnthropicClient:
    def test_images_precede_text(self, image):
        with patch("shotchain.services.anthropic.Anthropic") as anthropic_cls:
            sdk = anthropic_cls.return_value
            sdk.messages.create.return_value = Mock(content=[Mock(text="ok")])

            client = AnthropicClient(api_key="sk-test", model="claude-test")
            text = client.create_message("describe", system="be brief", images=[image])

        assert text == "ok"
        kwargs = sdk.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["system"] == "be brief"
        content = kwargs["messages"][0]["content"]
        assert content[0] == {
            "type": "image",
            "source": {"type": "base64", "media_type": "image/png", "data": image.data},
        }
        assert content[1] == {"type": "text", "text": "describe"}

    def test_requires_key(self):
        with patch("shotchain.services.anthropic.config") as cfg:
            cfg.anthropic_api_key = ""
            with pytest.raises(ValueError):
                AnthropicClient()


class TestWhisperClient:
    def test_transcribe(self):
        openai_client = MagicMock()
        openai_client.audio.transcriptions.create.return_value = Mock(text="  where are we going \n")

        text = WhisperClient(api_key="sk-test", client=openai_client).transcribe(b"mp3", "clip.mp3")

        assert text == "where are we going"
        openai_client.audio.transcriptions.create.assert_called_once_with(
            model="whisper-1", file=("clip.mp3", b"mp3")
        )

    def test_requires_key(self):
        with patch("shotchain.services.whisper.config") as cfg:
            cfg.openai_api_key = ""
            with pytest.raises(ValueError):
                WhisperClient()
