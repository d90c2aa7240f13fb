"""
Tests for data models and prompt construction
"""

import pytest
from pydantic import ValidationError

from shotchain.engine import AspectRatioLockedError, SceneNotFoundError, build_prompt
from shotchain.engine.prompt import build_scene_prompt
from shotchain.interfaces import Judgement, ReferenceImages
from shotchain.models import (
    AttachedAsset,
    AudioEvaluation,
    Evaluation,
    FrameEvaluation,
    FrameType,
    GenerationState,
    ImagePayload,
    Project,
    Scene,
)


def frame(score: float, frame_type: FrameType = FrameType.FIRST) -> FrameEvaluation:
    return FrameEvaluation(frame_type=frame_type, timestamp=0.1, score=score)


class TestScene:
    def test_defaults(self):
        scene = Scene(id="s", prompt="p")
        assert scene.duration == 8.0
        assert scene.generation_state == GenerationState.NOT_GENERATED
        assert scene.reference_mode is None
        assert not scene.is_generated

    def test_continuity_frame_requires_generated(self):
        """Test a continuity frame cannot exist on an ungenerated scene"""
        with pytest.raises(ValidationError):
            Scene(id="s", prompt="p", continuity_frame=ImagePayload.from_bytes(b"f"))

    def test_reference_mode_accepts_previous_or_slot(self):
        assert Scene(id="a", reference_mode="previous").reference_mode == "previous"
        assert Scene(id="b", reference_mode=2).reference_mode == 2
        with pytest.raises(ValidationError):
            Scene(id="c", reference_mode="sideways")

    def test_duration_must_be_positive(self):
        with pytest.raises(ValidationError):
            Scene(id="s", duration=0)


class TestProject:
    def test_scene_lookup(self, project):
        assert project.index_of("s2") == 1
        assert project.get_scene("s3").title == "Arrival"
        assert project.previous_scene("s1") is None
        assert project.previous_scene("s3").id == "s2"

    def test_missing_scene(self, project):
        with pytest.raises(SceneNotFoundError):
            project.get_scene("nope")
        with pytest.raises(KeyError):
            project.index_of("nope")

    def test_aspect_ratio_change_without_imagery(self, project):
        project.change_aspect_ratio("9:16")
        assert project.aspect_ratio == "9:16"

    def test_aspect_ratio_locked_by_continuity_frame(self, project):
        scene = project.scenes[0]
        scene.generation_state = GenerationState.GENERATED
        scene.continuity_frame = ImagePayload.from_bytes(b"f")

        with pytest.raises(AspectRatioLockedError):
            project.change_aspect_ratio("9:16")
        assert project.aspect_ratio == "16:9"

    def test_aspect_ratio_locked_by_attached_assets(self, project):
        project.scenes[1].attached_assets = [AttachedAsset(asset_id="a")]
        with pytest.raises(AspectRatioLockedError):
            project.change_aspect_ratio("9:16")

    def test_aspect_ratio_invalidate_clears_frames(self, project):
        scene = project.scenes[0]
        scene.generation_state = GenerationState.GENERATED
        scene.continuity_frame = ImagePayload.from_bytes(b"f")

        project.change_aspect_ratio("9:16", invalidate=True)

        assert project.aspect_ratio == "9:16"
        assert scene.continuity_frame is None

    def test_invalid_aspect_ratio(self, project):
        with pytest.raises(ValueError):
            project.change_aspect_ratio("4:3")

    def test_yaml_round_trip(self, project, tmp_path):
        scene = project.scenes[0]
        scene.generation_state = GenerationState.GENERATED
        scene.clip_locator = "videos/proj-1/s1.mp4"
        scene.continuity_frame = ImagePayload.from_bytes(b"\x89PNG")
        project.scenes[2].reference_mode = 2

        path = tmp_path / "nested" / "project.yaml"
        project.to_yaml(path)
        loaded = Project.from_yaml(path)

        assert loaded == project
        assert loaded.scenes[0].continuity_frame.to_bytes() == b"\x89PNG"


class TestEvaluation:
    def test_two_frames_average(self):
        evaluation = Evaluation.combine(frame(80), frame(60, FrameType.LAST))
        assert evaluation.overall_score == 70

    def test_audio_included_in_average(self):
        audio = AudioEvaluation(expected_text="hi", transcribed_text="hi", score=40)
        evaluation = Evaluation.combine(frame(80), frame(60, FrameType.LAST), audio)
        assert evaluation.overall_score == 60

    def test_overall_not_rounded(self):
        evaluation = Evaluation.combine(frame(80), frame(65, FrameType.LAST))
        assert evaluation.overall_score == 72.5

    def test_score_bounds(self):
        with pytest.raises(ValidationError):
            frame(101)


class TestSeeds:
    def test_reference_images_cannot_be_empty(self):
        with pytest.raises(ValueError):
            ReferenceImages(())

    def test_judgement_score_clamped(self):
        assert Judgement(score=140).score == 100
        assert Judgement(score=-3).score == 0


class TestBuildPrompt:
    def test_prompt_only(self):
        assert build_prompt("A quiet lake") == "A quiet lake"

    def test_dialogue_appended_with_speaker(self):
        assert build_prompt("A quiet lake", dialogue="  Hello there ") == (
            'A quiet lake. A woman says, "Hello there" (no subtitles)'
        )

    def test_blank_dialogue_ignored(self):
        assert build_prompt("A quiet lake", dialogue="   ") == "A quiet lake"

    def test_camera_appended_last(self):
        assert build_prompt("A quiet lake", dialogue="Hi", camera="Aerial shot") == (
            'A quiet lake. A woman says, "Hi" (no subtitles). Aerial shot'
        )

    def test_scene_prompt(self, project):
        assert build_scene_prompt(project.get_scene("s3")) == (
            "The car pulls up to a diner. Slow dolly in"
        )
