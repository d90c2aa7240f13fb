"""
Tests for local and GCS stores and the locator fetcher
"""

import pytest
import yaml
from unittest.mock import MagicMock, Mock, patch

from google.api_core import exceptions as google_exceptions

from shotchain.engine import PersistenceError
from shotchain.models import AssetCategory, Evaluation, FrameEvaluation, FrameType, Project, Scene
from shotchain.storage import (
    GcsClipStore,
    JsonEvaluationStore,
    LocalAssetStore,
    LocalClipStore,
    LocatorFetcher,
    YamlProjectStore,
    split_gcs_uri,
)


def evaluation(score: float) -> Evaluation:
    return Evaluation.combine(
        FrameEvaluation(frame_type=FrameType.FIRST, timestamp=0.1, score=score),
        FrameEvaluation(frame_type=FrameType.LAST, timestamp=7.5, score=score),
    )


class TestLocalClipStore:
    def test_save_list_read_delete(self, tmp_path):
        store = LocalClipStore(tmp_path)

        locator = store.save("p1", "s1", b"video")

        assert locator == str((tmp_path / "videos" / "p1" / "s1.mp4").resolve())
        assert store.read(locator) == b"video"
        assert store.list("p1") == {"s1": locator}
        assert store.list("other") == {}

        store.delete("p1", "s1")
        assert store.list("p1") == {}

    def test_overwrite(self, tmp_path):
        store = LocalClipStore(tmp_path)
        store.save("p1", "s1", b"old")
        locator = store.save("p1", "s1", b"new")
        assert store.read(locator) == b"new"
        assert not list((tmp_path / "videos" / "p1").glob("*.part"))

    def test_read_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LocalClipStore(tmp_path).read(str(tmp_path / "nope.mp4"))

    def test_write_failure_raises_persistence_error(self, tmp_path):
        blocker = tmp_path / "videos"
        blocker.write_text("not a directory")

        with pytest.raises(PersistenceError):
            LocalClipStore(tmp_path).save("p1", "s1", b"video")


class TestJsonEvaluationStore:
    def test_save_replaces_and_lists(self, tmp_path):
        store = JsonEvaluationStore(tmp_path)
        store.save("p1", "s1", evaluation(50))
        store.save("p1", "s1", evaluation(90))
        store.save("p1", "s2", evaluation(70))

        stored = JsonEvaluationStore(tmp_path).list_for_project("p1")

        assert set(stored) == {"s1", "s2"}
        assert stored["s1"].overall_score == 90

    def test_delete(self, tmp_path):
        store = JsonEvaluationStore(tmp_path)
        store.save("p1", "s1", evaluation(50))
        store.delete("p1", "s1")
        store.delete("p1", "never-saved")
        assert store.list_for_project("p1") == {}

    def test_empty_project(self, tmp_path):
        assert JsonEvaluationStore(tmp_path).list_for_project("p1") == {}


class TestLocalAssetStore:
    @pytest.fixture
    def store(self, tmp_path):
        (tmp_path / "assets").mkdir()
        with open(tmp_path / "assets" / "p1.yaml", "w") as f:
            yaml.safe_dump({"assets": [
                {"id": "hero", "category": "character", "image_locator": "assets/hero.png", "name": "Mara"},
                {"id": "diner", "category": "location", "image_locator": "assets/diner.png"},
            ]}, f)
        return LocalAssetStore(tmp_path)

    def test_list_for_project(self, store):
        assets = store.list_for_project("p1")
        assert [a.id for a in assets] == ["hero", "diner"]
        assert assets[1].category == AssetCategory.LOCATION
        assert all(a.project_id == "p1" for a in assets)

    def test_get_asset_without_listing_first(self, store):
        assert store.get_asset("hero").name == "Mara"

    def test_unknown_asset(self, store):
        with pytest.raises(KeyError):
            store.get_asset("ghost")

    def test_missing_index(self, tmp_path):
        assert LocalAssetStore(tmp_path).list_for_project("p9") == []


class TestYamlProjectStore:
    def test_round_trip(self, tmp_path, project):
        store = YamlProjectStore(tmp_path)
        store.save(project)

        assert store.list_ids() == ["proj-1"]
        assert store.load("proj-1") == project

    def test_missing_project(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            YamlProjectStore(tmp_path).load("nope")


class TestLocatorFetcher:
    def test_relative_path_read_from_root(self, tmp_path):
        (tmp_path / "refs").mkdir()
        (tmp_path / "refs" / "a.png").write_bytes(b"png")
        assert LocatorFetcher(root=tmp_path).fetch("refs/a.png") == b"png"

    def test_absolute_path(self, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"mp4")
        assert LocatorFetcher(root=tmp_path / "elsewhere").fetch(str(path)) == b"mp4"

    def test_missing_local_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            LocatorFetcher(root=tmp_path).fetch("missing.png")

    def test_http(self):
        response = Mock(content=b"remote")
        with patch("shotchain.storage.media.requests.get", return_value=response) as get:
            data = LocatorFetcher().fetch("https://cdn.example.com/a.png")

        assert data == b"remote"
        response.raise_for_status.assert_called_once()
        assert get.call_args[0][0] == "https://cdn.example.com/a.png"

    def test_gcs(self):
        client = MagicMock()
        client.bucket.return_value.blob.return_value.download_as_bytes.return_value = b"gcs"

        data = LocatorFetcher(storage_client=client).fetch("gs://bucket/path/to/clip.mp4")

        assert data == b"gcs"
        client.bucket.assert_called_with("bucket")
        client.bucket.return_value.blob.assert_called_with("path/to/clip.mp4")

    def test_gcs_not_found(self):
        client = MagicMock()
        client.bucket.return_value.blob.return_value.download_as_bytes.side_effect = (
            google_exceptions.NotFound("gone")
        )

        with pytest.raises(FileNotFoundError):
            LocatorFetcher(storage_client=client).fetch("gs://bucket/clip.mp4")

    def test_gcs_retries_transient_errors(self):
        client = MagicMock()
        client.bucket.return_value.blob.return_value.download_as_bytes.side_effect = [
            ConnectionError("reset"),
            b"second try",
        ]

        fetcher = LocatorFetcher(storage_client=client, retry_delay=0)

        assert fetcher.fetch("gs://bucket/clip.mp4") == b"second try"

    def test_split_gcs_uri(self):
        assert split_gcs_uri("gs://b/x/y.mp4") == ("b", "x/y.mp4")
        with pytest.raises(ValueError):
            split_gcs_uri("gs://only-bucket")
        with pytest.raises(ValueError):
            split_gcs_uri("s3://b/x")


class TestGcsClipStore:
    def test_save(self):
        client = MagicMock()
        store = GcsClipStore("gs://clips/shotchain/", client=client)

        locator = store.save("p1", "s1", b"video")

        assert locator == "gs://clips/shotchain/p1/s1.mp4"
        client.bucket.assert_called_with("clips")
        client.bucket.return_value.blob.assert_called_with("shotchain/p1/s1.mp4")
        client.bucket.return_value.blob.return_value.upload_from_string.assert_called_once_with(
            b"video", content_type="video/mp4"
        )

    def test_save_failure(self):
        client = MagicMock()
        client.bucket.return_value.blob.return_value.upload_from_string.side_effect = (
            google_exceptions.ServiceUnavailable("down")
        )

        with pytest.raises(PersistenceError):
            GcsClipStore("gs://clips", client=client).save("p1", "s1", b"video")

    def test_list(self):
        client = MagicMock()
        client.list_blobs.return_value = [
            Mock(name="a"), Mock(name="b"), Mock(name="c"),
        ]
        client.list_blobs.return_value[0].name = "p1/s1.mp4"
        client.list_blobs.return_value[1].name = "p1/s2.mp4"
        client.list_blobs.return_value[2].name = "p1/drafts/s3.mp4"

        clips = GcsClipStore("gs://clips", client=client).list("p1")

        assert clips == {"s1": "gs://clips/p1/s1.mp4", "s2": "gs://clips/p1/s2.mp4"}
        client.list_blobs.assert_called_once_with("clips", prefix="p1/")

    def test_invalid_prefix(self):
        with pytest.raises(ValueError):
            GcsClipStore("clips/", client=MagicMock())


def test_project_yaml_written_by_store_is_plain(tmp_path):
    """Test the stored document is readable YAML with scene order preserved"""
    project = Project(id="p", scenes=[Scene(id="b", prompt="x"), Scene(id="a", prompt="y")])
    YamlProjectStore(tmp_path).save(project)

    with open(tmp_path / "projects" / "p.yaml") as f:
        data = yaml.safe_load(f)

    assert [s["id"] for s in data["scenes"]] == ["b", "a"]
