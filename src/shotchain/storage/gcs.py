"""Google Cloud Storage clip store."""

import logging
from typing import Dict, Optional

from google.api_core import exceptions as google_exceptions
from google.cloud import storage

from ..engine.errors import PersistenceError
from .media import split_gcs_uri

logger = logging.getLogger(__name__)


class GcsClipStore:
    """Clips as ``<prefix>/<project_id>/<scene_id>.mp4`` objects; locators are gs:// URIs."""

    def __init__(self, prefix: str, client: Optional[storage.Client] = None) -> None:
        if not prefix.startswith("gs://"):
            raise ValueError(f"Clip prefix must be a GCS URI starting with 'gs://'. Got: {prefix}")

        bucket_and_path = prefix[5:].rstrip("/")
        self._bucket_name, _, self._base = bucket_and_path.partition("/")
        self._client = client or storage.Client()

    def _blob_name(self, project_id: str, scene_id: str) -> str:
        parts = [self._base, project_id, f"{scene_id}.mp4"]
        return "/".join(p for p in parts if p)

    def _project_prefix(self, project_id: str) -> str:
        return "/".join(p for p in [self._base, project_id] if p) + "/"

    def save(self, project_id: str, scene_id: str, clip: bytes) -> str:
        blob_name = self._blob_name(project_id, scene_id)
        try:
            blob = self._client.bucket(self._bucket_name).blob(blob_name)
            blob.upload_from_string(clip, content_type="video/mp4")
        except google_exceptions.GoogleAPICallError as e:
            raise PersistenceError(f"Failed to upload clip for scene {scene_id}: {e}") from e

        locator = f"gs://{self._bucket_name}/{blob_name}"
        logger.info(f"Uploaded clip for scene {scene_id} to {locator}")
        return locator

    def list(self, project_id: str) -> Dict[str, str]:
        prefix = self._project_prefix(project_id)
        clips: Dict[str, str] = {}
        for blob in self._client.list_blobs(self._bucket_name, prefix=prefix):
            name = blob.name[len(prefix):]
            if name.endswith(".mp4") and "/" not in name:
                clips[name[:-4]] = f"gs://{self._bucket_name}/{blob.name}"
        return clips

    def read(self, locator: str) -> bytes:
        bucket_name, blob_name = split_gcs_uri(locator)
        try:
            return self._client.bucket(bucket_name).blob(blob_name).download_as_bytes()
        except google_exceptions.NotFound as e:
            raise FileNotFoundError(f"Clip not found: {locator}") from e

    def delete(self, project_id: str, scene_id: str) -> None:
        blob = self._client.bucket(self._bucket_name).blob(self._blob_name(project_id, scene_id))
        try:
            blob.delete()
        except google_exceptions.NotFound:
            logger.debug(f"No clip to delete for scene {scene_id}")
