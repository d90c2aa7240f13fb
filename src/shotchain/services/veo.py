"""Google Veo client via the Vertex AI long-running prediction API."""

import base64
import logging
from typing import Any, Dict, Optional

import google.auth
import google.auth.transport.requests
import requests
from google.cloud import storage

from ..config import config
from ..engine.errors import SynthesisError
from ..interfaces import JobHandle, NoSeed, PollResult, ReferenceImages, Seed, StartFrame
from ..models import GenerationSettings, ImagePayload
from ..storage.media import LocatorFetcher

logger = logging.getLogger(__name__)

PORTRAIT = "9:16"


def _image_field(image: ImagePayload) -> Dict[str, str]:
    return {"bytesBase64Encoded": image.data, "mimeType": image.mime_type}


class VeoClient:
    """Client wrapper for Veo video generation via Vertex AI.

    This client handles:
    - Building requests for text, start-frame and reference-image generation
    - Submitting long-running prediction jobs
    - Fetching job status and downloading the finished clip
    """

    DEFAULT_LOCATION = "us-central1"
    DEFAULT_TIMEOUT = 60.0
    SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]

    def __init__(
        self,
        project_id: Optional[str] = None,
        location: Optional[str] = None,
        output_bucket: Optional[str] = None,
        generate_audio: bool = True,
        timeout: float = DEFAULT_TIMEOUT,
        fetcher: Optional[LocatorFetcher] = None,
        credentials_path: Optional[str] = None,
    ) -> None:
        """Initialize the Veo client.

        Args:
            project_id: Google Cloud project ID. Defaults to GOOGLE_CLOUD_PROJECT env var.
            location: GCP region for Vertex AI. Defaults to VEO_LOCATION or us-central1.
            output_bucket: Optional gs:// prefix for job output. Defaults to
                VEO_OUTPUT_BUCKET env var; without it clips come back inline.
            generate_audio: Ask Veo for a soundtrack (needed for dialogue).
            timeout: HTTP timeout in seconds.
            fetcher: Used to download gs:// output.
            credentials_path: Path to service account JSON. Defaults to
                GOOGLE_APPLICATION_CREDENTIALS; without it the ambient
                application default credentials are used.
        """
        self._project_id = project_id or config.google_cloud_project
        self._location = location or config.veo_location or self.DEFAULT_LOCATION
        self._output_bucket = output_bucket if output_bucket is not None else config.veo_output_bucket
        self._generate_audio = generate_audio
        self._timeout = timeout
        self._fetcher = fetcher
        self._credentials_path = credentials_path or config.google_application_credentials
        self._credentials = None

        # Validate required configuration
        self._validate_config()

    def _validate_config(self) -> None:
        """Validate that required configuration is set."""
        if not self._project_id:
            raise ValueError(
                "Missing required configuration: GOOGLE_CLOUD_PROJECT. "
                "Set the corresponding environment variable."
            )

        if self._output_bucket and not self._output_bucket.startswith("gs://"):
            raise ValueError(
                f"VEO_OUTPUT_BUCKET must be a GCS URI starting with 'gs://'. "
                f"Got: {self._output_bucket}"
            )

    @property
    def project_id(self) -> str:
        """Return the Google Cloud project ID."""
        return self._project_id

    @property
    def location(self) -> str:
        return self._location

    def _headers(self) -> Dict[str, str]:
        if self._credentials is None:
            if self._credentials_path:
                self._credentials, _ = google.auth.load_credentials_from_file(
                    self._credentials_path, scopes=self.SCOPES
                )
            else:
                self._credentials, _ = google.auth.default(scopes=self.SCOPES)
        if not self._credentials.valid:
            self._credentials.refresh(google.auth.transport.requests.Request())

        return {
            "Authorization": f"Bearer {self._credentials.token}",
            "Content-Type": "application/json",
        }

    def _url(self, model: str, method: str) -> str:
        return (
            f"https://{self._location}-aiplatform.googleapis.com/v1/"
            f"projects/{self._project_id}/locations/{self._location}/"
            f"publishers/google/models/{model}:{method}"
        )

    def build_instance(self, prompt: str, settings: GenerationSettings, seed: Seed) -> Dict[str, Any]:
        """Build the request instance for one prompt and seed."""
        instance: Dict[str, Any] = {"prompt": prompt} if prompt else {}

        if isinstance(seed, StartFrame):
            instance["image"] = _image_field(seed.image)
            if settings.is_looping:
                instance["lastFrame"] = _image_field(seed.image)
                logger.info("Generating a looping clip that ends on its start frame")

        elif isinstance(seed, ReferenceImages):
            if settings.aspect_ratio == PORTRAIT:
                # Portrait output does not accept reference images; open on the first one instead.
                instance["image"] = _image_field(seed.images[0])
                logger.info(
                    "Portrait mode: using the first reference image as the start frame "
                    f"({len(seed.images) - 1} other reference(s) dropped)"
                )
            else:
                instance["referenceImages"] = [
                    {"image": _image_field(image), "referenceType": "asset"}
                    for image in seed.images
                ]

        return instance

    def build_parameters(self, settings: GenerationSettings) -> Dict[str, Any]:
        parameters: Dict[str, Any] = {
            "aspectRatio": settings.aspect_ratio,
            "resolution": settings.resolution,
            "sampleCount": 1,
            "generateAudio": self._generate_audio,
        }
        if self._output_bucket:
            parameters["storageUri"] = self._output_bucket.rstrip("/") + "/"
        return parameters

    def submit(self, prompt: str, settings: GenerationSettings, seed: Seed) -> JobHandle:
        """Submit a generation job.

        Raises:
            SynthesisError: If the API rejects the request.
        """
        body = {
            "instances": [self.build_instance(prompt, settings, seed)],
            "parameters": self.build_parameters(settings),
        }
        mode = "text" if isinstance(seed, NoSeed) else seed.kind
        logger.info(f"Submitting Veo job ({settings.model}, mode={mode})")

        try:
            response = requests.post(
                self._url(settings.model, "predictLongRunning"),
                json=body,
                headers=self._headers(),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            raise SynthesisError(f"Veo request failed: {e}") from e

        if response.status_code != 200:
            error_msg = f"{response.status_code}: {response.text[:500]}"
            logger.error(f"Veo API error: {error_msg}")
            raise SynthesisError(f"Veo rejected the request: {error_msg}")

        operation_name = response.json().get("name")
        if not operation_name:
            raise SynthesisError("Veo response did not include an operation name")

        logger.info(f"Started Veo operation: {operation_name}")
        return JobHandle(job_id=operation_name, model=settings.model)

    def poll(self, handle: JobHandle) -> PollResult:
        """Fetch the status of a job, downloading the clip once it is done.

        Transport errors, throttling and server errors are reported as "not
        done yet" so the caller keeps polling within its own time budget. Any
        other 4xx means the operation can never be fetched and ends the job.
        """
        try:
            response = requests.post(
                self._url(handle.model, "fetchPredictOperation"),
                json={"operationName": handle.job_id},
                headers=self._headers(),
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Error checking operation status: {e}")
            return PollResult(done=False)

        if 400 <= response.status_code < 500 and response.status_code != 429:
            error_msg = f"{response.status_code}: {response.text[:500]}"
            logger.error(f"Veo status check rejected: {error_msg}")
            return PollResult(done=True, error=f"Status check rejected: {error_msg}")

        if response.status_code != 200:
            logger.warning(f"Status check returned {response.status_code}: {response.text[:200]}")
            return PollResult(done=False)

        return self.parse_operation(response.json())

    def parse_operation(self, operation: Dict[str, Any]) -> PollResult:
        """Turn a fetchPredictOperation payload into a PollResult."""
        if "error" in operation:
            error = operation["error"]
            return PollResult(done=True, error=error.get("message") or str(error))

        if not operation.get("done"):
            return PollResult(done=False)

        videos = (operation.get("response") or {}).get("videos") or []
        if not videos:
            filtered = (operation.get("response") or {}).get("raiMediaFilteredCount", 0)
            if filtered:
                return PollResult(done=True, error="Output was blocked by safety filters")
            return PollResult(done=True, error="No videos were generated")

        video = videos[0]
        if video.get("bytesBase64Encoded"):
            # Inline output has no URL to fall back on if storing it fails.
            return PollResult(done=True, clip=base64.b64decode(video["bytesBase64Encoded"]))

        gcs_uri = video.get("gcsUri")
        if not gcs_uri:
            return PollResult(done=True, error="Generated video is missing a URI")

        try:
            clip = self._download(gcs_uri)
        except Exception as e:
            logger.error(f"Failed to download {gcs_uri}: {e}")
            return PollResult(done=True, error=f"Failed to download generated video: {e}")

        return PollResult(done=True, clip=clip, locator=gcs_uri)

    def _download(self, gcs_uri: str) -> bytes:
        if self._fetcher is None:
            self._fetcher = LocatorFetcher(storage_client=storage.Client(project=self._project_id))
        return self._fetcher.fetch(gcs_uri)
