"""Configuration management."""

import os
from pathlib import Path
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    return float(value) if value else default


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    anthropic_api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""),
        description="Anthropic API key (frame and dialogue judging)"
    )
    openai_api_key: str = Field(
        default_factory=lambda: os.getenv("OPENAI_API_KEY", ""),
        description="OpenAI API key (for Whisper); enables audio evaluation"
    )
    google_application_credentials: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_APPLICATION_CREDENTIALS", ""),
        description="Path to Google Cloud service account JSON"
    )
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID"
    )
    veo_location: str = Field(
        default_factory=lambda: os.getenv("VEO_LOCATION", "us-central1"),
        description="Vertex AI region for Veo"
    )
    veo_output_bucket: str = Field(
        default_factory=lambda: os.getenv("VEO_OUTPUT_BUCKET", ""),
        description="Optional GCS prefix for Veo output"
    )

    # Paths
    workspace: Path = Field(
        default_factory=lambda: Path(os.getenv("SHOTCHAIN_WORKSPACE", ".")),
        description="Workspace directory"
    )

    # Model settings
    default_model: str = Field(
        default="claude-sonnet-4-20250514",
        description="Claude model used for judging frames and dialogue"
    )
    veo_model: str = Field(
        default_factory=lambda: os.getenv("VEO_MODEL", "veo-3.1-generate-preview"),
        description="Default Veo model"
    )
    default_resolution: str = Field(
        default="720p",
        description="Default output resolution"
    )

    # Generation loop
    poll_interval: float = Field(
        default_factory=lambda: _env_float("SHOTCHAIN_POLL_INTERVAL", 10.0),
        description="Seconds between job polls",
        gt=0,
    )
    max_poll_time: float = Field(
        default_factory=lambda: _env_float("SHOTCHAIN_MAX_POLL_TIME", 600.0),
        description="Maximum seconds to wait for one generation job",
        gt=0,
    )
    continuity_margin: float = Field(
        default=0.5,
        description="Seconds before clip end where the continuity frame is taken",
        ge=0,
    )

    class Config:
        """Pydantic config."""
        frozen = False

    def validate_required(self) -> None:
        """Validate that judge credentials are set."""
        if not self.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY not set")

    def validate_veo_required(self) -> None:
        """Validate that Veo / Google Cloud credentials are set.

        Raises:
            ValueError: If any required Veo configuration is missing.
        """
        missing: list[str] = []

        if not self.google_cloud_project:
            missing.append("GOOGLE_CLOUD_PROJECT")

        if missing:
            raise ValueError(
                f"Missing required Veo configuration: {', '.join(missing)}. "
                "Set the corresponding environment variables."
            )

        # Validate bucket format
        if self.veo_output_bucket and not self.veo_output_bucket.startswith("gs://"):
            raise ValueError(
                f"VEO_OUTPUT_BUCKET must be a GCS URI starting with 'gs://'. "
                f"Got: {self.veo_output_bucket}"
            )


# Global config instance
config = Config()
