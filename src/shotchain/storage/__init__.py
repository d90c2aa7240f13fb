"""Storage collaborators: clips, evaluations, assets, projects and media."""

from .gcs import GcsClipStore
from .local import JsonEvaluationStore, LocalAssetStore, LocalClipStore, YamlProjectStore
from .media import LocatorFetcher, split_gcs_uri

__all__ = [
    "GcsClipStore",
    "JsonEvaluationStore",
    "LocalAssetStore",
    "LocalClipStore",
    "YamlProjectStore",
    "LocatorFetcher",
    "split_gcs_uri",
]
