"""File-system stores for clips, evaluations, assets and projects.

Layout under the workspace root::

    projects/<project_id>.yaml
    videos/<project_id>/<scene_id>.mp4
    evaluations/<project_id>.json
    assets/<project_id>.yaml
"""

import json
import logging
from pathlib import Path
from typing import Dict, List

import yaml

from ..engine.errors import PersistenceError
from ..models import Asset, Evaluation, Project

logger = logging.getLogger(__name__)


class LocalClipStore:
    """Clips as mp4 files; locators are absolute paths."""

    def __init__(self, root: Path) -> None:
        self._root = root / "videos"

    def _path(self, project_id: str, scene_id: str) -> Path:
        return self._root / project_id / f"{scene_id}.mp4"

    def save(self, project_id: str, scene_id: str, clip: bytes) -> str:
        path = self._path(project_id, scene_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".part")
            tmp.write_bytes(clip)
            tmp.replace(path)
        except OSError as e:
            raise PersistenceError(f"Failed to save clip for scene {scene_id}: {e}") from e

        logger.info(f"Saved clip for scene {scene_id} in project {project_id} to {path}")
        return str(path.resolve())

    def list(self, project_id: str) -> Dict[str, str]:
        project_dir = self._root / project_id
        if not project_dir.exists():
            return {}
        return {p.stem: str(p.resolve()) for p in sorted(project_dir.glob("*.mp4"))}

    def read(self, locator: str) -> bytes:
        path = Path(locator)
        if not path.exists():
            raise FileNotFoundError(f"Clip not found: {locator}")
        return path.read_bytes()

    def delete(self, project_id: str, scene_id: str) -> None:
        path = self._path(project_id, scene_id)
        if path.exists():
            path.unlink()


class JsonEvaluationStore:
    """One JSON document per project mapping scene id to evaluation."""

    def __init__(self, root: Path) -> None:
        self._root = root / "evaluations"

    def _path(self, project_id: str) -> Path:
        return self._root / f"{project_id}.json"

    def _read(self, project_id: str) -> Dict[str, dict]:
        path = self._path(project_id)
        if not path.exists():
            return {}
        with open(path, "r") as f:
            return json.load(f)

    def _write(self, project_id: str, data: Dict[str, dict]) -> None:
        path = self._path(project_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise PersistenceError(f"Failed to write evaluations for project {project_id}: {e}") from e

    def save(self, project_id: str, scene_id: str, evaluation: Evaluation) -> None:
        data = self._read(project_id)
        data[scene_id] = evaluation.model_dump(mode="json")
        self._write(project_id, data)
        logger.info(f"Saved evaluation for scene {scene_id} in project {project_id}")

    def list_for_project(self, project_id: str) -> Dict[str, Evaluation]:
        return {
            scene_id: Evaluation(**payload)
            for scene_id, payload in self._read(project_id).items()
        }

    def delete(self, project_id: str, scene_id: str) -> None:
        data = self._read(project_id)
        if data.pop(scene_id, None) is not None:
            self._write(project_id, data)
            logger.debug(f"Deleted evaluation for scene {scene_id} in project {project_id}")


class LocalAssetStore:
    """Read-only view over per-project YAML asset indexes."""

    def __init__(self, root: Path) -> None:
        self._root = root / "assets"
        self._cache: Dict[str, Asset] = {}

    def list_for_project(self, project_id: str) -> List[Asset]:
        path = self._root / f"{project_id}.yaml"
        if not path.exists():
            return []
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        assets = [Asset(**{"project_id": project_id, **item}) for item in data.get("assets", [])]
        for asset in assets:
            self._cache[asset.id] = asset
        return assets

    def get_asset(self, asset_id: str) -> Asset:
        """Return an asset by id.

        Raises:
            KeyError: If no index contains the asset.
        """
        if asset_id in self._cache:
            return self._cache[asset_id]

        if self._root.exists():
            for index in sorted(self._root.glob("*.yaml")):
                self.list_for_project(index.stem)
                if asset_id in self._cache:
                    return self._cache[asset_id]

        raise KeyError(f"Asset not found: {asset_id}")


class YamlProjectStore:
    """Projects as YAML documents."""

    def __init__(self, root: Path) -> None:
        self._root = root / "projects"

    def path_for(self, project_id: str) -> Path:
        return self._root / f"{project_id}.yaml"

    def load(self, project_id: str) -> Project:
        path = self.path_for(project_id)
        if not path.exists():
            raise FileNotFoundError(f"No project found at {path}")
        return Project.from_yaml(path)

    def save(self, project: Project) -> None:
        try:
            project.to_yaml(self.path_for(project.id))
        except OSError as e:
            raise PersistenceError(f"Failed to save project {project.id}: {e}") from e

    def list_ids(self) -> List[str]:
        if not self._root.exists():
            return []
        return [p.stem for p in sorted(self._root.glob("*.yaml"))]
