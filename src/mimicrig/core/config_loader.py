"""JSON config file loading utilities."""

import json
from pathlib import Path
from typing import Any, Union

from mimicrig.constants import MAPPING_CONFIG_DIR
from mimicrig.retarget.definition import MappingDefinition
from mimicrig.skeleton.bind_pose import SkeletonAsset


def load_json(path: Path) -> Any:
    """Load and return parsed JSON from a file."""
    with open(path) as f:
        return json.load(f)


def load_mapping_definition(path_or_name: Union[str, Path]) -> MappingDefinition:
    """Load a mapping definition from a path, or by name from assets/config/mappings/."""
    path = Path(path_or_name)
    if not path.exists():
        path = MAPPING_CONFIG_DIR / path
    return MappingDefinition.from_dict(load_json(path))


def load_skeleton_asset(path: Union[str, Path]) -> SkeletonAsset:
    """Load joint paths and inverse bind poses from a JSON file."""
    return SkeletonAsset.from_dict(load_json(Path(path)))
