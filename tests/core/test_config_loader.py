"""Tests for config loading and mapping definition parsing."""

import json

import numpy as np
import pytest

from mimicrig.core.config_loader import (
    load_json, load_mapping_definition, load_skeleton_asset,
)
from mimicrig.retarget.definition import (
    MappingDefinition, MappingRow, MatchField, PositionMethod,
)


def _write(tmp_path, name, data):
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return path


def test_load_json(tmp_path):
    path = _write(tmp_path, "a.json", {"x": [1, 2]})
    assert load_json(path) == {"x": [1, 2]}


def test_load_bundled_mapping():
    definition = load_mapping_definition("humanoid.json")
    assert definition.target_root == "Armature"
    assert definition.find_row("pelvis").source == "Hips"
    assert definition.find_row("head").method is PositionMethod.INHERITED
    assert definition.includes is None
    assert definition.chains and definition.chains[0].enabled is False


def test_load_mapping_from_path(tmp_path):
    path = _write(tmp_path, "map.json", {
        "targetRoot": "Root",
        "mappings": [{"source": "Hips", "target": "pelvis"}],
        "includes": ["Hips"],
        "debuggingSourceCopyBeginning": "Spine",
    })
    definition = load_mapping_definition(path)
    assert definition.mappings == [MappingRow("Hips", "pelvis", PositionMethod.SCALED)]
    assert definition.includes == ["Hips"]
    assert definition.debugging_source_copy_beginning == "Spine"


def test_load_skeleton_asset_flat_column_major(tmp_path):
    # Column-major translation (1, 2, 3) sits in elements 12..14
    flat = [1, 0, 0, 0, 0, 1, 0, 0, 0, 0, 1, 0, 1, 2, 3, 1]
    path = _write(tmp_path, "skel.json", {"joints": ["Hips"], "inverseBindPoses": [flat]})
    asset = load_skeleton_asset(path)
    np.testing.assert_array_equal(asset.inverse_bind_poses[0][:3, 3], [1, 2, 3])


@pytest.mark.parametrize("data", [
    [],
    {"targetRoot": "R"},
    {"targetRoot": 3, "mappings": []},
    {"mappings": [{"source": "A"}]},
    {"mappings": [{"source": "A", "target": "B", "method": "mirrored"}]},
    {"mappings": [], "includes": "A"},
    {"mappings": [], "chains": [{"source": {"first": "A"}}]},
    {"mappings": [], "chains": None},
    {"mappings": [], "chains": ["A"]},
    {"mappings": [], "debuggingSourceCopyBeginning": 5},
])
def test_invalid_mapping_definitions(data):
    with pytest.raises(ValueError):
        MappingDefinition.from_dict(data)


def test_find_row_by_source_or_target():
    definition = MappingDefinition.from_dict({"mappings": [
        {"source": "Hips", "target": "pelvis"},
        {"source": "Spine", "target": "pelvis"},
    ]})
    assert definition.find_row("pelvis").source == "Hips"
    assert definition.find_row("Spine", MatchField.SOURCE).target == "pelvis"
    assert definition.find_row("Spine") is None


def test_includes_filter():
    assert MappingDefinition().is_included("anything")
    assert not MappingDefinition(includes=[]).is_included("Hips")
    assert MappingDefinition(includes=["Hips"]).is_included("Hips")
