"""Report how a mapping definition resolves against two skeleton assets.

For every mapping row, shows which joint each side's name resolves to
(suffix match, first wins), whether the include list drops it, and the
bone length ratio that position retargeting would use.

Usage::

    python -m tools.mapping_report mapping.json source_skeleton.json target_skeleton.json
"""

import logging

import numpy as np

from mimicrig.constants import BIND_POSE_TOLERANCE, MIN_BONE_LENGTH
from mimicrig.core.config_loader import load_mapping_definition, load_skeleton_asset
from mimicrig.core.transform import compose
from mimicrig.skeleton.bind_pose import BindPoseIndex

logger = logging.getLogger("mapping_report")


def check_bind_poses(label: str, index: BindPoseIndex) -> int:
    """Log joints whose local bind pose does not recompose to the world bind pose."""
    bad = 0
    for entry in index.entries():
        if entry.parent_id is None:
            continue
        recomposed = compose(index.world_bind_pose(entry.parent_id), index.local_bind_pose(entry.joint_id))
        if not recomposed.approx_equal(index.world_bind_pose(entry.joint_id), BIND_POSE_TOLERANCE):
            logger.warning("%s: bind pose of %s is inconsistent with its parent", label, entry.joint_name)
            bad += 1
    return bad


def report(mapping_path: str, source_path: str, target_path: str) -> int:
    definition = load_mapping_definition(mapping_path)
    source = BindPoseIndex(load_skeleton_asset(source_path))
    target = BindPoseIndex(load_skeleton_asset(target_path))

    check_bind_poses("source", source)
    check_bind_poses("target", target)

    resolved = 0
    for row in definition.mappings:
        if not definition.is_included(row.source):
            logger.info("%-24s -> %-24s excluded", row.source, row.target)
            continue
        sid = source.resolve(row.source)
        tid = target.resolve(row.target)
        if sid is None or tid is None:
            logger.warning(
                "%-24s -> %-24s unresolved (source: %s, target: %s)",
                row.source, row.target,
                "-" if sid is None else source.entry(sid).joint_name,
                "-" if tid is None else target.entry(tid).joint_name,
            )
            continue
        src_len = float(np.linalg.norm(source.local_bind_pose(sid).position))
        tgt_len = float(np.linalg.norm(target.local_bind_pose(tid).position))
        ratio = "skip" if src_len < MIN_BONE_LENGTH else f"{tgt_len / src_len:.3f}"
        logger.info(
            "%-24s -> %-24s %s -> %s [%s, ratio %s]",
            row.source, row.target,
            source.entry(sid).joint_name, target.entry(tid).joint_name,
            row.method.value, ratio,
        )
        resolved += 1

    logger.info("%d/%d mappings resolved", resolved, len(definition.mappings))
    return resolved


def main():
    import argparse
    parser = argparse.ArgumentParser(description="Check mapping rows against skeleton bind poses")
    parser.add_argument("mapping", help="Mapping definition JSON")
    parser.add_argument("source", help="Source skeleton JSON (joints + inverseBindPoses)")
    parser.add_argument("target", help="Target skeleton JSON (joints + inverseBindPoses)")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(name)s: %(message)s",
    )
    report(args.mapping, args.source, args.target)


if __name__ == "__main__":
    main()
