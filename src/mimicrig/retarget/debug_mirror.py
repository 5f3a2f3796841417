"""Copies source local transforms onto a shadow hierarchy for comparison.

No retargeting math is involved: the mirror shows the raw source pose next
to the retargeted target. Only mirror nodes are written.
"""

import logging
from typing import Iterable

from mimicrig.core.scene_graph import SceneNode
from mimicrig.retarget.bone_tree import BoneTree

logger = logging.getLogger(__name__)


class DebugMirror:
    """Pairs of (source node, mirror node) refreshed once per tick."""

    def __init__(self, pairs: Iterable[tuple[SceneNode, SceneNode]]):
        self.pairs: list[tuple[SceneNode, SceneNode]] = list(pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    @classmethod
    def from_nodes(
        cls, source_root: SceneNode, mirror_root: SceneNode, nodes: Iterable[SceneNode],
    ) -> "DebugMirror":
        """Pair each source node and its ancestors below ``source_root``.

        Mirror nodes are found by the same relative path under ``mirror_root``.
        """
        pairs = []
        seen: set[int] = set()
        for node in nodes:
            for source in node.ancestors_to(source_root):
                if id(source) in seen:
                    continue
                seen.add(id(source))
                path = source.relative_path(source_root)
                mirror = mirror_root.find_by_path(path)
                if mirror is None:
                    logger.warning("Debug mirror has no node at %s. Skipped.", path)
                    continue
                pairs.append((source, mirror))
        return cls(pairs)

    @classmethod
    def from_tree(cls, tree: BoneTree, mirror_root: SceneNode) -> "DebugMirror":
        """Mirror every mapped source joint of ``tree``."""
        sources = [n.mapping.source_node for n in tree.mapped()]
        return cls.from_nodes(tree.source_root, mirror_root, sources)

    @classmethod
    def from_chain(
        cls, source_root: SceneNode, mirror_root: SceneNode, beginning: str,
    ) -> "DebugMirror":
        """Mirror the node named ``beginning`` and its ancestors up to the roots."""
        copy_from = source_root.find(beginning)
        copy_to = mirror_root.find(beginning)
        if copy_from is None or copy_to is None:
            logger.error("Can not find debugging copy beginning %s", beginning)
            return cls([])
        return cls.from_nodes(source_root, mirror_root, [copy_from])

    def apply(self) -> None:
        for source, mirror in self.pairs:
            mirror.set_transform(source.get_transform())
