"""
Lookup primitives over a BoneGraph.

Positions returned here index ``BoneGraph.bones`` and are only valid until
the next mutation of the graph.
"""

from typing import Iterator, List

from loguru import logger

from pose_editor.pose.types import ROOT_PARENT, BoneGraph, HierarchyRow

NOT_FOUND = -1


class BoneLimitError(RuntimeError):
    """Raised when no free bone id or default name exists below the limit."""


def find_bone_by_id(graph: BoneGraph, bone_id: int) -> int:
    for position, bone in enumerate(graph.bones):
        if bone.id == bone_id:
            return position
    return NOT_FOUND


def find_bone_by_name(graph: BoneGraph, name: str) -> int:
    for position, bone in enumerate(graph.bones):
        if bone.name == name:
            return position
    return NOT_FOUND


def bone_children(graph: BoneGraph, parent_id: int) -> List[int]:
    """Positions of the bones whose parent is ``parent_id``, in sequence order."""
    return [position for position, bone in enumerate(graph.bones) if bone.parent == parent_id]


def has_parent_loop(graph: BoneGraph, bone_id: int) -> bool:
    """
    Follow parent links from ``bone_id`` and report whether they never end.

    The walk stops cleanly as soon as it reaches an id that is not a bone
    (the root sentinel or a removed bone). Walking more than ``len(bones) + 1``
    links without stopping means the links form a loop.
    """
    current = bone_id
    for _ in range(len(graph.bones) + 1):
        position = find_bone_by_id(graph, current)
        if position == NOT_FOUND:
            return False
        current = graph.bones[position].parent
    return True


def unique_bone_id(graph: BoneGraph, limit: int) -> int:
    """Smallest positive id below ``limit`` that no bone uses."""
    taken = {bone.id for bone in graph.bones}
    for candidate in range(1, limit):
        if candidate not in taken:
            return candidate

    logger.error("No free bone id below {limit}", limit=limit)
    raise BoneLimitError(f"found more than {limit} bones")


def unique_bone_name(graph: BoneGraph, limit: int, template: str = "bone ({index})") -> str:
    """First ``template`` name, counting up from 1, that no bone uses."""
    taken = {bone.name for bone in graph.bones}
    for index in range(1, limit):
        name = template.format(index=index)
        if name not in taken:
            return name

    logger.error("No free default bone name below {limit}", limit=limit)
    raise BoneLimitError(f"found more than {limit} bones with default names")


def iter_hierarchy(graph: BoneGraph) -> Iterator[HierarchyRow]:
    """
    Yield bones depth-first, starting from the root bones.

    Roots and siblings come out in sequence order. Bones that are not
    reachable from a root are skipped.
    """
    stack = [(position, 0) for position in reversed(bone_children(graph, ROOT_PARENT))]
    visited = set()

    while stack:
        position, depth = stack.pop()
        if position in visited:
            continue
        visited.add(position)

        bone = graph.bones[position]
        yield HierarchyRow(position=position, bone_id=bone.id, name=bone.name, depth=depth)

        for child in reversed(bone_children(graph, bone.id)):
            stack.append((child, depth + 1))


def format_hierarchy(graph: BoneGraph, flat: bool = False, indent: str = "  ") -> str:
    """Render one line per bone with its id, parent and Euler angles."""
    if flat:
        rows = [
            HierarchyRow(position=position, bone_id=bone.id, name=bone.name, depth=0)
            for position, bone in enumerate(graph.bones)
        ]
    else:
        rows = list(iter_hierarchy(graph))

    lines = []
    for row in rows:
        bone = graph.bones[row.position]
        x, y, z = bone.euler
        lines.append(
            f"{indent * row.depth}{bone.name} [id={bone.id} parent={bone.parent}] "
            f"euler=({x:.2f}, {y:.2f}, {z:.2f})"
        )
    return "\n".join(lines)
