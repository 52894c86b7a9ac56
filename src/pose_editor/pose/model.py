"""
Pose Model

The command layer that owns the current BoneGraph. Every change to the graph
goes through one of the ``PoseModel`` methods, which keep bone ids and names
unique and the parent links free of loops.

Commands that cannot be applied (unknown bone, taken name, parent loop) are
ignored without touching the graph. Commands that do change it mark the graph
unsaved and raise the dirty flag, which an orchestrator polls once per cycle
to decide whether to fetch a new snapshot.
"""

from typing import Optional

from loguru import logger

from pose_editor.config import EditorSettings, get_settings
from pose_editor.pose.graph import (
    NOT_FOUND,
    bone_children,
    find_bone_by_id,
    find_bone_by_name,
    has_parent_loop,
    unique_bone_id,
    unique_bone_name,
)
from pose_editor.pose.rotation import canonical_euler
from pose_editor.pose.types import ROOT_PARENT, Bone, BoneGraph, EulerAngles


class PoseModel:
    """
    Maintains a single BoneGraph and a coalesced change flag.

    Callers never get a reference to the stored graph, only deep copies from
    ``current_snapshot``.
    """

    def __init__(self, settings: Optional[EditorSettings] = None):
        """
        Initialize the model with an empty graph.

        Args:
            settings: Supplies the bone limit and the default name template
        """
        self.settings = settings or get_settings()
        self._graph = BoneGraph()
        self._dirty = False

    # Notification ------------------------------------------------------

    def is_dirty(self) -> bool:
        return self._dirty

    def clear_dirty(self) -> None:
        self._dirty = False

    def current_snapshot(self) -> BoneGraph:
        """Return an independent deep copy of the current graph."""
        return self._graph.copy()

    def _changed(self) -> None:
        self._dirty = True
        self._graph.saved = False

    # Graph and metadata ------------------------------------------------

    def replace_graph(self, graph: BoneGraph) -> None:
        self._graph = graph.copy()
        self._changed()

    def set_file_path(self, path: str) -> None:
        self._graph.origin_path = path
        self._changed()

    def set_file_name(self, name: str) -> None:
        self._graph.origin_name = name
        self._changed()

    def set_loaded(self, loaded: bool) -> None:
        self._graph.loaded = loaded
        self._changed()

    def set_saved(self, saved: bool) -> None:
        self._graph.saved = saved
        self._dirty = True

    # Bone commands -----------------------------------------------------

    def add_bone(self, parent_id: int) -> int:
        """
        Create a bone with a fresh id and default name under ``parent_id``.

        The bone is inserted right after its parent when ``parent_id`` is a
        positive id of an existing bone and appended otherwise; ``0`` always
        appends even if a bone with id 0 exists. An unknown parent is stored
        as the root.

        Returns:
            The id of the new bone

        Raises:
            BoneLimitError: No free id or default name below the bone limit
        """
        graph = self._graph
        limit = self.settings.max_bone_limit
        bone = Bone(
            id=unique_bone_id(graph, limit),
            parent=parent_id,
            name=unique_bone_name(graph, limit, self.settings.bone_name_template),
        )

        parent_position = find_bone_by_id(graph, parent_id)
        if parent_id != ROOT_PARENT and parent_position == NOT_FOUND:
            bone.parent = ROOT_PARENT

        if parent_id > 0 and parent_position != NOT_FOUND:
            graph.bones.insert(parent_position + 1, bone)
        else:
            graph.bones.append(bone)

        logger.debug(
            "Added bone {bone_id} '{name}' under {parent}",
            bone_id=bone.id,
            name=bone.name,
            parent=bone.parent,
        )
        self._changed()
        return bone.id

    def remove_bone(self, bone_id: int) -> None:
        """Remove a bone, handing its children over to its own parent."""
        graph = self._graph
        position = find_bone_by_id(graph, bone_id)
        if position == NOT_FOUND:
            logger.debug("Remove ignored: no bone {bone_id}", bone_id=bone_id)
            return

        parent = graph.bones[position].parent
        for child in bone_children(graph, bone_id):
            graph.bones[child].parent = parent
        del graph.bones[position]
        self._changed()

    def move_up(self, bone_id: int) -> None:
        bones = self._graph.bones
        position = find_bone_by_id(self._graph, bone_id)
        if position > 0:
            bones[position - 1], bones[position] = bones[position], bones[position - 1]
            self._changed()

    def move_down(self, bone_id: int) -> None:
        bones = self._graph.bones
        position = find_bone_by_id(self._graph, bone_id)
        if position != NOT_FOUND and position < len(bones) - 1:
            bones[position + 1], bones[position] = bones[position], bones[position + 1]
            self._changed()

    def set_rotation(self, bone_id: int, euler: EulerAngles) -> None:
        """
        Set a bone's orientation from Euler degrees.

        The stored Euler triple is the one decoded back from the new
        quaternion, not ``euler`` itself.
        """
        position = find_bone_by_id(self._graph, bone_id)
        if position == NOT_FOUND:
            logger.debug("Rotation ignored: no bone {bone_id}", bone_id=bone_id)
            return

        bone = self._graph.bones[position]
        bone.euler = (float(euler[0]), float(euler[1]), float(euler[2]))
        bone.quaternion, bone.euler = canonical_euler(bone.euler)
        self._changed()

    def set_name(self, bone_id: int, name: str) -> None:
        """
        Rename a bone if no bone holds ``name`` yet.

        The check includes the bone itself, so renaming a bone to its
        current name is ignored.
        """
        position = find_bone_by_id(self._graph, bone_id)
        if position == NOT_FOUND or find_bone_by_name(self._graph, name) != NOT_FOUND:
            logger.debug("Rename of {bone_id} to '{name}' ignored", bone_id=bone_id, name=name)
            return

        self._graph.bones[position].name = name
        self._changed()

    def set_parent(self, bone_id: int, parent_id: int) -> None:
        """Reparent a bone unless the parent is unknown or a loop would form."""
        graph = self._graph
        position = find_bone_by_id(graph, bone_id)
        if position == NOT_FOUND:
            logger.debug("Reparent ignored: no bone {bone_id}", bone_id=bone_id)
            return
        if parent_id != ROOT_PARENT and find_bone_by_id(graph, parent_id) == NOT_FOUND:
            logger.debug("Reparent ignored: no parent {parent_id}", parent_id=parent_id)
            return

        bone = graph.bones[position]
        original_parent = bone.parent
        bone.parent = parent_id
        if has_parent_loop(graph, bone_id):
            bone.parent = original_parent
            logger.debug(
                "Reparent of {bone_id} to {parent_id} ignored: parent loop",
                bone_id=bone_id,
                parent_id=parent_id,
            )
            return

        self._changed()
