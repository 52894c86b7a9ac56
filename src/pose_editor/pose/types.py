"""
Data models and types for the pose editor.
"""

import copy
from dataclasses import dataclass, field
from typing import List, Tuple

Quaternion = Tuple[float, float, float, float]  # x, y, z, w
EulerAngles = Tuple[float, float, float]  # degrees about x, y, z

# Parent id of a bone that sits at the top of the hierarchy.
ROOT_PARENT = -1

IDENTITY_QUATERNION: Quaternion = (0.0, 0.0, 0.0, 1.0)


@dataclass
class Bone:
    """A single named, oriented joint of a pose."""

    id: int
    parent: int = ROOT_PARENT
    quaternion: Quaternion = IDENTITY_QUATERNION
    euler: EulerAngles = (0.0, 0.0, 0.0)  # derived from quaternion
    name: str = ""

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "parent": self.parent,
            "quaternion": list(self.quaternion),
            "euler": list(self.euler),
            "name": self.name,
        }


@dataclass
class BoneGraph:
    """
    Ordered bones plus the file metadata they were loaded with.

    The order of ``bones`` is the persisted row order and the flat display
    order; it is unrelated to the parent/child tree.
    """

    bones: List[Bone] = field(default_factory=list)
    origin_path: str = ""  # empty if generated or failed
    origin_name: str = ""
    loaded: bool = False  # origin_path is a valid save target
    saved: bool = False  # no unrecorded changes

    def copy(self) -> "BoneGraph":
        """Return an independent deep copy."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "bones": [bone.to_dict() for bone in self.bones],
            "origin_path": self.origin_path,
            "origin_name": self.origin_name,
            "loaded": self.loaded,
            "saved": self.saved,
        }


@dataclass(frozen=True)
class HierarchyRow:
    """One bone as seen in the hierarchical presentation."""

    position: int  # index into BoneGraph.bones
    bone_id: int
    name: str
    depth: int
