"""
Pose core

Bone graph data model, the command layer that edits it, and the text codec
that stores it.
"""

from pose_editor.pose.codec import PoseDecodeError, decode_graph, encode_graph
from pose_editor.pose.graph import BoneLimitError
from pose_editor.pose.model import PoseModel
from pose_editor.pose.types import ROOT_PARENT, Bone, BoneGraph

__all__ = [
    "PoseModel",
    "Bone",
    "BoneGraph",
    "ROOT_PARENT",
    "BoneLimitError",
    "PoseDecodeError",
    "decode_graph",
    "encode_graph",
]
