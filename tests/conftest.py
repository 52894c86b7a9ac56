from __future__ import annotations

import pytest

from pose_editor.config import EditorSettings
from pose_editor.pose.model import PoseModel
from pose_editor.pose.types import ROOT_PARENT, Bone, BoneGraph


@pytest.fixture
def settings() -> EditorSettings:
    return EditorSettings()


@pytest.fixture
def model(settings: EditorSettings) -> PoseModel:
    return PoseModel(settings=settings)


@pytest.fixture
def arm_graph() -> BoneGraph:
    """shoulder -> upper_arm -> {forearm, elbow_pad}, plus an unrelated root."""
    return BoneGraph(
        bones=[
            Bone(id=1, parent=ROOT_PARENT, name="shoulder"),
            Bone(id=2, parent=1, name="upper_arm"),
            Bone(id=3, parent=2, name="forearm"),
            Bone(id=4, parent=2, name="elbow_pad"),
            Bone(id=7, parent=ROOT_PARENT, name="prop"),
        ],
        origin_path="rigs/arm.csv",
        origin_name="arm.csv",
        loaded=True,
        saved=True,
    )

