from __future__ import annotations

import itertools

import pytest

from pose_editor.config import EditorSettings
from pose_editor.pose.graph import BoneLimitError, has_parent_loop
from pose_editor.pose.model import PoseModel
from pose_editor.pose.rotation import quaternion_to_euler
from pose_editor.pose.types import ROOT_PARENT, Bone, BoneGraph


def ids(graph: BoneGraph) -> list[int]:
    return [bone.id for bone in graph.bones]


def parents(graph: BoneGraph) -> dict[int, int]:
    return {bone.id: bone.parent for bone in graph.bones}


@pytest.fixture
def arm_model(model: PoseModel, arm_graph: BoneGraph) -> PoseModel:
    model.replace_graph(arm_graph)
    model.set_saved(True)
    model.clear_dirty()
    return model


def assert_untouched(model: PoseModel, before: BoneGraph) -> None:
    assert not model.is_dirty()
    assert model.current_snapshot() == before


def test_starts_empty_and_clean(model: PoseModel):
    assert model.current_snapshot() == BoneGraph()
    assert not model.is_dirty()


def test_concrete_editing_scenario(model: PoseModel):
    assert model.add_bone(ROOT_PARENT) == 1
    snapshot = model.current_snapshot()
    assert snapshot.bones == [Bone(id=1, parent=ROOT_PARENT, name="bone (1)")]

    assert model.add_bone(1) == 2
    snapshot = model.current_snapshot()
    assert ids(snapshot) == [1, 2]
    assert snapshot.bones[1].parent == 1

    model.clear_dirty()
    model.set_parent(1, 2)
    assert not model.is_dirty()
    assert model.current_snapshot().bones[0].parent == ROOT_PARENT

    model.remove_bone(1)
    snapshot = model.current_snapshot()
    assert ids(snapshot) == [2]
    assert snapshot.bones[0].parent == ROOT_PARENT


def test_mutations_mark_dirty_and_unsaved(arm_model: PoseModel):
    arm_model.set_rotation(3, (10.0, 0.0, 0.0))

    assert arm_model.is_dirty()
    assert arm_model.current_snapshot().saved is False


def test_set_saved_is_the_only_way_back_to_saved(arm_model: PoseModel):
    arm_model.add_bone(ROOT_PARENT)
    arm_model.clear_dirty()

    arm_model.set_saved(True)

    assert arm_model.is_dirty()
    assert arm_model.current_snapshot().saved is True


def test_metadata_setters(model: PoseModel):
    model.set_file_path("rigs/arm.csv")
    model.set_file_name("arm.csv")
    model.set_loaded(True)
    snapshot = model.current_snapshot()

    assert (snapshot.origin_path, snapshot.origin_name, snapshot.loaded) == ("rigs/arm.csv", "arm.csv", True)
    assert snapshot.saved is False
    assert model.is_dirty()


def test_replace_graph_copies_its_argument(model: PoseModel, arm_graph: BoneGraph):
    model.replace_graph(arm_graph)
    arm_graph.bones[0].name = "changed outside"

    assert model.current_snapshot().bones[0].name == "shoulder"
    assert model.current_snapshot().saved is False
    assert model.is_dirty()


def test_snapshots_are_independent(arm_model: PoseModel):
    snapshot = arm_model.current_snapshot()
    snapshot.bones[0].name = "mutated"
    snapshot.bones.pop()

    fresh = arm_model.current_snapshot()
    assert fresh.bones[0].name == "shoulder"
    assert len(fresh.bones) == 5

    arm_model.remove_bone(1)
    assert len(snapshot.bones) == 4
    assert snapshot.bones[1].parent == 1


# add_bone ---------------------------------------------------------------


def test_add_inserts_after_parent(arm_model: PoseModel):
    new_id = arm_model.add_bone(1)
    snapshot = arm_model.current_snapshot()

    assert new_id == 5
    assert ids(snapshot) == [1, 5, 2, 3, 4, 7]
    assert snapshot.bones[1].parent == 1
    assert snapshot.bones[1].name == "bone (1)"


def test_add_under_last_bone_appends(arm_model: PoseModel):
    arm_model.add_bone(7)
    assert ids(arm_model.current_snapshot()) == [1, 2, 3, 4, 7, 5]


def test_add_with_unknown_parent_appends_at_root(arm_model: PoseModel):
    arm_model.add_bone(42)
    added = arm_model.current_snapshot().bones[-1]

    assert added.id == 5
    assert added.parent == ROOT_PARENT


def test_add_with_parent_zero_always_appends(model: PoseModel):
    model.replace_graph(
        BoneGraph(bones=[Bone(id=0, name="zero"), Bone(id=1, parent=0, name="one"), Bone(id=3, name="three")])
    )

    model.add_bone(0)
    snapshot = model.current_snapshot()

    assert ids(snapshot) == [0, 1, 3, 2]
    assert snapshot.bones[-1].parent == 0


def test_add_generates_unique_names_around_renames(model: PoseModel):
    model.add_bone(ROOT_PARENT)
    model.set_name(1, "bone (2)")
    model.add_bone(ROOT_PARENT)
    model.add_bone(ROOT_PARENT)

    names = [bone.name for bone in model.current_snapshot().bones]
    assert names == ["bone (2)", "bone (1)", "bone (3)"]


def test_add_raises_when_ids_run_out():
    model = PoseModel(settings=EditorSettings(max_bone_limit=3))
    model.add_bone(ROOT_PARENT)
    model.add_bone(ROOT_PARENT)
    model.clear_dirty()

    with pytest.raises(BoneLimitError):
        model.add_bone(ROOT_PARENT)

    assert ids(model.current_snapshot()) == [1, 2]
    assert not model.is_dirty()


def test_add_raises_when_default_names_run_out():
    model = PoseModel(settings=EditorSettings(max_bone_limit=3))
    model.replace_graph(BoneGraph(bones=[Bone(id=10, name="bone (1)"), Bone(id=11, name="bone (2)")]))

    with pytest.raises(BoneLimitError):
        model.add_bone(ROOT_PARENT)
    assert len(model.current_snapshot().bones) == 2


def test_add_uses_configured_name_template():
    model = PoseModel(settings=EditorSettings(bone_name_template="joint_{index}"))
    model.add_bone(ROOT_PARENT)
    assert model.current_snapshot().bones[0].name == "joint_1"


# remove_bone ------------------------------------------------------------


def test_remove_splices_children_to_grandparent(arm_model: PoseModel):
    arm_model.remove_bone(2)
    snapshot = arm_model.current_snapshot()

    assert ids(snapshot) == [1, 3, 4, 7]
    assert parents(snapshot) == {1: ROOT_PARENT, 3: 1, 4: 1, 7: ROOT_PARENT}
    assert arm_model.is_dirty()


def test_remove_root_promotes_children_to_roots(arm_model: PoseModel):
    arm_model.remove_bone(1)
    assert parents(arm_model.current_snapshot())[2] == ROOT_PARENT


def test_remove_unknown_bone_is_ignored(arm_model: PoseModel):
    before = arm_model.current_snapshot()
    arm_model.remove_bone(99)
    assert_untouched(arm_model, before)


# move_up / move_down ----------------------------------------------------


def test_move_up_and_down_swap_neighbours(arm_model: PoseModel):
    arm_model.move_up(3)
    assert ids(arm_model.current_snapshot()) == [1, 3, 2, 4, 7]

    arm_model.move_down(1)
    snapshot = arm_model.current_snapshot()
    assert ids(snapshot) == [3, 1, 2, 4, 7]
    assert parents(snapshot)[3] == 2


@pytest.mark.parametrize(
    ("command", "bone_id"),
    [("move_up", 1), ("move_down", 7), ("move_up", 99), ("move_down", 99)],
)
def test_moves_at_the_boundaries_are_ignored(arm_model: PoseModel, command: str, bone_id: int):
    before = arm_model.current_snapshot()
    getattr(arm_model, command)(bone_id)
    assert_untouched(arm_model, before)


# set_rotation -----------------------------------------------------------


def test_set_rotation_stores_quaternion_and_decoded_euler(arm_model: PoseModel):
    arm_model.set_rotation(3, (30.0, 45.0, 60.0))
    bone = arm_model.current_snapshot().bones[2]

    assert bone.euler == pytest.approx((30.0, 45.0, 60.0), abs=1e-6)
    assert bone.euler == quaternion_to_euler(bone.quaternion)
    assert arm_model.is_dirty()


def test_set_rotation_surfaces_conversion_drift(arm_model: PoseModel):
    arm_model.set_rotation(3, (200.0, 0.0, 0.0))
    bone = arm_model.current_snapshot().bones[2]

    assert bone.euler == pytest.approx((-160.0, 0.0, 0.0), abs=1e-6)


def test_set_rotation_on_unknown_bone_is_ignored(arm_model: PoseModel):
    before = arm_model.current_snapshot()
    arm_model.set_rotation(99, (1.0, 2.0, 3.0))
    assert_untouched(arm_model, before)


# set_name ---------------------------------------------------------------


def test_set_name(arm_model: PoseModel):
    arm_model.set_name(3, "radius")
    assert arm_model.current_snapshot().bones[2].name == "radius"
    assert arm_model.is_dirty()


@pytest.mark.parametrize(
    ("bone_id", "name"),
    [
        (3, "shoulder"),  # held by another bone
        (3, "forearm"),  # the bone's own name is also rejected
        (99, "radius"),
    ],
)
def test_rejected_renames(arm_model: PoseModel, bone_id: int, name: str):
    before = arm_model.current_snapshot()
    arm_model.set_name(bone_id, name)
    assert_untouched(arm_model, before)


# set_parent -------------------------------------------------------------


def test_set_parent(arm_model: PoseModel):
    arm_model.set_parent(7, 3)
    assert parents(arm_model.current_snapshot())[7] == 3
    assert arm_model.is_dirty()


def test_set_parent_to_root(arm_model: PoseModel):
    arm_model.set_parent(3, ROOT_PARENT)
    assert parents(arm_model.current_snapshot())[3] == ROOT_PARENT


@pytest.mark.parametrize(
    ("bone_id", "parent_id"),
    [
        (1, 3),  # shoulder under its own grandchild
        (2, 2),  # self
        (2, 4),
        (3, 50),  # unknown parent
        (50, 1),  # unknown bone
    ],
)
def test_rejected_reparents(arm_model: PoseModel, bone_id: int, parent_id: int):
    before = arm_model.current_snapshot()
    arm_model.set_parent(bone_id, parent_id)
    assert_untouched(arm_model, before)


# properties over command sequences --------------------------------------


def test_random_edits_keep_ids_and_names_unique_and_acyclic(model: PoseModel):
    for step, (a, b) in enumerate(itertools.product(range(-1, 9), repeat=2)):
        kind = step % 6
        if kind == 0:
            model.add_bone(a)
        elif kind == 1:
            model.set_parent(a, b)
        elif kind == 2:
            model.set_name(a, f"bone ({b})")
        elif kind == 3 and step % 4 == 0:
            model.remove_bone(a)
        elif kind == 4:
            model.move_up(a)
        else:
            model.set_parent(b, a)

        graph = model.current_snapshot()
        bone_ids = ids(graph)
        names = [bone.name for bone in graph.bones]
        assert len(set(bone_ids)) == len(bone_ids)
        assert len(set(names)) == len(names)
        assert not any(has_parent_loop(graph, bone_id) for bone_id in bone_ids)
        assert all(bone.parent == ROOT_PARENT or bone.parent in bone_ids for bone in graph.bones)
