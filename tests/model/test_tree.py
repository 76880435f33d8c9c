import math

import pytest

from treepruner.config import LEAF_MIN_LEVEL, MAX_LEVEL, ROTATION_SPREAD, SEGMENTS_PER_BRANCH
from treepruner.model.tree import NodeKind, Rotation, TreeModel, generate_tree

SEEDS = [0, 1, 42, 777, 12345, 99999, -7]


@pytest.mark.parametrize("seed", SEEDS)
def test_generation_is_deterministic(seed):
    first = generate_tree(seed)
    second = generate_tree(seed)
    assert first.root == second.root
    assert first.node_count == second.node_count


def test_different_seeds_give_different_trees():
    assert generate_tree(12345).root != generate_tree(54321).root


@pytest.mark.parametrize("seed", SEEDS)
def test_ids_are_dense_and_preorder(seed):
    tree = generate_tree(seed)
    ids = [node_id for branch in tree.root.iter_subtree() for node_id in branch.iter_ids()]
    assert ids == list(range(tree.node_count))
    assert tree.all_ids() == set(range(tree.node_count))


@pytest.mark.parametrize("seed", SEEDS)
def test_branch_structure(seed):
    tree = generate_tree(seed)
    limit = math.pi * ROTATION_SPREAD / 2

    for branch in tree.iter_branches():
        assert 0 <= branch.level <= MAX_LEVEL
        assert len(branch.segments) == SEGMENTS_PER_BRANCH
        assert [s.segment_index for s in branch.segments] == list(range(SEGMENTS_PER_BRANCH))
        assert all(s.level == branch.level for s in branch.segments)
        assert (branch.leaf is not None) == (branch.level >= LEAF_MIN_LEVEL)

        if branch.level < MAX_LEVEL:
            assert 2 <= len(branch.children) <= 4
        else:
            assert branch.children == ()

        for child in branch.children:
            assert child.level == branch.level + 1
            assert child.rotation is not None
            assert -limit <= child.rotation.x <= limit
            assert -limit <= child.rotation.z <= limit


def test_root_is_the_trunk(reference_tree):
    root = reference_tree.root
    assert root.id == 0
    assert root.level == 0
    assert root.rotation is None
    assert [s.id for s in root.segments] == [1, 2, 3]


def test_reference_tree_reaches_max_level(reference_tree):
    assert max(b.level for b in reference_tree.iter_branches()) == MAX_LEVEL


def test_find_resolves_every_kind(reference_tree):
    root = reference_tree.root
    assert reference_tree.find(root.id).kind == NodeKind.BRANCH

    ref = reference_tree.find(root.segments[1].id)
    assert ref.kind == NodeKind.SEGMENT
    assert ref.branch is root
    assert ref.segment.segment_index == 1

    leafy = next(b for b in reference_tree.iter_branches() if b.leaf is not None)
    ref = reference_tree.find(leafy.leaf.id)
    assert ref.kind == NodeKind.LEAF
    assert ref.branch is leafy

    assert reference_tree.find(reference_tree.node_count) is None
    assert reference_tree.find(-1) is None


def test_subtree_ids_of_root_is_everything(reference_tree):
    assert TreeModel.subtree_ids(reference_tree.root) == reference_tree.all_ids()


def test_subtree_ids_of_child(reference_tree):
    child = reference_tree.root.children[0]
    ids = TreeModel.subtree_ids(child)
    assert child.id in ids
    assert all(s.id in ids for s in child.segments)
    for grandchild in child.children:
        assert grandchild.id in ids
    for sibling in reference_tree.root.children[1:]:
        assert sibling.id not in ids


def test_reference_tree_shape_is_pinned(reference_tree):
    # Saved states refer to these ids, so the shape must never drift
    assert reference_tree.node_count == 2787
    assert reference_tree.root.children[0].rotation == Rotation(1.2537417288748376, 1.2536207718822074)
