import numpy as np
import pytest
import pyvista as pv

from treepruner.config import LEAF_MIN_LEVEL, TEMPLATE_COLOR
from treepruner.model.pruning import PruneSet
from treepruner.model.tree import NodeKind
from treepruner.view.builders import BranchDimensions, build_tree_view
from treepruner.view.scene import RenderStyle
from treepruner.view.template import normalize_template


def tagged(root):
    return [node for node in root.traverse() if node.node_id is not None]


def test_dimensions_per_level():
    dims = BranchDimensions.for_level(2)
    assert dims.length == pytest.approx(2.8)
    assert dims.radius == pytest.approx(0.13)
    assert dims.leaf_radius == pytest.approx(1.1)
    assert dims.segment_length == pytest.approx(2.8 / 3)


def test_full_tree_shows_every_segment_and_leaf(reference_tree):
    root = build_tree_view(reference_tree, PruneSet())
    branches = list(reference_tree.iter_branches())

    segments = [n for n in root.traverse() if n.kind == NodeKind.SEGMENT]
    leaves = [n for n in root.traverse() if n.kind == NodeKind.LEAF]
    assert len(segments) == 3 * len(branches)
    assert len(leaves) == sum(1 for b in branches if b.level >= LEAF_MIN_LEVEL)

    branch_ids = {b.id for b in branches}
    assert {n.node_id for n in tagged(root)} == reference_tree.all_ids() - branch_ids


def test_pruned_ids_are_not_rendered(reference_tree):
    pruned = PruneSet()
    pruned.prune_from_segment(reference_tree.root.children[0], 1)
    pruned.prune_from_segment(reference_tree.root.children[1], 0)

    root = build_tree_view(reference_tree, pruned)
    assert not {n.node_id for n in tagged(root)} & pruned.ids


def test_first_surviving_segment_sits_at_attachment_point(reference_tree):
    target = reference_tree.root.children[0]
    pruned = PruneSet([target.segments[0].id])

    root = build_tree_view(reference_tree, pruned)
    # Segment 0 gone: the remaining segments chain from the attachment point
    assert root.find_by_id(target.segments[1].id) is not None
    node = root.find_by_id(target.segments[1].id)
    assert node.position[1] == 0.0


def test_segments_chain_end_to_end(reference_tree):
    root = build_tree_view(reference_tree, PruneSet())
    dims = BranchDimensions.for_level(0)
    trunk = [root.find_by_id(s.id) for s in reference_tree.root.segments]

    assert trunk[0].parent is root
    assert trunk[1].parent is trunk[0]
    assert trunk[2].parent is trunk[1]
    np.testing.assert_allclose(trunk[2].world_position(), [0, 2 * dims.segment_length, 0], atol=1e-12)


def test_children_hang_from_top_of_last_segment(reference_tree):
    root = build_tree_view(reference_tree, PruneSet())
    top = root.find_by_id(reference_tree.root.segments[2].id)
    length = BranchDimensions.for_level(0).segment_length

    for child in reference_tree.root.children:
        pivot = root.find_by_id(child.segments[0].id).parent
        assert pivot.parent is top
        assert pivot.position[1] == pytest.approx(length)
        assert pivot.rotation[0] == child.rotation.x
        assert pivot.rotation[2] == child.rotation.z


def test_no_pivot_for_pruned_child(reference_tree):
    child = reference_tree.root.children[0]
    pruned = PruneSet()
    pruned.prune_subtree(child)
    root = build_tree_view(reference_tree, pruned)
    assert not [n for n in root.traverse() if n.name == f"pivot-{child.id}"]


def test_solid_segments_have_base_pivot(reference_tree):
    root = build_tree_view(reference_tree, PruneSet())
    node = root.find_by_id(reference_tree.root.segments[0].id)
    length = BranchDimensions.for_level(0).segment_length

    _, _, y_min, y_max, _, _ = node.mesh.bounds
    assert y_min == pytest.approx(0.0, abs=1e-6)
    assert y_max == pytest.approx(length, abs=1e-6)
    assert node.pickable


def test_skeleton_is_not_pickable(reference_tree):
    root = build_tree_view(reference_tree, PruneSet(), skeleton=True)
    assert not [n for n in root.traverse() if n.pickable]

    leaves = [n for n in root.traverse() if n.kind == NodeKind.LEAF]
    assert leaves
    assert all(n.style == RenderStyle.POINTS for n in leaves)
    assert all(n.mesh.n_points == 1 for n in leaves)


def test_template_replaces_cylinders(reference_tree):
    template = normalize_template(pv.Cube(x_length=1.0, y_length=2.0, z_length=1.0)).mesh
    root = build_tree_view(reference_tree, PruneSet(), template=template)

    dims = BranchDimensions.for_level(0)
    node = root.find_by_id(reference_tree.root.segments[0].id)
    x_min, x_max, y_min, y_max, _, _ = node.mesh.bounds
    assert node.color == TEMPLATE_COLOR
    assert y_min == pytest.approx(0.0, abs=1e-6)
    assert y_max == pytest.approx(dims.segment_length, abs=1e-6)
    assert x_max - x_min == pytest.approx(dims.radius, abs=1e-6)
