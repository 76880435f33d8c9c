import pytest
import pyvista as pv

from treepruner.view.scene import RenderStyle
from treepruner.view.template import build_template_preview, load_branch_template, normalize_template


def test_normalize_scales_to_unit_height():
    mesh = pv.Cube(center=(0.0, 3.0, 0.0), x_length=2.0, y_length=4.0, z_length=2.0)
    template = normalize_template(mesh, "cube.vtp")

    _, _, y_min, y_max, _, _ = template.mesh.bounds
    assert y_min == pytest.approx(0.0, abs=1e-9)
    assert y_max == pytest.approx(1.0, abs=1e-9)
    assert template.scale_factor == pytest.approx(0.25)
    assert template.original_dims == pytest.approx((2.0, 4.0, 2.0))
    assert template.pivot == pytest.approx((0.0, -0.25, 0.0))
    assert template.describe()["filename"] == "cube.vtp"


def test_normalize_combines_multiblock():
    blocks = pv.MultiBlock([pv.Sphere(center=(0, 0, 0)), pv.Sphere(center=(0, 2, 0))])
    template = normalize_template(blocks)
    _, _, y_min, y_max, _, _ = template.mesh.bounds
    assert y_min == pytest.approx(0.0, abs=1e-9)
    assert y_max == pytest.approx(1.0, abs=1e-9)


def test_flat_mesh_is_rejected():
    with pytest.raises(ValueError):
        normalize_template(pv.Plane(direction=(0, 1, 0)))


def test_empty_mesh_is_rejected():
    with pytest.raises(ValueError):
        normalize_template(pv.PolyData())


def test_load_from_file(tmp_path):
    path = tmp_path / "branch.vtp"
    pv.Cylinder(direction=(0, 1, 0), height=3.0).save(str(path))
    template = load_branch_template(str(path))
    assert template.filename == "branch.vtp"
    assert template.scale_factor == pytest.approx(1 / 3)


def test_preview_scene():
    template = normalize_template(pv.Cylinder(direction=(0, 1, 0), height=3.0), "branch.vtp")
    root = build_template_preview(template)
    nodes = {node.name: node for node in root.traverse()}

    assert {"model", "grid", "axis-x", "axis-y", "axis-z", "pivot"} <= set(nodes)
    model = nodes["model"]
    assert model.mesh is not template.mesh
    assert model.mesh.bounds[2] == pytest.approx(0.0, abs=1e-9)
    assert model.mesh.bounds[3] == pytest.approx(1.0, abs=1e-9)

    assert nodes["pivot"].style == RenderStyle.POINTS
    assert nodes["pivot"].world_position() == pytest.approx([0.0, 0.0, 0.0])
    assert nodes["grid"].style == RenderStyle.WIREFRAME
    # Nothing in the preview is a tree element
    assert all(node.node_id is None and not node.pickable for node in root.traverse())
