"""
Tests for table geometry, work-item creation and work-item reset.
"""

import pytest

from block_pick_place.config import ObjectSpec, PickPlaceConfig
from block_pick_place.scene import SceneSetup
from block_pick_place.simulation import SimulatedScene


@pytest.fixture
def setup(config, scene):
    return SceneSetup(config, scene)


class TestWorkItems:
    def test_goals_are_start_plus_offset(self, setup, config):
        items = setup.create_work_items()

        assert [item.id for item in items] == ["Block1", "Block2", "Block3"]
        for item, spec in zip(items, config.objects):
            assert item.start_pose.x == pytest.approx(spec.x)
            assert item.start_pose.y == pytest.approx(spec.y)
            assert item.goal_pose.x == pytest.approx(spec.x)
            assert item.goal_pose.y == pytest.approx(spec.y + 0.2)
            assert item.goal_pose.z == pytest.approx(item.start_pose.z)
            assert item.goal_pose.orientation == item.start_pose.orientation

    def test_blocks_rest_on_table(self, setup, config):
        expected_z = (
            config.scene.floor_to_base_height + config.scene.table_height + config.grasp.block_size / 2
        )
        for item in setup.create_work_items():
            assert item.start_pose.z == pytest.approx(expected_z)

    def test_off_table_objects_are_reported(self, scene, caplog):
        cfg = PickPlaceConfig(objects=[ObjectSpec("far", 2.0, -0.4)])
        with caplog.at_level("WARNING"):
            SceneSetup(cfg, scene).create_work_items()
        assert "outside the table range" in caplog.text


class TestSceneReset:
    def test_reset_publishes_collision_at_start(self, setup, scene):
        item = setup.create_work_items()[0]
        setup.reset_work_item(item)

        assert list(scene.collision_objects) == [item.id]
        assert scene.collision_objects[item.id].pose == item.start_pose

    def test_reset_twice_equals_reset_once(self, setup, scene):
        item = setup.create_work_items()[1]

        setup.reset_work_item(item)
        once = scene.snapshot()
        setup.reset_work_item(item)

        assert scene.snapshot() == once
        assert len(scene.collision_objects) == 1

    def test_reset_clears_attached_copy(self, setup, scene):
        item = setup.create_work_items()[0]
        setup.reset_work_item(item)
        scene.attach(item.id)
        assert item.id in scene.attached_objects

        setup.reset_work_item(item)

        assert scene.attached_objects == {}
        assert scene.collision_objects[item.id].pose == item.start_pose


class TestStaticScene:
    def test_default_table_obstacle(self, setup, config):
        (table,) = setup.obstacles()
        assert table.name == config.scene.support_surface_name
        top = table.pose.z + table.size[2] / 2
        assert top == pytest.approx(setup.table_surface_z())

    def test_static_scene_published_once(self, setup, scene):
        setup.publish_static_scene()
        setup.publish_static_scene()
        assert scene.static_publish_count == 1
        assert list(scene.static_obstacles) == ["table"]

    def test_table_ranges_shrink_by_half_block(self, setup, config):
        y_min, y_max = setup.table_width_range()
        x_min, x_max = setup.table_depth_range()
        half = config.grasp.block_size / 2
        assert y_min == pytest.approx(config.scene.table_y_min + half)
        assert y_max == pytest.approx(config.scene.table_y_max - half)
        assert x_min == pytest.approx(config.scene.table_x_min + half)
        assert x_max == pytest.approx(config.scene.table_x_max - half)
