"""
Scene setup: static obstacles, work-item creation and work-item reset.
"""

import logging
import math
from typing import List, Optional, Tuple

from .config import ObstacleConfig, PickPlaceConfig
from .geometry import Pose
from .interfaces import ScenePublisher
from .task_types import WorkItem
from .utils.logging_utils import get_structured_logger


class SceneSetup:
    """
    Builds the table geometry and manages the per-object collision state.

    Example:
        >>> scene = SceneSetup(config, publisher)
        >>> items = scene.create_work_items()
        >>> scene.publish_static_scene()
        >>> for item in items:
        ...     scene.reset_work_item(item)
    """

    def __init__(
        self,
        config: PickPlaceConfig,
        publisher: ScenePublisher,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.publisher = publisher
        self.logger = logger or get_structured_logger("SceneSetup")
        self._static_published = False

    # ------------------------------------------------------------------ #
    # Table geometry
    # ------------------------------------------------------------------ #
    def table_surface_z(self) -> float:
        """Height of the table surface in the base frame."""
        scene = self.config.scene
        return scene.floor_to_base_height + scene.table_height

    def block_rest_z(self) -> float:
        """Height of a block's center when it rests on the table."""
        return self.table_surface_z() + self.config.grasp.block_size / 2.0

    def table_width_range(self) -> Tuple[float, float]:
        """Reachable y range for block centers on the table."""
        half = self.config.grasp.block_size / 2.0
        return self.config.scene.table_y_min + half, self.config.scene.table_y_max - half

    def table_depth_range(self) -> Tuple[float, float]:
        """Reachable x range for block centers on the table."""
        half = self.config.grasp.block_size / 2.0
        return self.config.scene.table_x_min + half, self.config.scene.table_x_max - half

    def obstacles(self) -> List[ObstacleConfig]:
        """Configured obstacles, or a single table box derived from the table bounds."""
        if self.config.scene.obstacles:
            return list(self.config.scene.obstacles)
        scene = self.config.scene
        center = (
            (scene.table_x_min + scene.table_x_max) / 2.0,
            (scene.table_y_min + scene.table_y_max) / 2.0,
            scene.floor_to_base_height + scene.table_height / 2.0,
        )
        size = (
            scene.table_x_max - scene.table_x_min,
            scene.table_y_max - scene.table_y_min,
            scene.table_height,
        )
        return [ObstacleConfig(name=scene.support_surface_name, pose=Pose(position=center), size=size)]

    # ------------------------------------------------------------------ #
    # Work items
    # ------------------------------------------------------------------ #
    def create_work_items(self) -> List[WorkItem]:
        """Build one WorkItem per configured object, goal = start + goal_offset."""
        z = self.block_rest_z()
        y_min, y_max = self.table_width_range()
        x_min, x_max = self.table_depth_range()
        items = []
        for spec in self.config.objects:
            start = Pose.from_xyz_yaw(spec.x, spec.y, z, yaw=math.radians(spec.yaw))
            item = WorkItem.from_start(spec.id, start, self.config.goal_offset)
            for label, pose in (("start", item.start_pose), ("goal", item.goal_pose)):
                if not (x_min <= pose.x <= x_max and y_min <= pose.y <= y_max):
                    self.logger.warning(
                        "%s pose of '%s' (%.3f, %.3f) is outside the table range x=[%.3f, %.3f] y=[%.3f, %.3f]",
                        label, item.id, pose.x, pose.y, x_min, x_max, y_min, y_max,
                    )
            items.append(item)
        self.logger.debug("Created %d work items: %s", len(items), [item.id for item in items])
        return items

    # ------------------------------------------------------------------ #
    # Scene publishing
    # ------------------------------------------------------------------ #
    def publish_static_scene(self) -> None:
        """Publish table/walls. Safe to call more than once; only the first call publishes."""
        if self._static_published:
            return
        obstacles = self.obstacles()
        self.publisher.publish_static_scene(obstacles)
        self._static_published = True
        self.logger.info("Published static scene (%s)", ", ".join(o.name for o in obstacles))

    def reset_work_item(self, item: WorkItem) -> None:
        """Return an object to its start pose: drop attached and collision copies, then re-add."""
        self.publisher.remove_attached_representation(item.id)
        self.publisher.remove_collision_representation(item.id)
        size = self.config.grasp.block_size
        self.publisher.publish_collision_representation(item.id, item.start_pose, (size, size, size))
        self.logger.debug("Reset '%s' at %s", item.id, item.start_pose.position)
