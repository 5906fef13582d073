"""
Pick-and-place configuration.

Dataclasses with defaults matching the Baxter block demo, plus a YAML loader
(`load_config`) that applies environment overrides and validates everything
once at startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml

from .errors import ConfigurationError
from .geometry import Pose, Vector3

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "pick_place.yaml"

ENV_AUTO_RETRY = "PICK_PLACE_AUTO_RETRY"
ENV_RETRY_DELAY = "PICK_PLACE_RETRY_DELAY"
ENV_PLANNING_GROUP = "PICK_PLACE_PLANNING_GROUP"


@dataclass
class GraspConfig:
    """Gripper and approach/retreat data shared by grasp and place requests."""
    base_link: str = "base"
    end_effector_group: str = "right_hand"
    block_size: float = 0.04
    approach_retreat_desired_dist: float = 0.10
    approach_retreat_min_dist: float = 0.05
    # Opaque postures handed through to the motion service
    pre_grasp_posture: Dict[str, Any] = field(
        default_factory=lambda: {"joint_names": ["right_gripper_joint"], "positions": [0.0208]}
    )
    grasp_posture: Dict[str, Any] = field(
        default_factory=lambda: {"joint_names": ["right_gripper_joint"], "positions": [0.0]}
    )

    def validate(self) -> None:
        if self.block_size <= 0:
            raise ConfigurationError(f"block_size must be > 0, got {self.block_size}")
        if self.approach_retreat_min_dist < 0:
            raise ConfigurationError(
                f"approach_retreat_min_dist must be >= 0, got {self.approach_retreat_min_dist}"
            )
        if self.approach_retreat_desired_dist < self.approach_retreat_min_dist:
            raise ConfigurationError(
                "approach_retreat_desired_dist "
                f"({self.approach_retreat_desired_dist}) is smaller than "
                f"approach_retreat_min_dist ({self.approach_retreat_min_dist})"
            )


@dataclass
class ObstacleConfig:
    """Static box obstacle (table, wall) in the base frame."""
    name: str
    pose: Pose
    size: Vector3


@dataclass
class SceneConfig:
    """Table geometry relative to the robot base."""
    floor_to_base_height: float = -0.9
    table_height: float = 0.78  # Table surface above the floor
    table_x_min: float = 0.45
    table_x_max: float = 0.85
    table_y_min: float = -0.7
    table_y_max: float = 0.3
    support_surface_name: str = "table"
    obstacles: List[ObstacleConfig] = field(default_factory=list)


@dataclass
class ObjectSpec:
    """Start location of one block on the table; z comes from the table height."""
    id: str
    x: float
    y: float
    yaw: float = 0.0  # Degrees


def _default_objects() -> List[ObjectSpec]:
    return [
        ObjectSpec("Block1", 0.55, -0.4),
        ObjectSpec("Block2", 0.65, -0.4),
        ObjectSpec("Block3", 0.75, -0.4),
    ]


@dataclass
class PickPlaceConfig:
    """Startup configuration for one orchestrator run. Loaded once, never re-read."""
    # Motion service
    planning_group: str = "right_arm"
    planner_id: str = "RRTConnectkConfigDefault"
    planning_time: float = 30.0

    # Retry behavior
    auto_retry: bool = True
    auto_retry_delay_seconds: int = 4

    # Work list
    objects: List[ObjectSpec] = field(default_factory=_default_objects)
    goal_offset: Vector3 = (0.0, 0.2, 0.0)
    extra_touch_ids: List[str] = field(default_factory=list)  # Touchable objects outside the work list

    grasp: GraspConfig = field(default_factory=GraspConfig)
    scene: SceneConfig = field(default_factory=SceneConfig)

    def object_ids(self) -> List[str]:
        return [spec.id for spec in self.objects]

    def validate(self) -> None:
        """Raise ConfigurationError on the first invalid setting."""
        if not self.planning_group:
            raise ConfigurationError("planning_group must not be empty")
        if self.auto_retry_delay_seconds < 0:
            raise ConfigurationError(
                f"auto_retry_delay_seconds must be >= 0, got {self.auto_retry_delay_seconds}"
            )
        if self.planning_time <= 0:
            raise ConfigurationError(f"planning_time must be > 0, got {self.planning_time}")
        if not self.objects:
            raise ConfigurationError("at least one object is required")
        ids = self.object_ids()
        duplicates = sorted({object_id for object_id in ids if ids.count(object_id) > 1})
        if duplicates:
            raise ConfigurationError(f"duplicate object ids: {', '.join(duplicates)}")
        if any(not object_id for object_id in ids):
            raise ConfigurationError("object ids must be non-empty strings")
        if len(self.goal_offset) != 3:
            raise ConfigurationError(f"goal_offset must have 3 components, got {self.goal_offset}")
        self.grasp.validate()


# ---------------------------------------------------------------------- #
# Loading
# ---------------------------------------------------------------------- #

def _parse_bool(value: Union[str, bool]) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("1", "true", "yes", "on"):
        return True
    if text in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"cannot interpret '{value}' as a boolean")


def _parse_int(value: Any, name: str) -> int:
    """Whole numbers only; 2.0 and "2" are accepted, 2.5 is rejected."""
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a whole number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a whole number, got {value!r}") from e
    if not number.is_integer():
        raise ConfigurationError(f"{name} must be a whole number, got {value!r}")
    return int(number)


def _vector(value: Any, name: str) -> Vector3:
    try:
        x, y, z = (float(v) for v in value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name}: expected 3 numbers, got {value!r}") from e
    return (x, y, z)


def _coerce(value: Any, current: Any, name: str) -> Any:
    """Convert a YAML value to the type of the field's current value."""
    if isinstance(current, bool):
        return _parse_bool(value)
    if isinstance(current, int):
        return _parse_int(value, name)
    if isinstance(current, tuple):
        return _vector(value, name)
    try:
        if isinstance(current, float):
            if isinstance(value, bool):
                raise TypeError("booleans are not numbers")
            return float(value)
        if isinstance(current, str):
            if not isinstance(value, (str, int, float)) or isinstance(value, bool):
                raise TypeError("expected a string")
            return str(value)
        if isinstance(current, dict):
            if not isinstance(value, dict):
                raise TypeError("expected a mapping")
            return dict(value)
        if isinstance(current, list):
            if not isinstance(value, list):
                raise TypeError("expected a list")
            return [str(v) for v in value]
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name}: invalid value {value!r} ({e})") from e
    return value


def _apply_section(target: Any, values: Dict[str, Any], section: str) -> None:
    """Copy YAML values onto a config dataclass; only declared fields are accepted."""
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        name = f"{section}.{key}" if section else str(key)
        if key not in known:
            raise ConfigurationError(f"unknown configuration key '{name}'")
        setattr(target, key, _coerce(value, getattr(target, key), name))


def _as_list(raw: Any, name: str) -> List[Any]:
    if not isinstance(raw, list):
        raise ConfigurationError(f"{name} must be a list, got {raw!r}")
    return raw


def _parse_objects(raw: List[Dict[str, Any]]) -> List[ObjectSpec]:
    objects = []
    for idx, entry in enumerate(_as_list(raw, "objects")):
        try:
            objects.append(
                ObjectSpec(
                    id=str(entry["id"]),
                    x=float(entry["x"]),
                    y=float(entry["y"]),
                    yaw=float(entry.get("yaw", 0.0)),
                )
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"objects[{idx}]: invalid entry {entry!r} ({e})") from e
    return objects


def _parse_obstacles(raw: List[Dict[str, Any]]) -> List[ObstacleConfig]:
    obstacles = []
    for idx, entry in enumerate(_as_list(raw, "scene.obstacles")):
        try:
            obstacles.append(
                ObstacleConfig(
                    name=str(entry["name"]),
                    pose=Pose.from_dict(entry["pose"]),
                    size=_vector(entry["size"], f"obstacles[{idx}].size"),
                )
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise ConfigurationError(f"obstacles[{idx}]: invalid entry {entry!r} ({e})") from e
    return obstacles


def _section(value: Any, name: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"{name} must be a mapping, got {value!r}")
    return dict(value)


def config_from_dict(data: Dict[str, Any]) -> PickPlaceConfig:
    """Build a PickPlaceConfig from a parsed YAML mapping; unknown keys are errors."""
    data = _section(data, "configuration")
    config = PickPlaceConfig()

    grasp_data = _section(data.pop("grasp", None), "grasp")
    scene_data = _section(data.pop("scene", None), "scene")
    objects = data.pop("objects", None)
    obstacles = scene_data.pop("obstacles", None)

    _apply_section(config, data, "")
    _apply_section(config.grasp, grasp_data, "grasp")
    _apply_section(config.scene, scene_data, "scene")

    if obstacles is not None:
        config.scene.obstacles = _parse_obstacles(obstacles)
    if objects is not None:
        config.objects = _parse_objects(objects)
    return config


def apply_env_overrides(config: PickPlaceConfig, environ: Optional[Dict[str, str]] = None) -> PickPlaceConfig:
    environ = os.environ if environ is None else environ
    if environ.get(ENV_AUTO_RETRY):
        config.auto_retry = _parse_bool(environ[ENV_AUTO_RETRY])
    if environ.get(ENV_RETRY_DELAY):
        config.auto_retry_delay_seconds = _parse_int(environ[ENV_RETRY_DELAY], ENV_RETRY_DELAY)
    if environ.get(ENV_PLANNING_GROUP):
        config.planning_group = environ[ENV_PLANNING_GROUP]
    return config


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Dict[str, str]] = None,
) -> PickPlaceConfig:
    """
    Load and validate the run configuration.

    Args:
        path: YAML file to read. When None, config/pick_place.yaml is used if
            present, otherwise the dataclass defaults.
        environ: Environment mapping for overrides (defaults to os.environ)

    Returns:
        Validated PickPlaceConfig
    """
    if path is None and DEFAULT_CONFIG_PATH.exists():
        path = DEFAULT_CONFIG_PATH

    if path is None:
        config = PickPlaceConfig()
    else:
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"configuration file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            try:
                raw = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"{path}: invalid YAML ({e})") from e
        if not isinstance(raw, dict):
            raise ConfigurationError(f"{path}: top level must be a mapping")
        config = config_from_dict(raw)

    apply_env_overrides(config, environ)
    config.validate()
    return config


def parse_object_arg(text: str) -> ObjectSpec:
    """Parse a CLI object spec of the form ID:X:Y[:YAW_DEG]."""
    parts = text.split(":")
    if len(parts) not in (3, 4):
        raise ConfigurationError(f"object spec '{text}' must look like ID:X:Y[:YAW]")
    try:
        coords: Tuple[float, ...] = tuple(float(p) for p in parts[1:])
    except ValueError as e:
        raise ConfigurationError(f"object spec '{text}' has non-numeric coordinates") from e
    return ObjectSpec(parts[0], *coords)
