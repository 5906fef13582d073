import textwrap

import pytest

from block_pick_place.config import (
    ENV_AUTO_RETRY,
    ENV_PLANNING_GROUP,
    ENV_RETRY_DELAY,
    PickPlaceConfig,
    load_config,
    parse_object_arg,
)
from block_pick_place.errors import ConfigurationError


def _write(tmp_path, body: str):
    path = tmp_path / "pick_place.yaml"
    path.write_text(textwrap.dedent(body))
    return path


def test_yaml_values_are_applied(tmp_path):
    path = _write(
        tmp_path,
        """
        planning_group: left_arm
        auto_retry: false
        auto_retry_delay_seconds: 2
        goal_offset: [0.0, 0.25, 0.0]
        objects:
          - {id: A, x: 0.5, y: -0.3}
          - {id: B, x: 0.6, y: -0.3, yaw: 45}
        grasp:
          approach_retreat_desired_dist: 0.2
          approach_retreat_min_dist: 0.1
        scene:
          table_height: 0.7
          obstacles:
            - name: table
              pose: {x: 0.65, y: -0.2, z: -0.55}
              size: [0.4, 1.0, 0.7]
        """,
    )
    config = load_config(path, environ={})

    assert config.planning_group == "left_arm"
    assert config.auto_retry is False
    assert config.auto_retry_delay_seconds == 2
    assert config.goal_offset == (0.0, 0.25, 0.0)
    assert config.object_ids() == ["A", "B"]
    assert config.objects[1].yaw == 45.0
    assert config.grasp.approach_retreat_desired_dist == 0.2
    assert config.scene.table_height == 0.7
    assert config.scene.obstacles[0].size == (0.4, 1.0, 0.7)


def test_default_config_has_three_blocks():
    config = load_config(environ={})
    assert config.object_ids()[:3] == ["Block1", "Block2", "Block3"]
    assert config.planning_group == "right_arm"


def test_env_overrides_file(tmp_path):
    path = _write(tmp_path, "auto_retry: true\nauto_retry_delay_seconds: 4\n")
    config = load_config(
        path,
        environ={ENV_AUTO_RETRY: "false", ENV_RETRY_DELAY: "9", ENV_PLANNING_GROUP: "both_arms"},
    )
    assert config.auto_retry is False
    assert config.auto_retry_delay_seconds == 9
    assert config.planning_group == "both_arms"


@pytest.mark.parametrize(
    "body",
    [
        "objects:\n  - {id: A, x: 0.5, y: 0.0}\n  - {id: A, x: 0.6, y: 0.0}\n",
        "objects: []\n",
        "auto_retry_delay_seconds: -1\n",
        "grasp:\n  approach_retreat_desired_dist: 0.01\n  approach_retreat_min_dist: 0.05\n",
        "no_such_setting: 1\n",
        "objects:\n  - {id: A, x: 0.5}\n",
        "auto_retry: sometimes\n",
        "- just\n- a\n- list\n",
        "grasp:\n  block_size: 'four centimeters'\n",
        "validate: 1\n",
        "object_ids: 1\n",
        "auto_retry_delay_seconds: 2.5\n",
        "planning_time: fast\n",
        "grasp: 3\n",
        "objects: 5\n",
        "goal_offset: [0.0, 0.2]\n",
    ],
)
def test_invalid_configuration_rejected_at_startup(tmp_path, body):
    with pytest.raises(ConfigurationError):
        load_config(_write(tmp_path, body), environ={})


def test_missing_file_is_configuration_error(tmp_path):
    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "missing.yaml", environ={})


def test_parse_object_arg():
    spec = parse_object_arg("Block9:0.6:-0.35:30")
    assert (spec.id, spec.x, spec.y, spec.yaw) == ("Block9", 0.6, -0.35, 30.0)
    with pytest.raises(ConfigurationError):
        parse_object_arg("Block9:0.6")


def test_validate_detects_duplicate_ids():
    config = PickPlaceConfig()
    config.objects.append(config.objects[0])
    with pytest.raises(ConfigurationError, match="duplicate"):
        config.validate()


def test_numeric_strings_are_coerced(tmp_path):
    path = _write(
        tmp_path,
        """
        auto_retry_delay_seconds: '3'
        planning_time: 15
        grasp:
          block_size: '0.05'
        scene:
          table_height: '0.7'
        """,
    )
    config = load_config(path, environ={})

    assert config.auto_retry_delay_seconds == 3
    assert isinstance(config.planning_time, float)
    assert config.grasp.block_size == pytest.approx(0.05)
    assert config.scene.table_height == pytest.approx(0.7)


def test_fractional_retry_delay_from_env_rejected(tmp_path):
    path = _write(tmp_path, "auto_retry: true\n")
    with pytest.raises(ConfigurationError, match="whole number"):
        load_config(path, environ={ENV_RETRY_DELAY: "2.5"})
