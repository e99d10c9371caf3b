from __future__ import annotations

import pytest

from birbs.sim.core.config import PRESETS, FlockConfig, SimulationConfig, SpawnConfig, load_config, preset


def test_presets_expose_both_constant_sets():
    wasm = preset("wasm")
    canvas = preset("canvas")

    assert (wasm.flock.max_speed, wasm.flock.max_steer_force) == (4.0, 0.5)
    assert (canvas.flock.max_speed, canvas.flock.max_steer_force) == (2.0, 0.02)
    assert wasm.flock.desired_separation == canvas.flock.desired_separation == 500.0
    assert wasm.flock.wall_weight == canvas.flock.wall_weight == 25.0
    assert (canvas.width, canvas.height) == (1000.0, 700.0)
    assert not canvas.use_spatial_index
    assert wasm.bucket_size == 50


def test_preset_returns_an_independent_copy():
    config = preset("canvas")
    config.flock.max_speed = 99.0

    assert PRESETS["canvas"].flock.max_speed == 2.0


def test_unknown_preset_is_rejected():
    with pytest.raises(ValueError, match="Unknown preset"):
        preset("webgl")


def test_from_yaml_reads_nested_sections(tmp_path):
    path = tmp_path / "flock.yaml"
    path.write_text(
        "\n".join(
            [
                "width: 800",
                "height: 600",
                "population: 25",
                "flock:",
                "  max_speed: 3.0",
                "  neighbour_distance: 40",
                "spawn:",
                "  mode: random",
                "  velocity: [0.5, -0.5]",
                "  palette: ['#ff0000']",
            ]
        )
    )

    config = SimulationConfig.from_yaml(path)

    assert (config.width, config.height, config.population) == (800, 600, 25)
    assert config.flock.max_speed == 3.0
    assert config.flock.neighbour_distance == 40
    assert config.flock.max_steer_force == FlockConfig().max_steer_force
    assert config.spawn.mode == "random"
    assert config.spawn.velocity == (0.5, -0.5)
    assert config.spawn.palette == ["#ff0000"]
    assert config.spawn.origin == SpawnConfig().origin


def test_load_config_layers_over_a_named_preset():
    config = load_config({"preset": "canvas", "population": 10, "flock": {"wall_weight": 10.0}})

    assert config.population == 10
    assert config.flock.wall_weight == 10.0
    assert config.flock.max_speed == 2.0
    assert config.spawn.origin == (400.0, 300.0)
    assert not config.use_spatial_index


def test_empty_yaml_gives_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    assert SimulationConfig.from_yaml(path) == SimulationConfig()


def test_sections_without_a_body_fall_back_to_defaults(tmp_path):
    path = tmp_path / "bare.yaml"
    path.write_text("population: 5\nflock:\nspawn:\n")

    config = SimulationConfig.from_yaml(path)

    assert config.population == 5
    assert config.flock == FlockConfig()
    assert config.spawn == SpawnConfig()


@pytest.mark.parametrize(
    "kwargs",
    [
        {"width": 0.0},
        {"height": -5.0},
        {"bucket_size": 0},
        {"population": -1},
        {"max_depth": 0},
        {"flock": FlockConfig(max_speed=-1.0)},
        {"flock": FlockConfig(neighbour_distance=-2.0)},
        {"flock": FlockConfig(min_wall_distance_sq=0.0)},
        {"spawn": SpawnConfig(mode="spiral")},
    ],
)
def test_invalid_settings_raise(kwargs):
    with pytest.raises(ValueError):
        SimulationConfig(**kwargs)
