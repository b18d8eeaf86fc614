import pytest

from procflow.config.settings import LayoutSettings, Settings
from procflow.core.exceptions import ConfigurationError


def test_defaults(monkeypatch):
    for name in ("DIRECTION", "NODE_WIDTH", "NODE_HEIGHT", "LAYER_GAP", "NODE_GAP", "ORDERING_PASSES"):
        monkeypatch.delenv(f"PROCFLOW_LAYOUT_{name}", raising=False)
    settings = LayoutSettings(_env_file=None)
    assert settings.to_options() == {
        "direction": "TB",
        "nodeWidth": 180,
        "nodeHeight": 70,
        "layerGap": 80,
        "nodeGap": 60,
        "orderingPasses": 4,
    }


def test_from_options_accepts_both_spellings():
    settings = LayoutSettings.from_options({"nodeWidth": 200, "node_gap": 10, "unknown": 1})
    assert settings.node_width == 200
    assert settings.node_gap == 10


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PROCFLOW_LAYOUT_DIRECTION", "LR")
    monkeypatch.setenv("PROCFLOW_LAYOUT_ORDERING_PASSES", "2")
    settings = LayoutSettings(_env_file=None)
    assert settings.direction == "LR"
    assert settings.ordering_passes == 2


@pytest.mark.parametrize(
    "options",
    [
        {"direction": "BT"},
        {"nodeWidth": 0},
        {"layerGap": -1},
        {"orderingPasses": -2},
    ],
)
def test_invalid_options_raise_configuration_error(options):
    with pytest.raises(ConfigurationError) as exc_info:
        LayoutSettings.from_options(options)
    assert exc_info.value.context["errors"]


def test_logging_settings_from_env(monkeypatch):
    monkeypatch.setenv("PROCFLOW_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("PROCFLOW_JSON_LOGS", "true")
    settings = Settings(_env_file=None)
    assert settings.log_level == "DEBUG"
    assert settings.json_logs is True
