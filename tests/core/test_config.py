from __future__ import annotations

import pytest

from cyber_quiz.core import config as core_config


def test_load_toml_reads_tables(tmp_path):
    path = tmp_path / "sample.toml"
    path.write_text('[ai]\nmodel = "gpt-4o"\n', encoding="utf-8")

    assert core_config.load_toml(path) == {"ai": {"model": "gpt-4o"}}


def test_load_toml_missing_file(tmp_path):
    with pytest.raises(core_config.ConfigError, match="not found"):
        core_config.load_toml(tmp_path / "missing.toml")


def test_load_toml_invalid_syntax(tmp_path):
    path = tmp_path / "broken.toml"
    path.write_text("[ai\nmodel = ", encoding="utf-8")

    with pytest.raises(core_config.ConfigError, match="Failed to parse"):
        core_config.load_toml(path)


def test_merge_defaults_overrides_nested_values():
    base = {"audio": {"enabled": True, "volume": 1.0}}

    core_config.merge_defaults(base, {"audio": {"volume": 0.25}})

    assert base == {"audio": {"enabled": True, "volume": 0.25}}


def test_merge_defaults_rejects_unknown_keys():
    base = {"audio": {"enabled": True}}

    with pytest.raises(core_config.ConfigError, match="audio.volum"):
        core_config.merge_defaults(base, {"audio": {"volum": 0.5}})


def test_merge_defaults_requires_tables_for_sections():
    base = {"quiz": {"topic": "x"}}

    with pytest.raises(core_config.ConfigError, match="Expected table"):
        core_config.merge_defaults(base, {"quiz": "networking"})


def test_write_toml_template_honours_overwrite(tmp_path):
    target = tmp_path / "nested" / "cyberquiz.toml"

    core_config.write_toml_template(target, template="a = 1\n")
    with pytest.raises(core_config.ConfigError, match="already exists"):
        core_config.write_toml_template(target, template="a = 2\n")
    core_config.write_toml_template(
        target, template="a = 3\n", overwrite=True
    )

    assert target.read_text(encoding="utf-8") == "a = 3\n"


@pytest.mark.parametrize("value", [0, -3, True, 1.5, "7"])
def test_require_positive_int_rejects(value):
    with pytest.raises(core_config.ConfigError, match="positive integer"):
        core_config.require_positive_int(value, field="ai.max_output_tokens")


def test_require_float_range_accepts_ints_and_bounds():
    assert core_config.require_float_range(
        1, field="audio.volume", min_value=0.0, max_value=1.0
    ) == 1.0
    with pytest.raises(core_config.ConfigError, match="between"):
        core_config.require_float_range(
            1.01, field="audio.volume", min_value=0.0, max_value=1.0
        )
    with pytest.raises(core_config.ConfigError, match="number"):
        core_config.require_float_range(
            False, field="audio.volume", min_value=0.0, max_value=1.0
        )


def test_string_validators():
    assert core_config.require_string("  gpt  ", field="ai.model") == "gpt"
    assert core_config.optional_string(None, field="ai.api_base") is None
    with pytest.raises(core_config.ConfigError):
        core_config.require_string("   ", field="ai.model")
    with pytest.raises(core_config.ConfigError):
        core_config.optional_string(3, field="ai.api_base")
    with pytest.raises(core_config.ConfigError):
        core_config.require_bool("yes", field="audio.enabled")
