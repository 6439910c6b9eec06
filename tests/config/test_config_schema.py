"""Brief: Tests for homeblocker.config.config_schema.validate_config.

Inputs:
  - None

Outputs:
  - None
"""

from __future__ import annotations

import json
import logging

import pytest

from homeblocker.config.config_schema import (
    get_default_schema_path,
    load_schema,
    validate_config,
)


def _valid() -> dict:
    return {
        "port": 53,
        "upstream": "1.1.1.1",
        "logging": {"level": "debug", "syslog": {"facility": "daemon"}},
        "blocks": {
            "social": {
                "domains": ["facebook.com"],
                "wildcard_domains": ["instagram.com"],
                "schedule": "* * * * * on",
            }
        },
    }


def test_bundled_schema_is_loadable() -> None:
    assert get_default_schema_path().is_file()
    schema = load_schema()
    assert schema["required"] == ["upstream"]


def test_valid_config_passes() -> None:
    assert validate_config(_valid()) is None


@pytest.mark.parametrize(
    "mutate, fragment",
    [
        (lambda c: c.update(port=70000), "port"),
        (lambda c: c.update(upstream=""), "upstream"),
        (lambda c: c["blocks"]["social"].update(domains="facebook.com"), "blocks/social/domains"),
        (lambda c: c["blocks"]["social"].update(schedule=5), "blocks/social/schedule"),
        (lambda c: c["logging"].update(level="loud"), "logging/level"),
    ],
)
def test_invalid_values_raise_with_instance_path(mutate, fragment) -> None:
    cfg = _valid()
    mutate(cfg)
    with pytest.raises(ValueError) as excinfo:
        validate_config(cfg, config_path="homeblocker.yml")
    message = str(excinfo.value)
    assert message.startswith("Invalid configuration in homeblocker.yml:")
    assert fragment in message


def test_unknown_keys_policies(caplog) -> None:
    """Brief: Unknown keys warn by default, and can be ignored or made fatal.

    Inputs:
      - caplog: pytest log capture fixture.

    Outputs:
      - None; asserts behaviour for each policy.
    """

    cfg = _valid()
    cfg["blocks"]["social"]["wildcard_domain"] = ["typo.com"]

    caplog.set_level(logging.WARNING)
    validate_config(cfg)
    assert "wildcard_domain" in caplog.text

    caplog.clear()
    validate_config(cfg, unknown_keys="ignore")
    assert caplog.text == ""

    with pytest.raises(ValueError, match="wildcard_domain"):
        validate_config(cfg, unknown_keys="error")


def test_bad_policy_rejected() -> None:
    with pytest.raises(ValueError, match="unknown_keys policy"):
        validate_config(_valid(), unknown_keys="sometimes")


def test_unreadable_schema_raises(tmp_path) -> None:
    broken = tmp_path / "schema.json"
    broken.write_text("{not json")
    with pytest.raises(ValueError, match="Failed to load configuration schema"):
        validate_config(_valid(), schema_path=broken)


def test_custom_schema_path(tmp_path) -> None:
    schema = tmp_path / "schema.json"
    schema.write_text(json.dumps({"type": "object", "required": ["port"]}))
    with pytest.raises(ValueError, match="port"):
        validate_config({"upstream": "1.1.1.1"}, schema_path=schema)
