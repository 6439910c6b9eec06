"""JSON Schema-based validation for the homeblocker YAML configuration.

The schema document ships inside the package as ``assets/config-schema.json``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from jsonschema import Draft202012Validator, ValidationError
from jsonschema.exceptions import SchemaError

logger = logging.getLogger(__name__)

_EXTRA_PROPERTY_VALIDATORS = {"additionalProperties", "unevaluatedProperties"}


def get_default_schema_path() -> Path:
    """Brief: Location of the bundled configuration schema."""

    return Path(__file__).resolve().parent.parent / "assets" / "config-schema.json"


def load_schema(schema_path: Optional[Path] = None) -> Dict[str, Any]:
    """Brief: Read and parse the JSON Schema document.

    Inputs:
      - schema_path: Optional explicit path; defaults to the bundled schema.

    Outputs:
      - dict: Parsed schema.
    """

    path = schema_path or get_default_schema_path()
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def _format_errors(errors: List[ValidationError], *, config_path: Optional[str]) -> str:
    """Brief: Render validation errors as one line per failing instance path.

    Inputs:
      - errors: jsonschema.ValidationError instances.
      - config_path: Optional path of the YAML file, used in the header.

    Outputs:
      - Multi-line string for logs or CLI output.
    """

    lines: List[str] = [f"Invalid configuration in {config_path or '<config dict>'}:"]
    for err in errors:
        instance_path = "/".join(str(p) for p in err.path) or "<root>"
        lines.append(f"- {instance_path}: {err.message}")
    return "\n".join(lines)


def validate_config(
    cfg: Dict[str, Any],
    *,
    schema_path: Optional[Path] = None,
    config_path: Optional[str] = None,
    unknown_keys: str = "warn",
) -> None:
    """Brief: Validate a parsed YAML configuration mapping against the schema.

    Inputs:
      - cfg: Top-level configuration mapping.
      - schema_path: Optional explicit schema path.
      - config_path: Optional YAML path, used only in error messages.
      - unknown_keys: "ignore", "warn" (default) or "error"; how to treat keys
        the schema does not describe.

    Outputs:
      - None on success.

    Raises:
      - ValueError: when validation fails (unknown keys only under "error"),
        or when the schema itself cannot be loaded.

    Example:
      >>> validate_config({"upstream": "1.1.1.1", "blocks": {}})
    """

    if unknown_keys not in {"ignore", "warn", "error"}:
        raise ValueError(
            f"unknown_keys policy must be 'ignore', 'warn', or 'error', got {unknown_keys!r}"
        )

    effective_schema_path = schema_path or get_default_schema_path()
    try:
        schema = load_schema(effective_schema_path)
        validator = Draft202012Validator(schema)
    except (OSError, json.JSONDecodeError, SchemaError) as exc:
        raise ValueError(
            f"Failed to load configuration schema {effective_schema_path}: {exc}"
        ) from exc

    all_errors = sorted(validator.iter_errors(cfg), key=lambda e: list(e.path))
    if not all_errors:
        return None

    extra_errors = [e for e in all_errors if e.validator in _EXTRA_PROPERTY_VALIDATORS]
    other_errors = [e for e in all_errors if e.validator not in _EXTRA_PROPERTY_VALIDATORS]

    if other_errors:
        raise ValueError(
            _format_errors(other_errors + extra_errors, config_path=config_path)
        )

    message = _format_errors(extra_errors, config_path=config_path)
    if unknown_keys == "warn":
        logger.warning(message)
    elif unknown_keys == "error":
        raise ValueError(message)
    return None
