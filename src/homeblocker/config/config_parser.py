"""Configuration loading and normalization for homeblocker.

Brief:
  Reads the YAML configuration file, validates it against the bundled JSON
  Schema and returns typed models.

Inputs:
  - Path to a YAML file such as::

        port: 53
        upstream: 1.1.1.1
        blocks:
          social:
            domains: [facebook.com]
            wildcard_domains: [instagram.com]
            schedule: |
              * * * * * off
              * 18-20 * * * on

Outputs:
  - HomeblockerConfig instances.
"""

from __future__ import annotations

import ipaddress
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config_schema import validate_config

DEFAULT_DNS_PORT = 53


class BlockConfig(BaseModel):
    """Brief: One named blocking rule as written in the configuration.

    Inputs:
      - domains: Names blocked exactly; ``www.`` forms are added automatically.
      - wildcard_domains: Names blocked together with every subdomain.
      - schedule: Crontab-like schedule text; empty means always blocking.

    Outputs:
      - BlockConfig instance.
    """

    model_config = ConfigDict(extra="forbid")

    domains: List[str] = Field(default_factory=list)
    wildcard_domains: List[str] = Field(default_factory=list)
    schedule: str = Field(default="")


class UpstreamConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    host: str
    port: int = Field(default=DEFAULT_DNS_PORT, gt=0, le=65535)


class HomeblockerConfig(BaseModel):
    """Brief: Typed top-level configuration.

    Inputs:
      - port: UDP listen port (0 is treated as 53).
      - host: Listen address.
      - upstream: Upstream resolver host and port.
      - timeout_ms: Upstream query timeout.
      - logging: Mapping passed to init_logging.
      - blocks: Mapping of block name -> BlockConfig.

    Outputs:
      - HomeblockerConfig instance.
    """

    model_config = ConfigDict(extra="forbid")

    port: int = Field(default=DEFAULT_DNS_PORT, ge=0, le=65535)
    host: str = Field(default="0.0.0.0")
    upstream: UpstreamConfig
    timeout_ms: int = Field(default=2000, ge=1)
    logging: Dict[str, Any] = Field(default_factory=dict)
    blocks: Dict[str, BlockConfig] = Field(default_factory=dict)


def normalize_upstream(upstream: str) -> Dict[str, Union[str, int]]:
    """Brief: Split an upstream resolver address into host and port.

    Inputs:
      - upstream: ``host``, ``host:port``, ``[ipv6]:port`` or a bare IPv6
        literal. A missing port means 53.

    Outputs:
      - dict: {'host': str, 'port': int}.

    Raises:
      - ValueError: for an empty host or a non-numeric/out-of-range port.

    Example:
      >>> normalize_upstream("9.9.9.9")
      {'host': '9.9.9.9', 'port': 53}
    """

    text = str(upstream).strip()
    host, port_text = text, ""
    try:
        ipaddress.ip_address(text)
    except ValueError:
        if text.startswith("["):
            inner, sep, rest = text[1:].partition("]")
            if not sep or (rest and not rest.startswith(":")):
                raise ValueError(f"Invalid upstream address: {upstream!r}")
            host, port_text = inner, rest[1:]
        elif ":" in text:
            host, port_text = text.rsplit(":", 1)

    if not host:
        raise ValueError(f"Invalid upstream address: {upstream!r}")
    if not port_text:
        return {"host": host, "port": DEFAULT_DNS_PORT}
    if not port_text.isdigit() or not 0 < int(port_text) < 65536:
        raise ValueError(f"Invalid upstream port in {upstream!r}")
    return {"host": host, "port": int(port_text)}


def _drop_nulls(mapping: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    # YAML keys written without a value parse as None; treat them as omitted.
    return {k: v for k, v in (mapping or {}).items() if v is not None}


def build_config(cfg: Dict[str, Any]) -> HomeblockerConfig:
    """Brief: Turn a schema-valid configuration mapping into HomeblockerConfig.

    Inputs:
      - cfg: Parsed YAML mapping.

    Outputs:
      - HomeblockerConfig with port 0 replaced by 53 and upstream normalized.

    Raises:
      - ValueError: when the mapping does not fit the typed models.
    """

    data = _drop_nulls(cfg)
    data["upstream"] = normalize_upstream(data.get("upstream", ""))
    if not data.get("port"):
        data["port"] = DEFAULT_DNS_PORT
    data["blocks"] = {
        str(name): _drop_nulls(block) for name, block in _drop_nulls(data.get("blocks")).items()
    }
    try:
        return HomeblockerConfig(**data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def load_config(config_path: str) -> HomeblockerConfig:
    """Brief: Read, schema-validate and type a YAML configuration file.

    Inputs:
      - config_path: Path to the YAML configuration file.

    Outputs:
      - HomeblockerConfig.

    Raises:
      - OSError: when the file cannot be read.
      - ValueError: on YAML syntax errors, a non-mapping root, unknown keys,
        or schema and model validation failures.
    """

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            cfg = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Could not parse {config_path}: {exc}") from exc

    if not isinstance(cfg, dict):
        raise ValueError("Configuration root must be a mapping")

    validate_config(cfg, config_path=config_path, unknown_keys="error")
    return build_config(cfg)
