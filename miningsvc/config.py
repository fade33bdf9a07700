"""Application configuration loaded from a YAML or JSON file."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml

VERIFICATION_EXPIRED_TIME = 15
"""Minutes an issued OTP stays valid."""


class ConfigError(Exception):
    """Raised when the configuration cannot be read or decoded."""


def _norm(name: str) -> str:
    return name.replace("_", "").lower()


@dataclass
class AppConfig:
    """Service settings; keys match field names case-insensitively, ignoring underscores."""

    api_port: str = ""
    mysql_url: str = ""
    meta_node_version: str = ""
    dns_link_value: str = field(default="", metadata={"key": "DnsLink_"})
    private_key_admin_noti: str = ""
    private_key_be_mining_user: str = ""
    parent_address: str = ""
    node_connection_address: str = ""
    storage_address: str = ""
    mining_user_address: str = ""
    mining_user_abi_path: str = ""
    be_mining_user_address: str = ""
    noti_storage_address: str = ""
    noti_storage_abi_path: str = ""
    noti_owner_address: str = ""
    server_private_key_path: str = ""
    parent_connection_address: str = ""
    parent_connection_type: str = ""
    connection_address: str = ""
    chain_id: int = 0
    storage_connection_address: str = ""
    path_level_db: str = ""
    stored_pub_key: str = ""
    rpc_url: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AppConfig":
        """Build a config from a mapping of setting names to values."""
        if not isinstance(data, Mapping):
            raise ConfigError("failed to unmarshal config: expected a mapping")
        given = {_norm(str(k)): v for k, v in data.items()}
        values = {}
        for spec in fields(cls):
            key = _norm(spec.metadata.get("key", spec.name))
            if key not in given or given[key] is None:
                continue
            raw = given[key]
            if spec.name == "chain_id":
                values[spec.name] = _to_uint(raw)
            elif isinstance(raw, (str, int, float)):
                values[spec.name] = str(int(raw) if isinstance(raw, bool) else raw)
            else:
                raise ConfigError(f"failed to unmarshal config: {spec.name} must be a scalar")
        return cls(**values)

    def dns_link(self) -> str:
        return self.dns_link_value


def _to_uint(raw: Any) -> int:
    try:
        value = int(raw.strip(), 0) if isinstance(raw, str) else int(raw)
        if value != raw and not isinstance(raw, str) or not 0 <= value < 2**64:
            raise ValueError(raw)
    except (TypeError, ValueError):
        raise ConfigError("failed to unmarshal config: chain_id is not an unsigned integer") from None
    return value


def load_config(path) -> AppConfig:
    """Read a YAML or JSON config file."""
    config_path = Path(path)
    if config_path.suffix.lower() not in (".yaml", ".yml", ".json"):
        raise ConfigError(f"failed to read config file: unsupported config type {config_path.suffix!r}")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError, yaml.YAMLError) as exc:
        raise ConfigError(f"failed to read config file: {exc}") from exc
    return AppConfig.from_mapping(data or {})