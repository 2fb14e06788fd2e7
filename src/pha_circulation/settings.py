"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .cache.keys import record_field_names
from .chains import ChainConfig, indexer_chains, rpc_chains
from .constants import (
    DEFAULT_ETHEREUM_RPC_URL,
    DEFAULT_INDEXER_BASE_URL,
    DEFAULT_KHALA_RPC_URL,
    DEFAULT_PHALA_RPC_URL,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    ETHEREUM_TOTAL_SUPPLY,
)

load_dotenv()

SECRET_FIELDS = {"redis_url"}


class CacheBackend(str, Enum):
    REDIS = "redis"
    MEMORY = "memory"


class SourceMode(str, Enum):
    RPC = "rpc"
    INDEXER = "indexer"


class DryRunFormat(str, Enum):
    TABLE = "table"
    JSON = "json"


class CirculationSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with PHA_CIRCULATION_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- cache ---
    cache_backend: CacheBackend = CacheBackend.REDIS
    redis_url: SecretStr | None = None
    cache_key_prefix: str = ""

    # --- http ---
    host: str = "0.0.0.0"
    port: int = Field(default=8080, gt=0, lt=65536)
    base_path: str = "/api"
    cache_max_age: int = Field(default=60, ge=0)
    stale_while_revalidate: int | None = Field(default=60, ge=0)

    # --- refresh job ---
    refresh_interval_seconds: float = Field(
        default=DEFAULT_REFRESH_INTERVAL_SECONDS, gt=0
    )
    refresh_on_startup: bool = True
    align_to_interval: bool = True
    cycle_timeout_seconds: float = Field(default=300.0, gt=0)

    # --- sources ---
    source_mode: SourceMode = SourceMode.RPC
    source_timeout_seconds: float = Field(default=30.0, gt=0)
    source_max_tries: int = Field(default=3, ge=1)
    ethereum_rpc: str = DEFAULT_ETHEREUM_RPC_URL
    phala_rpc: str = DEFAULT_PHALA_RPC_URL
    khala_rpc: str = DEFAULT_KHALA_RPC_URL
    indexer_base_url: str = DEFAULT_INDEXER_BASE_URL
    ethereum_total_supply: str = ETHEREUM_TOTAL_SUPPLY

    # --- chain table (from config file only) ---
    chains: list[ChainConfig] = []

    # --- output ---
    dry_run_format: DryRunFormat = DryRunFormat.TABLE

    # --- logging ---
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="PHA_CIRCULATION_",
        env_file=".env",
        extra="ignore",  # ignore unknown keys in env/config file
    )

    @field_validator("redis_url", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("base_path")
    @classmethod
    def normalize_base_path(cls, v: str) -> str:
        """Leading slash, no trailing slash; the root is the empty string."""
        v = v.strip().strip("/")
        return f"/{v}" if v else ""

    @field_validator("stale_while_revalidate")
    @classmethod
    def zero_disables_swr(cls, v: int | None) -> int | None:
        return v or None

    @model_validator(mode="after")
    def validate_chain_table(self) -> "CirculationSettings":
        names = [chain.name for chain in self.chains]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate chain name(s) in config: {', '.join(duplicates)}")
        record_field_names(self.chains)
        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Custom config-file source with explicit precedence: CLI > ENV > FILE."""
        env_cfg = os.environ.get("PHA_CIRCULATION_CONFIG")
        cfg_path = Path(env_cfg) if env_cfg else None

        class TomlConfigSource(PydanticBaseSettingsSource):
            def __init__(self, settings_cls: type[BaseSettings], path: Path | None):
                super().__init__(settings_cls)
                self._path = path

            def get_field_value(
                self, field: Any, field_name: str
            ) -> tuple[Any, str, bool]:
                return None, "", False

            def __call__(self) -> dict[str, Any]:
                if not self._path:
                    local_config = Path("pha-circulation.toml")
                    user_config = (
                        Path.home() / ".config" / "pha-circulation" / "config.toml"
                    )
                    if local_config.exists():
                        self._path = local_config
                    elif user_config.exists():
                        self._path = user_config
                    else:
                        return {}

                if not self._path.exists():
                    return {}

                with self._path.open("rb") as f:
                    data = tomllib.load(f)  # supports top-level or [pha_circulation]
                body = data.get("pha_circulation", data)
                if not isinstance(body, dict):
                    return {}

                for key in SECRET_FIELDS:
                    if key in body:
                        raise ValueError(
                            f"Security violation: '{key}' found in TOML config file. "
                            f"Secrets must only be provided via environment variables or CLI flags."
                        )

                return body

        return (
            init_settings,  # CLI (highest)
            env_settings,  # ENV
            dotenv_settings,  # .env
            TomlConfigSource(settings_cls, cfg_path),  # CONFIG (lowest)
            file_secret_settings,  # optional secrets dir
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        if self.redis_url:
            data["redis_url"] = "***redacted***"
        return data

    @property
    def redis_url_required(self) -> str:
        """Get redis_url, raising ValueError if not set."""
        if self.redis_url is None:
            raise ValueError("redis_url must be configured when cache_backend is redis")
        return self.redis_url.get_secret_value()

    @property
    def chain_table(self) -> list[ChainConfig]:
        """The configured chains, or the default table for ``source_mode``."""
        if self.chains:
            return list(self.chains)
        if self.source_mode is SourceMode.INDEXER:
            return indexer_chains(self)
        return rpc_chains(self)
