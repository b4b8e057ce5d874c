"""Settings module with unified configuration precedence: CLI > ENV > CONFIG FILE."""

from __future__ import annotations

import os
import tomllib
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from .constants import NETWORKS
from .domain import Asset

load_dotenv()


class Network(str, Enum):
    MAINNET = "mainnet"
    POLYGON = "polygon"
    BSC = "bsc"
    OPTIMISM = "optimism"
    ARBITRUM = "arbitrum"
    BASE = "base"
    SEPOLIA = "sepolia"


class BroadcastMode(str, Enum):
    """How signed settlement transactions are submitted."""

    CONCURRENT = "concurrent"
    SEQUENTIAL = "sequential"


class WalletAssetSettings(BaseModel):
    """One entry of the wallet asset registry in the config file."""

    symbol: str
    decimals: int = Field(ge=0)
    contract_address: str | None = None
    name: str | None = None

    model_config = ConfigDict(extra="ignore")

    def to_asset(self) -> Asset:
        return Asset(
            symbol=self.symbol,
            decimals=self.decimals,
            contract_address=self.contract_address or None,
            name=self.name,
        )


class SwapSettings(BaseSettings):
    """Single source of truth for configuration. Values may come from:
    - CLI (init kwargs)
    - ENV / .env (prefixed with WALLET_SWAP_)
    - Config file (TOML), lowest precedence

    Do not read os.environ or files elsewhere in the codebase.
    """

    # --- global toggles ---
    dry_run: bool = True
    broadcast_mode: BroadcastMode = BroadcastMode.CONCURRENT
    verbose_diagnostics: bool = False

    # --- network / endpoints ---
    network: Network = Network.MAINNET
    rpc_url: str | None = None
    zrx_api_url: str | None = None

    # --- signing ---
    private_key: SecretStr | None = None
    zrx_api_key: SecretStr | None = None
    taker_address: str | None = None

    # --- HTTP ---
    http_timeout: float = Field(default=10.0, gt=0)
    http_max_tries: int = Field(default=5, ge=1)

    # --- logging ---
    log_level: str = "INFO"

    # --- wallet asset registry (from config file only) ---
    wallet_assets: list[WalletAssetSettings] = Field(default_factory=list)

    model_config = SettingsConfigDict(
        env_prefix="WALLET_SWAP_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("private_key", "zrx_api_key", mode="before")
    @classmethod
    def wrap_secrets(cls, v: Any) -> SecretStr | None:
        """Wrap string secrets in SecretStr."""
        if v is None or isinstance(v, SecretStr):
            return v
        return SecretStr(v)

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def apply_debug_env(self) -> "SwapSettings":
        """Honour the wallet-wide DEBUG=true switch for asset diagnostics."""
        if os.environ.get("DEBUG", "").lower() == "true":
            self.verbose_diagnostics = True
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
        env_cfg = os.environ.get("WALLET_SWAP_CONFIG")
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
                    local_config = Path("wallet-swap.toml")
                    user_config = (
                        Path.home() / ".config" / "wallet-swap" / "config.toml"
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
                    data = tomllib.load(f)  # supports top-level or [wallet_swap]
                body = data.get("wallet_swap", data)
                if not isinstance(body, dict):
                    return {}

                secret_fields = {"private_key", "zrx_api_key"}
                for key in secret_fields:
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
            file_secret_settings,
        )

    def as_safe_dict(self) -> dict[str, Any]:
        """Return the config as a dict with secrets redacted."""
        data = self.model_dump(mode="json")
        if self.private_key:
            data["private_key"] = "***redacted***"
        if self.zrx_api_key:
            data["zrx_api_key"] = "***redacted***"
        return data

    @property
    def is_broadcast(self) -> bool:
        """Check if Broadcast mode is enabled (signing key provided and not dry-run)."""
        return self.private_key is not None and not self.dry_run

    @property
    def chain_id(self) -> int:
        return NETWORKS[self.network.value]["chain_id"]

    @property
    def zrx_api_url_resolved(self) -> str:
        """API base URL, falling back to the network default."""
        url = self.zrx_api_url or NETWORKS[self.network.value]["zrx_api_url"]
        return url.rstrip("/")

    @property
    def rpc_url_resolved(self) -> str:
        """RPC endpoint, falling back to the network default."""
        return self.rpc_url or NETWORKS[self.network.value]["default_rpc_url"]

    @property
    def wallet_asset_list(self) -> list[Asset]:
        return [entry.to_asset() for entry in self.wallet_assets]
