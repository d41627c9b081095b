"""
Configuration loader for tokenledger.

What it does:
- Reads static settings from `config/config.yaml`.
- Applies environment overrides for the deployment parameters
  (`TOKEN_NAME`, `TOKEN_SYMBOL`, `TOKEN_INITIAL_SUPPLY`, `TOKEN_DEPLOYER`,
  `TOKEN_APPROVAL_CAP`).
- Validates the result with Pydantic models.

Where it is used:
- Called by `tokenledger.main` to build the `Settings` a deployment runs with.
"""

import os
import yaml
from typing import Any, Dict, Literal, Optional
from pydantic import BaseModel, Field, field_validator

from ..ledger.accounts import ZERO_ADDRESS, normalize_address, signer_accounts

ENV_OVERRIDES = {
    "TOKEN_NAME": ("token", "name"),
    "TOKEN_SYMBOL": ("token", "symbol"),
    "TOKEN_INITIAL_SUPPLY": ("token", "initial_supply"),
    "TOKEN_DEPLOYER": ("token", "deployer"),
    "TOKEN_APPROVAL_CAP": (None, "approval_cap"),
}


class TokenConfig(BaseModel):
    """Deployment parameters; `initial_supply` is in whole tokens."""
    name: str = Field(min_length=1)
    symbol: str = Field(min_length=1)
    initial_supply: int = Field(ge=0)
    deployer: Optional[str] = None

    @field_validator("deployer")
    @classmethod
    def valid_deployer(cls, v):
        if v is None:
            return v
        addr = normalize_address(v)
        if addr == ZERO_ADDRESS:
            raise ValueError("deployer cannot be the zero address")
        return addr

    def deployer_address(self) -> str:
        return self.deployer or signer_accounts(1)[0]


class MetricsConfig(BaseModel):
    port: int = 8000


class LogConfig(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    path: str = "data/operations.jsonl"

    @field_validator("level", mode="before")
    @classmethod
    def upper_level(cls, v):
        # logging.basicConfig only knows upper-case level names
        return v.upper() if isinstance(v, str) else v


class Settings(BaseModel):
    """Runtime settings assembled from YAML + environment variables."""
    token: TokenConfig
    approval_cap: Literal["total_supply", "none"] = "total_supply"
    metrics: MetricsConfig = MetricsConfig()
    log: LogConfig = LogConfig()


def _apply_env(config: Dict[str, Any]) -> Dict[str, Any]:
    for var, (section, key) in ENV_OVERRIDES.items():
        val = os.getenv(var)
        if val is None or val == "":
            continue
        target = config if section is None else config.setdefault(section, {})
        target[key] = val
    return config


def load_settings(path: str = "config/config.yaml") -> Settings:
    """Load YAML config, apply env overrides, and return validated Settings."""
    with open(path, "r") as f:
        config = yaml.safe_load(f) or {}
    return Settings(**_apply_env(config))
