"""
daovote TOML Configuration Loader

Loads every section of daovote.toml with environment variable overrides.
Each section is a dataclass with from_dict + apply_env.

Environment variable mapping:
    [rpc] url                → DAOVOTE_RPC_URL
    [contract] address       → DAOVOTE_CONTRACT_ADDRESS
    [wallet] mode            → DAOVOTE_WALLET_MODE
    [wallet] (private key)   → DAOVOTE_PRIVATE_KEY  (env only)
    [logging] level          → DAOVOTE_LOG_LEVEL

Private keys MUST come from env vars, never TOML.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from eth_utils import is_address, to_checksum_address

from ..constants import (
    CONFIRMATION_TIMEOUT,
    CONNECTION_TIMEOUT,
    DAOVOTE_CONTRACT_ADDRESS,
    DAOVOTE_RPC_URL,
    DAOVOTE_WALLET_MODE,
    LOG_LEVEL,
    MAX_CONCURRENT_FETCHES,
    RECEIPT_POLL_INTERVAL,
)
from ..exceptions import ConfigurationError
from ..logger import get_logger

logger = get_logger(__name__)

WALLET_MODES = ("provider", "local", "none")

# ---------------------------------------------------------------------------
# Section dataclasses
# ---------------------------------------------------------------------------


@dataclass
class RPCSectionConfig:
    """[rpc] section."""
    url: str = str(DAOVOTE_RPC_URL)
    timeout: float = CONNECTION_TIMEOUT

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RPCSectionConfig":
        return cls(
            url=data.get("url", str(DAOVOTE_RPC_URL)),
            timeout=float(data.get("timeout", CONNECTION_TIMEOUT)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("DAOVOTE_RPC_URL"):
            self.url = v
        if v := os.environ.get("DAOVOTE_RPC_TIMEOUT"):
            self.timeout = float(v)


@dataclass
class ContractSectionConfig:
    """[contract] section."""
    address: str = str(DAOVOTE_CONTRACT_ADDRESS)
    chain_id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContractSectionConfig":
        return cls(
            address=data.get("address", str(DAOVOTE_CONTRACT_ADDRESS)),
            chain_id=data.get("chain_id"),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("DAOVOTE_CONTRACT_ADDRESS"):
            self.address = v
        if v := os.environ.get("DAOVOTE_CHAIN_ID"):
            self.chain_id = int(v)


@dataclass
class WalletSectionConfig:
    """[wallet] section. The private key is only ever read from the environment."""
    mode: str = str(DAOVOTE_WALLET_MODE)
    private_key: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WalletSectionConfig":
        if "private_key" in data:
            logger.warning("Ignoring [wallet] private_key from TOML; use DAOVOTE_PRIVATE_KEY")
        return cls(mode=data.get("mode", str(DAOVOTE_WALLET_MODE)))

    def apply_env(self) -> None:
        if v := os.environ.get("DAOVOTE_WALLET_MODE"):
            self.mode = v
        if v := os.environ.get("DAOVOTE_PRIVATE_KEY"):
            self.private_key = v


@dataclass
class SyncSectionConfig:
    """[sync] section."""
    max_concurrent_fetches: int = MAX_CONCURRENT_FETCHES
    confirmation_timeout: float = CONFIRMATION_TIMEOUT
    poll_interval: float = RECEIPT_POLL_INTERVAL

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SyncSectionConfig":
        return cls(
            max_concurrent_fetches=int(data.get("max_concurrent_fetches", MAX_CONCURRENT_FETCHES)),
            confirmation_timeout=float(data.get("confirmation_timeout", CONFIRMATION_TIMEOUT)),
            poll_interval=float(data.get("poll_interval", RECEIPT_POLL_INTERVAL)),
        )

    def apply_env(self) -> None:
        if v := os.environ.get("DAOVOTE_MAX_CONCURRENT_FETCHES"):
            self.max_concurrent_fetches = int(v)
        if v := os.environ.get("DAOVOTE_CONFIRMATION_TIMEOUT"):
            self.confirmation_timeout = float(v)


@dataclass
class LoggingSectionConfig:
    """[logging] section."""
    level: str = str(LOG_LEVEL)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoggingSectionConfig":
        return cls(level=data.get("level", str(LOG_LEVEL)))

    def apply_env(self) -> None:
        if v := os.environ.get("DAOVOTE_LOG_LEVEL"):
            self.level = v


# -----------------------------------------------------------------------
# Top-level config
# -----------------------------------------------------------------------

@dataclass
class ClientConfig:
    """
    Unified client configuration.

    Loads every section of daovote.toml and applies environment variable
    overrides. This is the single source of truth at runtime.
    """
    rpc: RPCSectionConfig = field(default_factory=RPCSectionConfig)
    contract: ContractSectionConfig = field(default_factory=ContractSectionConfig)
    wallet: WalletSectionConfig = field(default_factory=WalletSectionConfig)
    sync: SyncSectionConfig = field(default_factory=SyncSectionConfig)
    logging: LoggingSectionConfig = field(default_factory=LoggingSectionConfig)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientConfig":
        """Create ClientConfig from a parsed TOML dict."""
        return cls(
            rpc=RPCSectionConfig.from_dict(data.get("rpc", {})),
            contract=ContractSectionConfig.from_dict(data.get("contract", {})),
            wallet=WalletSectionConfig.from_dict(data.get("wallet", {})),
            sync=SyncSectionConfig.from_dict(data.get("sync", {})),
            logging=LoggingSectionConfig.from_dict(data.get("logging", {})),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "ClientConfig":
        """
        Load configuration from a TOML file.

        A missing file yields defaults (with env overrides); an unparsable
        file raises ConfigurationError.
        """
        path = Path(config_path)
        if not path.exists():
            logger.debug("Config file not found: %s, using defaults", config_path)
            cfg = cls()
            cfg.apply_env()
            return cfg

        try:
            with open(path, "rb") as f:
                raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e

        cfg = cls.from_dict(raw)
        cfg.apply_env()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self) -> None:
        """Apply environment variable overrides to all sections."""
        self.rpc.apply_env()
        self.contract.apply_env()
        self.wallet.apply_env()
        self.sync.apply_env()
        self.logging.apply_env()

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate all configuration sections.

        Raises:
            ConfigurationError: on invalid config
        """
        if not self.rpc.url.startswith(("http://", "https://")):
            raise ConfigurationError(f"rpc.url must be an http(s) URL: {self.rpc.url}")
        if self.rpc.timeout <= 0:
            raise ConfigurationError("rpc.timeout must be > 0")
        if not is_address(self.contract.address):
            raise ConfigurationError(f"Invalid contract address: {self.contract.address}")
        if self.contract.chain_id is not None and self.contract.chain_id < 1:
            raise ConfigurationError("contract.chain_id must be >= 1")
        if self.wallet.mode not in WALLET_MODES:
            raise ConfigurationError(
                f"wallet.mode must be one of {WALLET_MODES}, got {self.wallet.mode!r}"
            )
        if self.sync.max_concurrent_fetches < 1:
            raise ConfigurationError("sync.max_concurrent_fetches must be >= 1")
        if self.sync.confirmation_timeout <= 0 or self.sync.poll_interval <= 0:
            raise ConfigurationError("sync timeouts must be > 0")
        if self.logging.level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigurationError(f"Invalid logging.level: {self.logging.level}")
        return True

    @property
    def contract_address(self) -> str:
        return to_checksum_address(self.contract.address)

    # --- serialisation ----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dict (for diagnostics; never includes the private key)."""
        return {
            "rpc": {"url": self.rpc.url, "timeout": self.rpc.timeout},
            "contract": {"address": self.contract.address, "chain_id": self.contract.chain_id},
            "wallet": {"mode": self.wallet.mode, "has_private_key": self.wallet.private_key is not None},
            "sync": {
                "max_concurrent_fetches": self.sync.max_concurrent_fetches,
                "confirmation_timeout": self.sync.confirmation_timeout,
                "poll_interval": self.sync.poll_interval,
            },
            "logging": {"level": self.logging.level},
        }


# -----------------------------------------------------------------------
# Convenience function
# -----------------------------------------------------------------------

def load_config(path: Optional[str] = None) -> ClientConfig:
    """
    Load and validate client configuration.

    Resolution order:
        1. Explicit *path* argument
        2. DAOVOTE_CONFIG env var
        3. ./daovote.toml in current directory
        4. Defaults (with env overrides)
    """
    if path is None:
        path = os.environ.get("DAOVOTE_CONFIG", "daovote.toml")

    cfg = ClientConfig.from_file(path)
    cfg.validate()
    return cfg
