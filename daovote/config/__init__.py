"""
daovote Configuration

Loads every section of daovote.toml at startup.
Environment variables override TOML values.
"""

from .loader import (
    ClientConfig,
    ContractSectionConfig,
    LoggingSectionConfig,
    RPCSectionConfig,
    SyncSectionConfig,
    WalletSectionConfig,
    WALLET_MODES,
    load_config,
)

__all__ = [
    "ClientConfig",
    "ContractSectionConfig",
    "LoggingSectionConfig",
    "RPCSectionConfig",
    "SyncSectionConfig",
    "WalletSectionConfig",
    "WALLET_MODES",
    "load_config",
]
