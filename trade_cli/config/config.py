"""
Configuration Module for the Trade Execution CLI
"""

import os
from dataclasses import dataclass, field
from typing import Optional
from dotenv import load_dotenv

DEFAULT_BASE_URL = "https://api.o1.exchange"
DEFAULT_SLIPPAGE_BPS = 300
DEFAULT_ENV_FILES = (".env.local", ".env")


@dataclass(frozen=True)
class NetworkConfig:
    key: str
    network_id: int
    name: str
    rpc_url: str
    native_symbol: str

    @property
    def is_configured(self) -> bool:
        return bool(self.rpc_url)

    @property
    def rpc_env_var(self) -> str:
        return f"EXECUTE_TRADE_{self.key.upper()}_RPC_URL"


def build_networks() -> dict[str, NetworkConfig]:
    """Build the two supported networks from the environment."""
    return {
        "base": NetworkConfig(
            key="base",
            network_id=8453,
            name="Base",
            rpc_url=os.getenv("EXECUTE_TRADE_BASE_RPC_URL", ""),
            native_symbol="ETH",
        ),
        "bsc": NetworkConfig(
            key="bsc",
            network_id=56,
            name="BSC",
            rpc_url=os.getenv("EXECUTE_TRADE_BSC_RPC_URL", ""),
            native_symbol="BNB",
        ),
    }


# Shown in the CLI banner
EXAMPLE_TOKENS = {
    "base": ("Zora", "0x1111111111166b7fe7bd91427724b487980afc69"),
    "bsc": ("USDT", "0x55d398326f99059ff775485246999027b3197955"),
}


@dataclass
class WalletConfig:
    private_key: str = ""

    @classmethod
    def from_env(cls) -> "WalletConfig":
        return cls(private_key=os.getenv("EXECUTE_TRADE_PRIVATE_KEY", "").strip())


def _env_number(name: str, default, cast, errors: list[str]):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        errors.append(f"{name} must be a number, got {raw!r}")
        return default


@dataclass
class TradeApiConfig:
    api_token: str = ""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    slippage_bps: int = DEFAULT_SLIPPAGE_BPS
    # Unparseable env values, reported by Config.validate
    env_errors: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "TradeApiConfig":
        errors: list[str] = []
        return cls(
            api_token=os.getenv("EXECUTE_TRADE_API_TOKEN", "").strip(),
            base_url=(os.getenv("EXECUTE_TRADE_BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            timeout=_env_number("EXECUTE_TRADE_HTTP_TIMEOUT", 30.0, float, errors),
            slippage_bps=_env_number("EXECUTE_TRADE_SLIPPAGE_BPS", DEFAULT_SLIPPAGE_BPS, int, errors),
            env_errors=errors,
        )


@dataclass
class Config:
    wallet: WalletConfig
    api: TradeApiConfig
    networks: dict[str, NetworkConfig] = field(default_factory=dict)
    log_level: str = "WARNING"

    @classmethod
    def load(cls, env_path: Optional[str] = None) -> "Config":
        # Earlier files win: load_dotenv never overrides a variable already set
        paths = (env_path,) if env_path else DEFAULT_ENV_FILES
        for path in paths:
            if os.path.exists(path):
                load_dotenv(path)

        return cls(
            wallet=WalletConfig.from_env(),
            api=TradeApiConfig.from_env(),
            networks=build_networks(),
            log_level=os.getenv("LOG_LEVEL", "WARNING").upper(),
        )

    def validate(self) -> tuple[bool, list[str]]:
        errors = list(self.api.env_errors)
        if not self.wallet.private_key:
            errors.append("EXECUTE_TRADE_PRIVATE_KEY is required")
        if not self.api.api_token:
            errors.append("EXECUTE_TRADE_API_TOKEN is required")
        if self.api.slippage_bps <= 0 or self.api.slippage_bps >= 10_000:
            errors.append("EXECUTE_TRADE_SLIPPAGE_BPS must be between 1 and 9999")
        if not any(n.is_configured for n in self.networks.values()):
            errors.append("Set EXECUTE_TRADE_BASE_RPC_URL and/or EXECUTE_TRADE_BSC_RPC_URL")
        return len(errors) == 0, errors

    def get_network(self, key: str) -> Optional[NetworkConfig]:
        return self.networks.get(key.lower())


if __name__ == "__main__":
    print("Configuration Test")
    print("=" * 50)
    config = Config.load()
    print(f"API: {config.api.base_url}")
    print(f"Slippage: {config.api.slippage_bps} bps")
    for network in config.networks.values():
        status = "configured" if network.is_configured else "missing RPC URL"
        print(f"{network.name} ({network.network_id}): {status}")
    valid, errors = config.validate()
    print(f"Validation: {'PASSED' if valid else 'FAILED'}")
    if errors:
        for e in errors:
            print(f"  Error: {e}")
