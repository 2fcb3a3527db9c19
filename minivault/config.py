"""Configuration architecture using pydantic-settings for typed environment loading."""

from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class WalletConfig(BaseSettings):
    """Key custody and session configuration."""

    model_config = SettingsConfigDict(
        env_prefix="MINIVAULT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: Path = Path("data")
    storage_key: str = "wallet_encrypted_v1"
    min_password_length: int = 6
    kdf: str = "scrypt"
    # Overrides the KDF cost (scrypt n / pbkdf2 rounds); library default when unset
    kdf_iterations: int | None = None
    default_network: str = "eth"
    # Network key -> RPC URL, e.g. MINIVAULT_RPC_OVERRIDES='{"eth": "https://..."}'
    rpc_overrides: dict[str, str] = {}
    transfer_log: bool = True


class RpcConfig(BaseSettings):
    """Chain RPC runtime configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RPC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    request_timeout: float = 30.0
    confirmation_poll_interval: float = 2.0
    # Unset means wait until the transaction is mined or dropped
    confirmation_timeout: float | None = None


class BackendConfig(BaseSettings):
    """Hosted backend (Supabase) configuration.

    Cloud backup is disabled unless both url and anon_key are set.
    """

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: str = ""
    anon_key: SecretStr = SecretStr("")
    profiles_table: str = "profiles"
    backups_table: str = "wallet_backups"
    request_timeout: float = 30.0

    @property
    def enabled(self) -> bool:
        """Whether enough configuration is present to reach the backend."""
        return bool(self.url) and bool(self.anon_key.get_secret_value())


class Settings:
    """Root settings aggregating all configuration sections."""

    def __init__(self) -> None:
        self.wallet = WalletConfig()
        self.rpc = RpcConfig()
        self.backend = BackendConfig()


# Global settings instance - lazily loaded
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
