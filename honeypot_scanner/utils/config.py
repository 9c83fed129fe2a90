"""Configuration management using Pydantic settings."""

import os
from typing import List, Optional
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
SPL_TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"


class Config(BaseSettings):
    """Application configuration with validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # RPC Configuration
    quicknode_rpc_url: str = Field(default="", description="QuickNode RPC endpoint")
    helius_rpc_url: str = Field(default="", description="Helius RPC endpoint")
    primary_rpc_provider: str = Field(default="quicknode", description="Primary RPC provider")
    rpc_timeout: int = Field(default=30, description="RPC request timeout in seconds")
    rpc_max_retries: int = Field(default=3, description="Maximum number of RPC attempts")

    # Jupiter Configuration
    jupiter_quote_url: str = Field(
        default="https://lite-api.jup.ag/swap/v1/quote",
        description="Jupiter swap quote endpoint",
    )
    jupiter_price_url: str = Field(
        default="https://lite-api.jup.ag/price/v3",
        description="Jupiter spot price endpoint",
    )
    jupiter_api_key: str = Field(default="", description="Jupiter API key (optional)")
    jupiter_timeout: int = Field(default=10, description="Jupiter request timeout in seconds")
    jupiter_max_retries: int = Field(default=2, description="Maximum number of Jupiter attempts")

    # Detection Parameters
    base_token_address: str = Field(
        default=USDC_MINT, description="Reference token spent in the swap simulation"
    )
    trial_amount: int = Field(
        default=1000, description="Trial swap amount in base-token smallest units"
    )
    slippage_pct: float = Field(default=10.0, description="Slippage tolerance in percent")
    check_timeout_seconds: float = Field(
        default=0.0, description="Timeout for a single external call (0 disables)"
    )
    standard_token_programs: str = Field(
        default=SPL_TOKEN_PROGRAM_ID,
        description="Comma-separated list of trusted token program IDs",
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/honeypot_scanner.log", description="Log file path")
    log_max_size_mb: int = Field(default=100, description="Maximum log file size in MB")
    log_backup_count: int = Field(default=5, description="Number of log backups to keep")

    # Prometheus Metrics
    prometheus_enabled: bool = Field(default=False, description="Enable Prometheus metrics")
    prometheus_port: int = Field(default=9090, description="Prometheus metrics port")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v_upper

    @field_validator("primary_rpc_provider")
    @classmethod
    def validate_rpc_provider(cls, v: str) -> str:
        """Validate RPC provider."""
        valid_providers = ["quicknode", "helius"]
        v_lower = v.lower()
        if v_lower not in valid_providers:
            raise ValueError(f"RPC provider must be one of {valid_providers}")
        return v_lower

    @field_validator("trial_amount")
    @classmethod
    def validate_trial_amount(cls, v: int) -> int:
        """Trial amount must be a positive number of smallest units."""
        if v <= 0:
            raise ValueError("Trial amount must be positive")
        return v

    @field_validator("slippage_pct")
    @classmethod
    def validate_slippage(cls, v: float) -> float:
        """Slippage must leave a positive lower bound."""
        if not 0 <= v < 100:
            raise ValueError("Slippage must be in the range [0, 100)")
        return v

    def get_standard_token_programs(self) -> List[str]:
        """Get list of trusted token program IDs."""
        return [
            program.strip()
            for program in self.standard_token_programs.split(",")
            if program.strip()
        ]

    def get_rpc_url(self) -> str:
        """Get primary RPC URL based on provider."""
        if self.primary_rpc_provider == "quicknode":
            return self.quicknode_rpc_url
        return self.helius_rpc_url

    def get_backup_rpc_url(self) -> Optional[str]:
        """Get the RPC URL of the other provider, if configured."""
        if self.primary_rpc_provider == "quicknode":
            return self.helius_rpc_url or None
        return self.quicknode_rpc_url or None

    def get_backup_rpc_provider(self) -> str:
        """Get name of the backup provider."""
        return "helius" if self.primary_rpc_provider == "quicknode" else "quicknode"


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def load_config(env_file: Optional[str] = None) -> Config:
    """Load configuration from environment file."""
    global _config
    if env_file and os.path.exists(env_file):
        _config = Config(_env_file=env_file)
    else:
        _config = Config()
    return _config
