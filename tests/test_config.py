"""Tests for configuration validation."""

import pytest
from pydantic import ValidationError

from honeypot_scanner.utils.config import SPL_TOKEN_PROGRAM_ID, USDC_MINT, Config


class TestConfig:
    """Test Config defaults and validators."""

    def test_detection_defaults(self):
        """Defaults match the documented trial parameters."""
        config = Config(_env_file=None)

        assert config.trial_amount == 1000
        assert config.slippage_pct == 10.0
        assert config.base_token_address == USDC_MINT
        assert config.get_standard_token_programs() == [SPL_TOKEN_PROGRAM_ID]

    @pytest.mark.parametrize("slippage", [-1.0, 100.0, 150.0])
    def test_invalid_slippage(self, slippage):
        """Slippage outside [0, 100) is rejected."""
        with pytest.raises(ValidationError):
            Config(_env_file=None, slippage_pct=slippage)

    def test_invalid_trial_amount(self):
        """Trial amount must be positive."""
        with pytest.raises(ValidationError):
            Config(_env_file=None, trial_amount=0)

    def test_standard_programs_list(self):
        """Comma-separated programs are split and trimmed."""
        config = Config(
            _env_file=None,
            standard_token_programs=f"{SPL_TOKEN_PROGRAM_ID}, TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb ,",
        )

        assert config.get_standard_token_programs() == [
            SPL_TOKEN_PROGRAM_ID,
            "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb",
        ]

    def test_rpc_provider_failover_urls(self):
        """Backup URL is the other provider's URL."""
        config = Config(
            _env_file=None,
            primary_rpc_provider="Helius",
            helius_rpc_url="https://helius.invalid",
            quicknode_rpc_url="https://quicknode.invalid",
        )

        assert config.primary_rpc_provider == "helius"
        assert config.get_rpc_url() == "https://helius.invalid"
        assert config.get_backup_rpc_url() == "https://quicknode.invalid"
        assert config.get_backup_rpc_provider() == "quicknode"

    def test_invalid_log_level(self):
        """Unknown log levels are rejected."""
        with pytest.raises(ValidationError):
            Config(_env_file=None, log_level="verbose")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
