"""Exception hierarchy for the honeypot scanner."""


class HoneypotScannerError(Exception):
    pass


class InvalidTokenAddressError(HoneypotScannerError, ValueError):
    """Raised when a token identifier is not a valid Solana address."""

    def __init__(self, address: str, reason: str = ""):
        self.address = address
        message = f"Invalid token address: {address!r}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ChainReadError(HoneypotScannerError):
    """Chain state could not be read or was malformed."""


class QuoteProviderError(HoneypotScannerError):
    """Swap provider request failed or returned an unusable response."""
