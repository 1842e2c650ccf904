#!/usr/bin/env python3
"""
Treasury Exception Hierarchy

All exceptions inherit from TreasuryError for easy catching. Every failure
aborts the whole call it was raised in; nothing here is recovered internally.
"""


class TreasuryError(Exception):
    """Base exception for all treasury errors"""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class Unauthorized(TreasuryError):
    """Raised when the caller lacks the role an operation requires"""
    pass


class InvalidPercentage(TreasuryError):
    """Raised when a payout percentage is outside [0, 100)"""
    pass


class InvalidAmount(TreasuryError):
    """Raised when an amount is not a non-negative integer"""
    pass


class InsufficientBacking(TreasuryError):
    """Raised when a mint request exceeds excess reserves"""
    pass


class RedemptionInactive(TreasuryError):
    """Raised when redemption is requested before it was activated"""
    pass


class DivideByZero(TreasuryError):
    """Raised when redemption is requested at zero managed-token supply"""
    pass


class InsufficientTokenBalance(TreasuryError):
    """Raised by the managed token when a burn lacks balance or allowance"""
    pass


class InsufficientBalance(TreasuryError):
    """Raised when an asset ledger rejects a transfer"""
    pass


class ReentrantCall(TreasuryError):
    """Raised when a treasury entry point is re-entered mid-call"""
    pass


class ConfigurationError(TreasuryError):
    """Raised when a simulated world cannot be built from its configuration"""
    pass
