"""Errors raised by the engine and its collaborators"""


class MithrilError(Exception):
    """Base error class for every engine failure"""
    pass


# Validation: rejected before any mutation

class ValidationError(MithrilError):
    pass


class ZeroAmount(ValidationError):
    """Amount must be more than zero"""
    pass


class TokenNotAllowed(ValidationError):
    """Token is not registered as collateral"""
    pass


class LengthMismatch(ValidationError):
    """Token and price feed lists have different lengths"""
    pass


# Invariants: rejected after a tentative mutation

class InvariantViolation(MithrilError):
    pass


class BreaksHealthFactor(InvariantViolation):
    def __init__(self, health_factor: int):
        super().__init__(f"Health factor {health_factor} is below the minimum")
        self.health_factor = health_factor


class HealthFactorOk(InvariantViolation):
    """Only undercollateralized accounts can be liquidated"""
    pass


class HealthFactorNotImproved(InvariantViolation):
    pass


class InsufficientCollateral(InvariantViolation):
    pass


class InsufficientDebt(InvariantViolation):
    pass


# External calls

class ExternalCallFailure(MithrilError):
    pass


class TransferFailed(ExternalCallFailure):
    pass


class MintFailed(ExternalCallFailure):
    pass


# Oracle

class OracleError(MithrilError):
    pass


class StaleData(OracleError):
    """Price reading is older than the oracle timeout"""
    pass


class InvalidPrice(OracleError):
    pass


class ReentrancyViolation(MithrilError):
    pass


# Stablecoin ledger

class StableCoinError(MithrilError):
    pass


class NotOwner(StableCoinError):
    pass


class NotZeroAddress(StableCoinError):
    pass


class BurnAmountExceedsBalance(StableCoinError):
    pass
