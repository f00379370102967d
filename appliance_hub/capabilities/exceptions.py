"""
Custom exceptions for the capability layer.

Resolution and aggregation are best-effort and report problems through
their results; these are raised only for broken input contracts.
"""


class CapabilityError(Exception):
    """Base exception for all capability errors."""

    pass


class DeviceContractError(CapabilityError):
    """Raised when an operation is called without a usable device."""

    def __init__(self, operation: str = "capability operation"):
        self.operation = operation
        super().__init__(f"A device is required for {operation}")


class InvalidParameterError(CapabilityError):
    """Raised when operation parameters do not match the declared schema."""

    def __init__(self, param: str, reason: str):
        self.param = param
        self.reason = reason
        super().__init__(f"Invalid parameter '{param}': {reason}")
