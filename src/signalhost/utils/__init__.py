"""
Utility modules for signalhost.
"""

from .errors import (
    BridgeError,
    ConfigurationError,
    FetchError,
    NetworkFailure,
    ParseFailure,
    RenderFailure,
    SignalHostError,
    error_boundary,
    safe_execute,
)

__all__ = [
    "SignalHostError",
    "ConfigurationError",
    "FetchError",
    "NetworkFailure",
    "ParseFailure",
    "RenderFailure",
    "BridgeError",
    "error_boundary",
    "safe_execute",
]
