"""
Exception base shared by every lnr module.
"""

from __future__ import annotations


class LnrError(RuntimeError):
    """Base error with a machine-readable code and a human message."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


class ConfigError(LnrError):
    """Raised when required configuration is missing or invalid."""

    def __init__(self, message: str):
        super().__init__("config_error", message)
