# scan_module/errors.py
from __future__ import annotations

from typing import List, Optional


class AuditError(Exception):
    """Base class for every error raised by the audit."""


class ConfigError(AuditError):
    """Configuration file missing, unreadable or invalid."""


class CheckpointError(AuditError):
    """Checkpoint file present but unreadable, or could not be written."""


class ProviderError(AuditError):
    """
    Failure talking to the DNS provider.

    `messages` holds whatever the API returned in its `msgs` list so the
    operational log shows the provider's own explanation.
    """

    def __init__(self, message: str, messages: Optional[List[str]] = None):
        super().__init__(message)
        self.messages = list(messages or [])

    def __str__(self) -> str:
        base = super().__str__()
        if self.messages:
            return f"{base} ({'; '.join(self.messages)})"
        return base


class AuthenticationError(ProviderError):
    """Session could not be opened with the configured credentials."""


class FetchError(ProviderError):
    """A read against the provider API failed (transport, HTTP or API status)."""
