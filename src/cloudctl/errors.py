"""Exception hierarchy shared by the cloudctl components.

Component-specific errors (``MetalError``, ``GardenerError``,
``NetworkAcquisitionError``, ...) subclass these in their own modules.
"""

from __future__ import annotations


class CloudctlError(Exception):
    """Base class for every error cloudctl raises on purpose."""


class UsageError(CloudctlError):
    """Raised when a command is invoked with the wrong arguments."""


class ConfigurationError(CloudctlError):
    """Raised for missing or inconsistent local configuration."""


class RemoteError(CloudctlError):
    """Raised when one of the remote services rejects or fails a request."""
