from __future__ import annotations


class ConfigurationError(ValueError):
    """Raised before any counting starts when a build is misconfigured."""
