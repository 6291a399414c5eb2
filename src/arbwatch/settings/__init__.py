"""Display settings and credential management."""

from arbwatch.settings.credentials import CredentialManager
from arbwatch.settings.pipeline import MAX_THRESHOLD, MIN_THRESHOLD, SettingsMutationPipeline


__all__ = [
    "CredentialManager",
    "MAX_THRESHOLD",
    "MIN_THRESHOLD",
    "SettingsMutationPipeline",
]
