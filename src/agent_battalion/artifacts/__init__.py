"""
Agent Battalion Artifacts Module.

Provides the run-scoped artifact store and the run manifest.
"""

from .models import RunManifest, StoredArtifact
from .store import RunStore, create_run_store

__all__ = [
    "RunManifest",
    "StoredArtifact",
    "RunStore",
    "create_run_store",
]
