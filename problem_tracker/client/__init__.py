"""
Client library for the tracker API: bearer HTTP client, generation-stamped
read cache and optimistic mutations reconciled against the server.
"""

from .api_client import TrackerApiClient as TrackerApiClient, static_token as static_token
from .cache import MutationCache as MutationCache, tracker_keys as tracker_keys
from .reconciler import (
    OptimisticReconciler as OptimisticReconciler,
    rollback_decision as rollback_decision,
)
from .trackers import Trackers as Trackers
