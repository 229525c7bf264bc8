"""Cross-invocation state kept in the external key-value store."""

from launchwatch_core.state.kv_store import KeyValueStore, RedisKeyValueStore
from launchwatch_core.state.dedup_gate import DedupGate
from launchwatch_core.state.verification_tracker import VerificationTracker, outcome_observed
from launchwatch_core.state.idempotency_lock import (
    IdempotencyLock,
    commit_lock_key,
    evaluation_lock_key,
)

__all__ = [
    "KeyValueStore",
    "RedisKeyValueStore",
    "DedupGate",
    "VerificationTracker",
    "outcome_observed",
    "IdempotencyLock",
    "commit_lock_key",
    "evaluation_lock_key",
]
