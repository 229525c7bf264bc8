"""
Deterministic evaluation core.

Pure functions only: readiness checks, blocker and stage classification, the
notification fingerprint, the push significance filter and the next-action
recommender. Nothing in this package performs I/O.
"""

from launchwatch_core.core.checks import (
    run_readiness_checks,
    merge_facts,
    extract_env_var_names,
    is_critical_secret,
    critical_missing_secrets,
)
from launchwatch_core.core.blockers import (
    categorize_error,
    classify_operational_blocker,
    classify_gtm_blocker,
)
from launchwatch_core.core.stage import classify_stage
from launchwatch_core.core.fingerprint import compute_notification_key
from launchwatch_core.core.push_filter import (
    BlockerMatcher,
    DEFAULT_MATCHERS,
    analyze_push,
    keyword_matcher,
    match_path_containment,
)
from launchwatch_core.core.recommendation import (
    recommend_next_action,
    is_notify_worthy,
)

__all__ = [
    "run_readiness_checks",
    "merge_facts",
    "extract_env_var_names",
    "is_critical_secret",
    "critical_missing_secrets",
    "categorize_error",
    "classify_operational_blocker",
    "classify_gtm_blocker",
    "classify_stage",
    "compute_notification_key",
    "BlockerMatcher",
    "DEFAULT_MATCHERS",
    "analyze_push",
    "keyword_matcher",
    "match_path_containment",
    "recommend_next_action",
    "is_notify_worthy",
]
