"""Notification fingerprint.

The fingerprint covers exactly the state slice that makes an alert worth
repeating: which deployment, which commit, the deploy status, the set of
missing secrets, and the stage. Anything else (screenshot URL, readme edits,
timestamps) can change without producing a new alert.
"""

import hashlib
import json
from typing import Iterable, Optional, Union

from launchwatch_core.models import DeployStatus, GTMStage


def compute_notification_key(
    deployment_id: Optional[str],
    latest_commit_sha: Optional[str],
    deploy_status: Union[DeployStatus, str],
    missing_env_vars: Iterable[str],
    gtm_stage: Union[GTMStage, str],
) -> str:
    """Deterministic key over the notify-worthy state slice.

    Missing env vars are treated as a set: order and duplicates do not change
    the key.
    """
    payload = {
        "d": deployment_id,
        "c": latest_commit_sha,
        "s": DeployStatus(deploy_status).value,
        "e": sorted(set(missing_env_vars)),
        "g": GTMStage(gtm_stage).value,
    }
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()
