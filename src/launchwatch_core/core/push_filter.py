"""Push Significance Filter

Decides whether a code push is worth a re-evaluation. A push is meaningful
when any of the following holds:
- a file or directory on the analysis' cut list was deleted
- a README variant was added or modified
- a known blocker textually references a deleted path

Everything else is silence. Only webhook-triggered flows consult this filter.

Blocker matching is a heuristic and is expressed as an ordered list of
``BlockerMatcher`` predicates so new heuristics can be appended without
touching ``analyze_push``.
"""

import logging
from typing import Callable, Iterable, List, Optional, Sequence, Set

from launchwatch_core.models import BlockerCountChange, PushAnalysis, PushCommit

logger = logging.getLogger(__name__)

README_VARIANTS = ("README.md", "readme.md", "README", "readme.txt")

# (blocker_text_lower, removed_paths_lower) -> matched?
BlockerMatcher = Callable[[str, Sequence[str]], bool]


def match_path_containment(blocker: str, removed: Sequence[str]) -> bool:
    """Blocker text mentions a removed path (or its top-level segment), or the reverse"""
    for path in removed:
        if not path:
            continue
        top_level = path.split("/")[0]
        if path in blocker or (top_level and top_level in blocker):
            return True
        if blocker and blocker in path:
            return True
    return False


def keyword_matcher(keyword: str) -> BlockerMatcher:
    """Blocker mentions ``keyword`` and so does at least one removed path"""
    def _match(blocker: str, removed: Sequence[str]) -> bool:
        return keyword in blocker and any(keyword in path for path in removed)

    _match.__name__ = f"match_{keyword}_keyword"
    return _match


DEFAULT_MATCHERS: Sequence[BlockerMatcher] = (
    match_path_containment,
    keyword_matcher("archive"),
    keyword_matcher("mock"),
)


def _is_cut_file(path: str, cut_list: Set[str]) -> bool:
    if path in cut_list:
        return True
    return any(
        path.startswith(cut_path + "/") or cut_path.startswith(path + "/")
        for cut_path in cut_list
    )


def analyze_push(
    commits: Iterable[PushCommit],
    cut_list: Optional[Sequence[str]] = None,
    known_blockers: Optional[Sequence[str]] = None,
    matchers: Sequence[BlockerMatcher] = DEFAULT_MATCHERS,
) -> PushAnalysis:
    """Classify a push.

    Args:
        commits: Commits of one push delivery
        cut_list: Files/directories previously flagged for deletion
        known_blockers: Free-text blockers from the last content analysis
        matchers: Ordered blocker predicates; the first hit resolves a blocker

    Returns:
        PushAnalysis with ``meaningful`` and the detail that made it so
    """
    removed: List[str] = []
    changed: Set[str] = set()
    for commit in commits:
        for path in commit.removed:
            if path not in removed:
                removed.append(path)
        changed.update(commit.added)
        changed.update(commit.modified)

    logger.debug(f"[PushFilter] {len(removed)} removed, {len(changed)} added/modified")

    cut = list(cut_list or [])
    cut_set = set(cut)
    cut_files_deleted = [path for path in removed if _is_cut_file(path, cut_set)]
    cut_remaining = None
    if cut_files_deleted:
        cut_remaining = max(0, len(cut) - len(cut_files_deleted))

    readme_changed = any(variant in changed for variant in README_VARIANTS)

    blockers = list(known_blockers or [])
    removed_lower = [path.lower() for path in removed]
    blockers_resolved: List[str] = []
    if removed_lower:
        for blocker in blockers:
            blocker_lower = blocker.lower()
            if any(matcher(blocker_lower, removed_lower) for matcher in matchers):
                blockers_resolved.append(blocker)

    blocker_count_change = None
    if blockers_resolved:
        blocker_count_change = BlockerCountChange(
            before=len(blockers),
            after=max(0, len(blockers) - len(blockers_resolved)),
        )

    analysis = PushAnalysis(
        meaningful=bool(cut_files_deleted or readme_changed or blockers_resolved),
        cut_files_deleted=cut_files_deleted,
        cut_remaining=cut_remaining,
        readme_changed=readme_changed,
        blockers_resolved=blockers_resolved,
        blocker_count_change=blocker_count_change,
    )
    logger.info(
        f"[PushFilter] meaningful={analysis.meaningful} "
        f"cut_deleted={len(cut_files_deleted)} readme_changed={readme_changed} "
        f"blockers_resolved={len(blockers_resolved)}"
    )
    return analysis
