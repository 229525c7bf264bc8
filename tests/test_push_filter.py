"""Unit tests for the push significance filter."""

import pytest

from launchwatch_core.core.push_filter import (
    DEFAULT_MATCHERS,
    analyze_push,
    keyword_matcher,
    match_path_containment,
)
from launchwatch_core.models import PushCommit

pytestmark = pytest.mark.unit


def _commit(added=(), removed=(), modified=()):
    return PushCommit(id="c1", message="change", added=list(added), removed=list(removed), modified=list(modified))


class TestAnalyzePush:
    def test_plain_code_change_is_not_meaningful(self):
        analysis = analyze_push([_commit(modified=["src/app.ts"])], cut_list=["old/"], known_blockers=["Mock data"])

        assert not analysis.meaningful
        assert analysis.cut_files_deleted == []
        assert analysis.cut_remaining is None
        assert analysis.blocker_count_change is None

    def test_cut_file_deleted_exact(self):
        analysis = analyze_push([_commit(removed=["scripts/legacy.sh"])], cut_list=["scripts/legacy.sh", "tmp"])

        assert analysis.meaningful
        assert analysis.cut_files_deleted == ["scripts/legacy.sh"]
        assert analysis.cut_remaining == 1

    def test_cut_directory_prefix_both_directions(self):
        inside = analyze_push([_commit(removed=["archive/v1/index.js"])], cut_list=["archive"])
        parent = analyze_push([_commit(removed=["archive"])], cut_list=["archive/v1"])

        assert inside.cut_files_deleted == ["archive/v1/index.js"]
        assert parent.cut_files_deleted == ["archive"]

    def test_prefix_requires_path_boundary(self):
        analysis = analyze_push([_commit(removed=["archived.txt"])], cut_list=["archive"])
        assert analysis.cut_files_deleted == []

    @pytest.mark.parametrize("path", ["README.md", "readme.md", "README", "readme.txt"])
    def test_readme_variants(self, path):
        assert analyze_push([_commit(modified=[path])]).readme_changed
        assert analyze_push([_commit(added=[path])]).meaningful

    def test_nested_readme_does_not_count(self):
        assert not analyze_push([_commit(modified=["docs/README.md"])]).readme_changed

    def test_blocker_mentions_removed_top_level_dir(self):
        blockers = ["Old prototypes/ folder confuses visitors", "No pricing page"]
        analysis = analyze_push([_commit(removed=["prototypes/a.tsx"])], known_blockers=blockers)

        assert analysis.meaningful
        assert analysis.blockers_resolved == ["Old prototypes/ folder confuses visitors"]
        assert analysis.blocker_count_change.before == 2
        assert analysis.blocker_count_change.after == 1

    def test_keyword_families(self):
        blockers = ["Archive folder with old code still in repo", "Uses mock data everywhere"]
        commits = [_commit(removed=["src/old-archive.js"]), _commit(removed=["lib/mockData.ts"])]

        analysis = analyze_push(commits, known_blockers=blockers)

        assert analysis.blockers_resolved == blockers

    def test_matching_is_case_insensitive(self):
        analysis = analyze_push([_commit(removed=["Legacy/index.html"])], known_blockers=["LEGACY site is live"])
        assert analysis.blockers_resolved == ["LEGACY site is live"]

    def test_commits_are_combined(self):
        commits = [_commit(modified=["src/x.ts"]), _commit(modified=["README.md"])]
        assert analyze_push(commits).meaningful

    def test_custom_matchers_replace_defaults(self):
        def never(blocker, removed):
            return False

        analysis = analyze_push(
            [_commit(removed=["archive/x"])], known_blockers=["archive cleanup"], matchers=[never]
        )
        assert not analysis.meaningful


class TestMatchers:
    def test_default_order(self):
        assert DEFAULT_MATCHERS[0] is match_path_containment
        assert [m.__name__ for m in DEFAULT_MATCHERS[1:]] == ["match_archive_keyword", "match_mock_keyword"]

    def test_keyword_needs_both_sides(self):
        mock = keyword_matcher("mock")
        assert mock("replace mock api", ["api/mocks.ts"])
        assert not mock("replace mock api", ["api/real.ts"])
        assert not mock("replace fake api", ["api/mocks.ts"])
