"""Property-based tests for open-file limit checks.

Properties:
    - Limits at or above the minimums never produce an issue.
    - Each limit below its minimum produces exactly one issue.
"""

from hypothesis import given
from hypothesis import strategies as st

from notebooks_infra.constants import MIN_HARD_NOFILE, MIN_SOFT_NOFILE
from notebooks_infra.prerequisites import open_file_limit_issues


@given(
    soft=st.integers(min_value=MIN_SOFT_NOFILE, max_value=2**20),
    hard=st.integers(min_value=MIN_HARD_NOFILE, max_value=2**20),
)
def test_sufficient_limits(soft, hard):
    assert open_file_limit_issues(soft, hard) == []


@given(
    soft=st.integers(min_value=0, max_value=2**20),
    hard=st.integers(min_value=0, max_value=2**20),
)
def test_one_issue_per_low_limit(soft, hard):
    issues = open_file_limit_issues(soft, hard)
    assert len(issues) == (soft < MIN_SOFT_NOFILE) + (hard < MIN_HARD_NOFILE)
