import pytest

from blockmap.exceptions import HeaderError
from blockmap.headers import resolve_header, split_line


def test_resolve_header_finds_columns_in_any_order():
    """Columns are located by name, not position."""

    header = resolve_header('Status,Priority,Summary,Issue key\n')

    assert header.issue_key_idx == 3
    assert header.summary_idx == 2
    assert header.status_idx == 0
    assert header.blocker_idx == []
    assert header.blocked_idx == []


def test_resolve_header_keeps_every_link_column():
    """Jira repeats a link column once per link; all of them must be kept."""

    line = ','.join([
        'Issue key',
        'Inward issue link (Blocks)',
        'Outward issue link (Blocks)',
        'Inward issue link (Blocks)',
        'Outward issue link (Blocks)',
        'Outward issue link (Blocks)',
    ])

    header = resolve_header(line)

    assert header.blocker_idx == [1, 3]
    assert header.blocked_idx == [2, 4, 5]


def test_resolve_header_optional_columns_missing():
    header = resolve_header('Issue key,Assignee')

    assert header.issue_key_idx == 0
    assert header.summary_idx is None
    assert header.status_idx is None


def test_resolve_header_ignores_other_link_types_and_case():
    """Header text must match exactly; other link types and other cases are ignored."""

    header = resolve_header('Issue key,Inward issue link (Cloners),outward issue link (blocks)')

    assert header.blocker_idx == []
    assert header.blocked_idx == []


def test_resolve_header_strips_windows_line_ending():
    header = resolve_header('Summary,Issue key\r\n')

    assert header.issue_key_idx == 1


@pytest.mark.parametrize('line', ['Summary,Status', 'issue key,Summary', '', None])
def test_resolve_header_requires_issue_key(line):
    with pytest.raises(HeaderError):
        resolve_header(line)


def test_split_line_does_not_handle_quotes():
    """Quoted fields are a known limitation: commas always split."""

    assert split_line('STL-1,"a, b",Open\n') == ['STL-1', '"a', ' b"', 'Open']
