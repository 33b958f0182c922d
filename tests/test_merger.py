import io
import logging

import pytest

from blockmap.exceptions import HeaderError, InputFileError
from blockmap.headers import resolve_header
from blockmap.merger import (
    build_issue_map,
    load_file,
    load_supplemental,
    merge_lines,
    merge_source,
)
from blockmap.models import RenderOptions, parse_keys
from tests.conftest import HEADER


def _merge(lines, options=None, issues=None):
    issues = {} if issues is None else issues
    merge_lines(resolve_header(HEADER), lines, options or RenderOptions(), issues)
    return issues


def test_merge_full_row():
    issues = _merge(['STL-1,Fix the link,In Progress,STL-9,STL-2,STL-3'])

    issue = issues['STL-1']
    assert issue.summary == 'Fix the link'
    assert issue.status == 'In Progress'
    assert issue.blocker_keys == ['STL-9']
    assert issue.blocked_keys == ['STL-2', 'STL-3']
    assert not issue.is_stub


def test_merge_skips_blank_identifier():
    """A row without an issue key creates nothing and links nothing."""

    issues = _merge(['STL-1,One,Open,,,', ' ,Orphan row,Open,STL-1,STL-5,'])

    assert list(issues) == ['STL-1']
    assert issues['STL-1'].blocker_keys == []
    assert issues['STL-1'].blocked_keys == []


def test_merge_creates_stubs_for_referenced_tickets():
    issues = _merge(['STL-1,One,Open,STL-9,STL-2,'])

    blocker = issues['STL-9']
    assert blocker.is_stub
    assert blocker.summary == ''
    assert blocker.status == ''
    assert blocker.effective_status == 'unknown'
    assert blocker.blocked_keys == ['STL-1']
    assert blocker.blocker_keys == []

    blocked = issues['STL-2']
    assert blocked.is_stub
    assert blocked.blocker_keys == ['STL-1']
    assert blocked.blocked_keys == []


def test_merge_one_stub_per_referenced_ticket():
    """A ticket referenced twice gets one stub; only the first reference links back."""

    issues = _merge([
        'STL-1,One,Open,,STL-5,',
        'STL-2,Two,Open,,STL-5,',
    ])

    assert len(issues) == 3
    assert issues['STL-5'].blocker_keys == ['STL-1']


def test_merge_promotes_stub_in_place():
    issues = _merge([
        'STL-1,One,Open,,STL-2,',
        'STL-2,Two,Done,,,',
    ])

    issue = issues['STL-2']
    assert not issue.is_stub
    assert issue.summary == 'Two'
    assert issue.status == 'Done'
    assert issue.blocker_keys == ['STL-1']


def test_merge_tolerates_short_rows():
    issues = _merge(['STL-1,Only a summary'])

    issue = issues['STL-1']
    assert issue.summary == 'Only a summary'
    assert issue.status == ''
    assert issue.is_orphan


def test_merge_skips_row_shorter_than_key_column():
    header = resolve_header('Summary,Status,Issue key')
    issues = {}

    accepted = merge_lines(header, ['Just a summary'], RenderOptions(), issues)

    assert accepted == 0
    assert issues == {}


def test_merge_ignores_blank_link_cells():
    issues = _merge(['STL-1,One,Open,  ,,'])

    assert issues['STL-1'].is_orphan
    assert len(issues) == 1


def test_merge_hidden_ticket_and_links():
    options = RenderOptions(hide_keys=parse_keys('STL-2,STL-3'))

    issues = _merge([
        'STL-1,One,Open,STL-3,STL-2,STL-4',
        'STL-2,Two,Open,,,',
    ], options)

    assert sorted(issues) == ['STL-1', 'STL-4']
    assert issues['STL-1'].blocker_keys == []
    assert issues['STL-1'].blocked_keys == ['STL-4']


def test_merge_show_overrides_hide():
    options = RenderOptions(hide_keys=parse_keys('STL-2'), show_keys=parse_keys('STL-2'))

    issues = _merge([
        'STL-1,One,Open,,STL-2,',
        'STL-2,Two,Open,,,',
    ], options)

    assert issues['STL-1'].blocked_keys == ['STL-2']
    assert issues['STL-2'].summary == 'Two'


def test_merge_self_reference_does_not_create_stub():
    issues = _merge(['STL-1,One,Open,,STL-1,'])

    assert list(issues) == ['STL-1']
    assert issues['STL-1'].blocked_keys == ['STL-1']
    assert not issues['STL-1'].is_stub


def test_merge_source_reads_header_from_stream():
    stream = io.StringIO('Issue key,Status\nSTL-1,Open\nSTL-2,Done\n')
    issues = {}

    assert merge_source(stream, RenderOptions(), issues) == 2
    assert issues['STL-2'].status == 'Done'


def test_merge_source_empty_stream():
    with pytest.raises(HeaderError):
        merge_source(io.StringIO(''), RenderOptions(), {})


def test_load_file_adds_csv_extension(write_csv):
    path = write_csv('tickets.csv', 'Issue key,Status', 'STL-1,Open')
    issues = {}

    load_file(path[:-4], RenderOptions(), issues)

    assert issues['STL-1'].status == 'Open'


def test_load_file_drops_byte_order_mark(tmp_path):
    path = tmp_path / 'bom.csv'
    path.write_text('\ufeffIssue key,Status\r\nSTL-1,Open\r\n', encoding='utf-8')
    issues = {}

    load_file(str(path), RenderOptions(), issues)

    assert issues['STL-1'].status == 'Open'


def test_load_file_missing(tmp_path):
    with pytest.raises(InputFileError):
        load_file(str(tmp_path / 'nope.csv'), RenderOptions(), {})


def test_supplemental_then_primary(write_csv):
    """Primary rows win scalar fields; relationship lists hold references from both files."""

    supplemental = write_csv(
        'supplemental.csv',
        HEADER,
        'STL-1,Old summary,Open,STL-8,,',
        'STL-7,Seven,Done,,STL-1,',
    )
    primary = write_csv(
        'primary.csv',
        HEADER,
        'STL-1,New summary,In Progress,,STL-2,',
    )
    options = RenderOptions(input_file=primary, supplemental_file=supplemental)

    issues = build_issue_map(options)

    issue = issues['STL-1']
    assert issue.summary == 'New summary'
    assert issue.status == 'In Progress'
    assert issue.blocker_keys == ['STL-8']
    assert issue.blocked_keys == ['STL-2']
    assert issues['STL-7'].blocked_keys == ['STL-1']
    assert issues['STL-8'].is_stub


def test_supplemental_keeps_fields_missing_from_primary(write_csv):
    supplemental = write_csv('supplemental.csv', 'Issue key,Summary', 'STL-1,From supplemental')
    primary = write_csv('primary.csv', 'Issue key,Status', 'STL-1,Open')

    issues = build_issue_map(RenderOptions(input_file=primary, supplemental_file=supplemental))

    assert issues['STL-1'].summary == 'From supplemental'
    assert issues['STL-1'].status == 'Open'


def test_supplemental_failure_is_not_fatal(write_csv, tmp_path, caplog):
    primary = write_csv('primary.csv', 'Issue key,Status', 'STL-1,Open')
    options = RenderOptions(input_file=primary, supplemental_file=str(tmp_path / 'missing.csv'))

    with caplog.at_level(logging.WARNING):
        issues = build_issue_map(options)

    assert list(issues) == ['STL-1']
    assert 'Problem processing supplemental file' in caplog.text


def test_supplemental_bad_header_is_not_fatal(write_csv):
    supplemental = write_csv('supplemental.csv', 'Key,Status', 'STL-9,Open')
    issues = {}

    assert load_supplemental(RenderOptions(supplemental_file=supplemental), issues) is False
    assert issues == {}


def test_no_supplemental_configured():
    assert load_supplemental(RenderOptions(), {}) is False


def test_primary_bad_header_is_fatal(write_csv):
    primary = write_csv('primary.csv', 'Key,Status', 'STL-1,Open')

    with pytest.raises(HeaderError):
        build_issue_map(RenderOptions(input_file=primary))


def test_build_issue_map_from_stream():
    stream = io.StringIO('Issue key,Outward issue link (Blocks)\nSTL-1,STL-2\n')

    issues = build_issue_map(RenderOptions(), primary_stream=stream)

    assert sorted(issues) == ['STL-1', 'STL-2']


def test_supplemental_not_utf8_is_not_fatal(write_csv, tmp_path, caplog):
    """An export saved as cp1252 is skipped with a warning instead of stopping the run."""

    supplemental = tmp_path / 'supplemental.csv'
    supplemental.write_bytes(b'Issue key,Summary\nSTL-9,Caf\xe9 ticket\n')
    primary = write_csv('primary.csv', 'Issue key,Status', 'STL-1,Open')
    options = RenderOptions(input_file=primary, supplemental_file=str(supplemental))

    with caplog.at_level(logging.WARNING):
        issues = build_issue_map(options)

    assert 'STL-1' in issues
    assert 'Problem processing supplemental file' in caplog.text


def test_load_file_not_utf8(tmp_path):
    path = tmp_path / 'latin1.csv'
    path.write_bytes(b'Issue key,Summary\nSTL-1,Caf\xe9\n')

    with pytest.raises(InputFileError, match="can't read input file"):
        load_file(str(path), RenderOptions(), {})
