##########################################################################################
#
# Module: blockmap/merger.py
#
# Description: Merge ticket rows from one or more Jira CSV exports into a single
#              map of ticket key -> TicketRecord. Tickets that are only referenced
#              through a link column get a stub record that is promoted in place
#              if their own row is read later.
#
# Author: Cornelis Networks
#
##########################################################################################

import logging
import os
import sys

from blockmap.exceptions import HeaderError, InputFileError
from blockmap.headers import resolve_header, split_line
from blockmap.models import TicketRecord

# Logging config - follows jira_utils.py pattern
log = logging.getLogger(os.path.basename(sys.argv[0]))


def _cell(columns, idx):
    '''Return the cell at idx, or None when the column is unresolved or the row is short.'''
    if idx is None or idx >= len(columns):
        return None
    return columns[idx]


def _link_keys(columns, indices, options):
    for idx in indices:
        value = _cell(columns, idx)
        if value is None:
            continue
        key = value.strip()
        if not key or options.is_hidden(key):
            continue
        yield key


def _load_blockers(header, columns, options, issue, issues):
    for blocker_key in _link_keys(columns, header.blocker_idx, options):
        issue.blocker_keys.append(blocker_key)
        if blocker_key not in issues:
            log.debug(f'Creating stub {blocker_key} (blocks {issue.key})')
            issues[blocker_key] = TicketRecord(
                key=blocker_key, blocked_keys=[issue.key], is_stub=True)


def _load_blocked(header, columns, options, issue, issues):
    for blocked_key in _link_keys(columns, header.blocked_idx, options):
        issue.blocked_keys.append(blocked_key)
        if blocked_key not in issues:
            log.debug(f'Creating stub {blocked_key} (blocked by {issue.key})')
            issues[blocked_key] = TicketRecord(
                key=blocked_key, blocker_keys=[issue.key], is_stub=True)


def merge_lines(header, lines, options, issues):
    '''
    Merge CSV data lines into the issue map.

    Input:
        header: HeaderInfo resolved from the source's header row.
        lines: Iterable of raw data lines (header already consumed).
        options: RenderOptions (hide_keys / show_keys are applied here).
        issues: Dict of key -> TicketRecord, updated in place.

    Output:
        Number of rows accepted into the map.

    Side Effects:
        Creates, promotes or updates records in issues. Summary and status are
        overwritten by the latest row for a key; relationship lists are appended.
    '''
    log.debug(f'Entering merge_lines(header={header})')

    accepted = 0
    for line in lines:
        columns = split_line(line)

        issue_key = _cell(columns, header.issue_key_idx)
        if issue_key is None:
            continue
        issue_key = issue_key.strip()
        if not issue_key:
            continue
        if options.is_hidden(issue_key):
            log.debug(f'Skipping hidden ticket {issue_key}')
            continue

        issue = issues.get(issue_key)
        if issue is None:
            issue = TicketRecord(key=issue_key)
        elif issue.is_stub:
            log.debug(f'Promoting stub {issue_key}')
        issue.is_stub = False

        summary = _cell(columns, header.summary_idx)
        if summary is not None:
            issue.summary = summary
        status = _cell(columns, header.status_idx)
        if status is not None:
            issue.status = status

        # the record goes in first so a self-referencing link does not make a stub
        issues[issue_key] = issue
        _load_blockers(header, columns, options, issue, issues)
        _load_blocked(header, columns, options, issue, issues)
        accepted += 1

    log.debug(f'Accepted {accepted} rows; map now holds {len(issues)} tickets')
    return accepted


def merge_source(stream, options, issues):
    '''
    Resolve the header of a CSV text stream and merge its rows.

    Input:
        stream: Iterable of text lines, header first.
        options: RenderOptions.
        issues: Dict of key -> TicketRecord, updated in place.

    Output:
        Number of rows accepted into the map.

    Raises:
        HeaderError: If the header is missing or lacks the 'Issue key' column.
        InputFileError: If the stream cannot be read or decoded.
    '''
    name = getattr(stream, 'name', '<stream>')
    try:
        lines = iter(stream)
        header = resolve_header(next(lines, None))
        return merge_lines(header, lines, options, issues)
    except (UnicodeDecodeError, OSError) as e:
        raise InputFileError(f"can't read input file ({name}): {e}")


def open_input(input_file):
    '''
    Open an input CSV file for reading.

    Input:
        input_file: Path to the CSV file. A '.csv' extension is tried if the
                    bare path does not exist.

    Output:
        Open text file object (UTF-8, a leading BOM is dropped).

    Raises:
        InputFileError: If the file cannot be opened.
    '''
    log.debug(f'Entering open_input(input_file={input_file})')

    if not os.path.exists(input_file):
        if not input_file.endswith('.csv') and os.path.exists(f'{input_file}.csv'):
            input_file = f'{input_file}.csv'
            log.debug(f'Added .csv extension: {input_file}')

    try:
        return open(input_file, 'r', encoding='utf-8-sig', newline='')
    except OSError as e:
        raise InputFileError(f"can't read input file ({input_file}): {e}")


def load_file(input_file, options, issues):
    '''
    Open a CSV file and merge its rows into the issue map.

    Input:
        input_file: Path to the CSV file. A '.csv' extension is tried if the
                    bare path does not exist.
        options: RenderOptions.
        issues: Dict of key -> TicketRecord, updated in place.

    Output:
        Number of rows accepted into the map.

    Raises:
        InputFileError: If the file cannot be opened or is not valid UTF-8.
        HeaderError: If the header cannot be resolved.
    '''
    log.debug(f'Entering load_file(input_file={input_file})')

    with open_input(input_file) as f:
        count = merge_source(f, options, issues)

    log.info(f'Loaded {count} tickets from {input_file}')
    return count


def load_supplemental(options, issues):
    '''
    Merge the optional supplemental file, if one is configured.

    A supplemental file that cannot be opened, decoded or resolved is reported
    and skipped; the run continues with the primary file alone. Rows merged
    before a decode failure stay in the map.

    Output:
        True if a supplemental file was merged, False otherwise.
    '''
    if not options.supplemental_file:
        return False

    try:
        load_file(options.supplemental_file, options, issues)
    except (InputFileError, HeaderError) as e:
        log.warning(f'Problem processing supplemental file: {e}. Continuing.')
        return False
    return True


def build_issue_map(options, primary_stream=None):
    '''
    Build the merged issue map: supplemental file first, then the primary input.

    Reading the primary input last means its rows overwrite summary and status
    of any record first seen in the supplemental file.

    Input:
        options: RenderOptions.
        primary_stream: Optional already-open text stream for the primary input.
                        When None, options.input_file is opened.

    Output:
        Dict of key -> TicketRecord.

    Raises:
        InputFileError: If the primary input cannot be opened.
        HeaderError: If the primary header cannot be resolved.
    '''
    log.debug(f'Entering build_issue_map(options={options})')

    issues = {}
    load_supplemental(options, issues)

    if primary_stream is not None:
        merge_source(primary_stream, options, issues)
    else:
        load_file(options.input_file, options, issues)

    stubs = sum(1 for issue in issues.values() if issue.is_stub)
    log.info(f'Merged {len(issues)} tickets ({stubs} referenced only)')
    return issues
