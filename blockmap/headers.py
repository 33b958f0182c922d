##########################################################################################
#
# Module: blockmap/headers.py
#
# Description: Locate the columns of interest in a Jira CSV export header.
#              Jira exports do not have a fixed column order, and link columns
#              repeat once per link, so columns are found by header text.
#
# Author: Cornelis Networks
#
##########################################################################################

import logging
import os
import sys

from blockmap.exceptions import HeaderError
from blockmap.models import HeaderInfo

# Logging config - follows jira_utils.py pattern
log = logging.getLogger(os.path.basename(sys.argv[0]))

# ****************************************************************************************
# Recognized Jira export column names (exact, case-sensitive)
# ****************************************************************************************

ISSUE_KEY_COLUMN = 'Issue key'
SUMMARY_COLUMN = 'Summary'
STATUS_COLUMN = 'Status'
BLOCKER_COLUMN = 'Inward issue link (Blocks)'
BLOCKED_COLUMN = 'Outward issue link (Blocks)'


def split_line(line):
    '''
    Split a raw CSV line into cells.

    Quoted fields are not supported; a comma inside a field splits it.
    '''
    return line.rstrip('\r\n').split(',')


def resolve_header(line):
    '''
    Map recognized column names in a header line to their positions.

    Input:
        line: The first line of a CSV export (None or '' for an empty file).

    Output:
        HeaderInfo with the index of every recognized column.

    Raises:
        HeaderError: If the line is empty or has no 'Issue key' column.
    '''
    log.debug(f'Entering resolve_header(line={line!r})')

    if not line or not line.strip():
        raise HeaderError('no header row found')

    issue_key_idx = None
    header = HeaderInfo(issue_key_idx=-1)

    for idx, column in enumerate(split_line(line)):
        if column == ISSUE_KEY_COLUMN:
            issue_key_idx = idx
        elif column == SUMMARY_COLUMN:
            header.summary_idx = idx
        elif column == STATUS_COLUMN:
            header.status_idx = idx
        elif column == BLOCKER_COLUMN:
            header.blocker_idx.append(idx)
        elif column == BLOCKED_COLUMN:
            header.blocked_idx.append(idx)

    if issue_key_idx is None:
        raise HeaderError(f"'{ISSUE_KEY_COLUMN}' column not found")
    header.issue_key_idx = issue_key_idx

    log.debug(f'Resolved header: {header}')
    return header
