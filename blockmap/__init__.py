##########################################################################################
#
# Module: blockmap
#
# Description: Build PlantUML "blocks" diagrams from Jira CSV exports.
#
# Author: Cornelis Networks
#
##########################################################################################

from blockmap.exceptions import (
    Error,
    HeaderError,
    InputFileError,
    OutputFileError,
    RenderError,
)
from blockmap.headers import resolve_header
from blockmap.merger import (
    build_issue_map,
    load_file,
    load_supplemental,
    merge_lines,
    merge_source,
    open_input,
)
from blockmap.models import HeaderInfo, RenderOptions, TicketRecord, parse_keys
from blockmap.renderer import normalize_key, render_diagram, write_diagram

__all__ = [
    'Error',
    'HeaderError',
    'InputFileError',
    'OutputFileError',
    'RenderError',
    'HeaderInfo',
    'RenderOptions',
    'TicketRecord',
    'parse_keys',
    'resolve_header',
    'merge_lines',
    'merge_source',
    'open_input',
    'load_file',
    'load_supplemental',
    'build_issue_map',
    'normalize_key',
    'write_diagram',
    'render_diagram',
]
