##########################################################################################
#
# Module: blockmap/models.py
#
# Description: Data structures shared by the header resolver, record merger
#              and PlantUML renderer.
#
# Author: Cornelis Networks
#
##########################################################################################

from dataclasses import dataclass, field
from typing import FrozenSet, List, Optional

DEFAULT_INPUT_FILE = 'tickets.csv'
DEFAULT_OUTPUT_FILE = 'tickets.txt'
DEFAULT_HIGHLIGHT_COLOR = 'paleGreen'
DEFAULT_WRAP_WIDTH = 150


@dataclass
class HeaderInfo:
    '''
    Positional indices of the recognized columns in a CSV header row.

    Inward ("blocked by") and outward ("blocks") link columns may appear
    any number of times, so every occurrence is kept.
    '''
    issue_key_idx: int
    summary_idx: Optional[int] = None
    status_idx: Optional[int] = None
    blocker_idx: List[int] = field(default_factory=list)
    blocked_idx: List[int] = field(default_factory=list)


@dataclass
class TicketRecord:
    '''
    A single ticket and the tickets it blocks / is blocked by.

    Relationship lists hold ticket keys, not records, and are only ever
    appended to.
    '''
    key: str
    summary: str = ''
    status: str = ''
    blocked_keys: List[str] = field(default_factory=list)
    blocker_keys: List[str] = field(default_factory=list)
    is_stub: bool = False

    @property
    def is_orphan(self) -> bool:
        '''True when the ticket has no relationships in either direction.'''
        return not self.blocked_keys and not self.blocker_keys

    @property
    def effective_status(self) -> str:
        return self.status.strip() or 'unknown'


@dataclass(frozen=True)
class RenderOptions:
    '''
    Immutable run options, built once from the command line and settings
    and passed to both the merge and render stages.
    '''
    input_file: str = DEFAULT_INPUT_FILE
    output_file: str = DEFAULT_OUTPUT_FILE
    supplemental_file: Optional[str] = None
    hide_summary: bool = False
    hide_orphans: bool = True
    hide_keys: FrozenSet[str] = frozenset()
    show_keys: FrozenSet[str] = frozenset()
    highlight_keys: FrozenSet[str] = frozenset()
    highlight_color: str = DEFAULT_HIGHLIGHT_COLOR
    wrap_width: int = DEFAULT_WRAP_WIDTH

    def is_hidden(self, key: str) -> bool:
        '''A key is hidden when listed in hide_keys, unless show_keys overrides it.'''
        return key in self.hide_keys and key not in self.show_keys

    def is_forced(self, key: str) -> bool:
        return key in self.show_keys

    def highlight_for(self, key: str) -> str:
        '''
        Return the PlantUML color annotation for a key.

        Input:
            key: Raw ticket key.

        Output:
            '#<color>' when the key is highlighted, otherwise an empty string.
        '''
        if key in self.highlight_keys:
            return f'#{self.highlight_color}'
        return ''


def parse_keys(keys: Optional[str]) -> FrozenSet[str]:
    '''
    Parse a comma delimited key list into a set.

    Input:
        keys: String such as 'STL-1, STL-2' (may be None or empty).

    Output:
        frozenset of stripped, non-empty keys.
    '''
    if not keys:
        return frozenset()
    return frozenset(k.strip() for k in keys.split(',') if k.strip())
