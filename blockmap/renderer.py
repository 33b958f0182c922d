##########################################################################################
#
# Module: blockmap/renderer.py
#
# Description: Render a merged issue map as a PlantUML object diagram. Each
#              ticket becomes an object; each "blocks" relationship becomes an
#              inheritance arrow from the blocking ticket to the blocked one.
#
# Author: Cornelis Networks
#
##########################################################################################

import io
import logging
import os
import sys

from blockmap.exceptions import RenderError

# Logging config - follows jira_utils.py pattern
log = logging.getLogger(os.path.basename(sys.argv[0]))

DIAGRAM_START = '@startuml'
DIAGRAM_END = '@enduml'
KEY_SEPARATOR = '-'


def normalize_key(key):
    '''
    Make a ticket key usable as a PlantUML object name ('STL-123' -> 'STL123').
    '''
    return key.replace(KEY_SEPARATOR, '')


def check_key_collisions(keys):
    '''
    Make sure no two distinct ticket keys normalize to the same object name.

    Input:
        keys: Iterable of raw ticket keys (map keys and link targets).

    Raises:
        RenderError: On the first collision found.
    '''
    seen = {}
    for key in sorted(set(keys)):
        name = normalize_key(key)
        other = seen.setdefault(name, key)
        if other != key:
            raise RenderError(f'tickets {other} and {key} both render as object {name}')


def is_suppressed(issue, options):
    '''
    Decide whether a ticket's object block is left out of the diagram.

    Hidden tickets are always left out. Orphans are left out when hide_orphans
    is set, unless the ticket is listed in show_keys.
    '''
    if options.is_hidden(issue.key):
        return True
    return issue.is_orphan and options.hide_orphans and not options.is_forced(issue.key)


def _object_lines(issue, options):
    highlight = options.highlight_for(issue.key)
    if highlight:
        yield f'object {normalize_key(issue.key)} {highlight} {{'
    else:
        yield f'object {normalize_key(issue.key)} {{'
    yield f'  {issue.effective_status.upper()}'
    if not options.hide_summary and issue.summary.strip():
        yield f'  {issue.summary.strip()}'
    yield '}'


def _relationship_lines(issues, options):
    # identical edges can be listed from both ends of a link
    created_edges = set()
    for key in sorted(issues):
        if options.is_hidden(key):
            continue
        for blocked_key in issues[key].blocked_keys:
            edge = (normalize_key(key), normalize_key(blocked_key))
            if edge in created_edges:
                continue
            created_edges.add(edge)
            yield f'{edge[0]} <|-- {edge[1]}'


def write_diagram(issues, out, options):
    '''
    Write the PlantUML object diagram for an issue map.

    Input:
        issues: Dict of key -> TicketRecord.
        out: Writable text stream.
        options: RenderOptions.

    Output:
        Tuple of (objects written, relationships written).

    Raises:
        RenderError: If two keys collide after normalization or a write fails.
    '''
    log.debug(f'Entering write_diagram(tickets={len(issues)})')

    all_keys = list(issues)
    for issue in issues.values():
        all_keys.extend(issue.blocked_keys)
    check_key_collisions(all_keys)

    objects = 0
    relationships = 0
    try:
        out.write(f'{DIAGRAM_START}\n')
        out.write(f'skinparam wrapWidth {options.wrap_width}\n')

        for key in sorted(issues):
            issue = issues[key]
            if is_suppressed(issue, options):
                log.debug(f'Suppressing object {key}')
                continue
            for line in _object_lines(issue, options):
                out.write(f'{line}\n')
            objects += 1

        for line in _relationship_lines(issues, options):
            out.write(f'{line}\n')
            relationships += 1

        out.write(f'{DIAGRAM_END}\n')
    except OSError as e:
        raise RenderError(f'output failure: {e}')

    log.debug(f'Wrote {objects} objects and {relationships} relationships')
    return objects, relationships


def render_diagram(issues, options):
    '''Render the diagram to a string.'''
    buffer = io.StringIO()
    write_diagram(issues, buffer, options)
    return buffer.getvalue()
