#!/usr/bin/env python3
##########################################################################################
#
# Script name: plantuml_utilities.py
#
# Description: Generate a PlantUML object diagram of "blocks" relationships from
#              Jira CSV exports.
#
# Author: Cornelis Networks
#
# Usage:
#   python plantuml_utilities.py --in tickets.csv --out tickets.txt
#
##########################################################################################

import argparse
import io
import logging
import sys
import os
from datetime import date

from blockmap.exceptions import Error, HeaderError, InputFileError, OutputFileError, RenderError
from blockmap.merger import build_issue_map, open_input
from blockmap.models import RenderOptions, parse_keys
from blockmap.renderer import write_diagram
from config.settings import DEFAULT_LOG_FILE, get_settings

# ****************************************************************************************
# Global data and configuration
# ****************************************************************************************

# Logging config
log = logging.getLogger(os.path.basename(sys.argv[0]))
log.setLevel(logging.DEBUG)

# File handler for logging - moved to settings.log_file by handle_args()
fh = logging.FileHandler(os.getenv('BLOCKMAP_LOG_FILE', DEFAULT_LOG_FILE), mode='w')
fh.setLevel(logging.DEBUG)
formatter = logging.Formatter(
    '%(asctime)-15s [%(funcName)25s:%(lineno)-5s] %(levelname)-8s %(message)s')
fh.setFormatter(formatter)
log.addHandler(fh)

# Console handler - set by handle_args()
ch = None

# Output control - set by handle_args()
_quiet_mode = False


def set_log_file(log_file):
    '''
    Point the file handler at log_file, replacing the one opened at import.

    Input:
        log_file: Path of the log file (truncated on open).
    '''
    global fh
    if os.path.abspath(log_file) == fh.baseFilename:
        return

    new_fh = logging.FileHandler(log_file, mode='w')
    new_fh.setLevel(logging.DEBUG)
    new_fh.setFormatter(formatter)

    log.removeHandler(fh)
    fh.close()
    fh = new_fh
    log.addHandler(fh)


def _log_to_file(level, message, func):
    # Log to file only (bypass stdout handler by writing directly to file handler)
    record = logging.LogRecord(
        name=log.name,
        level=level,
        pathname=__file__,
        lineno=0,
        msg=message,
        args=(),
        exc_info=None,
        func=func
    )
    fh.emit(record)


def output(message=''):
    '''
    Print user-facing output, respecting quiet mode.
    Always logs to file regardless of quiet mode.

    Input:
        message: String to output (default empty for blank line).

    Output:
        None; prints to stdout unless in quiet mode.

    Side Effects:
        Always logs message to log file at INFO level.
    '''
    if message:
        _log_to_file(logging.INFO, f'OUTPUT: {message}', 'output')

    # Print to stdout unless quiet mode
    if not _quiet_mode:
        print(message)


def error(message):
    '''
    Report a failure on stderr. The log file gets the same message at ERROR
    level; the console handler is bypassed so it is not shown twice.
    '''
    _log_to_file(logging.ERROR, message, 'error')
    print(f'ERROR: {message}', file=sys.stderr)


# ****************************************************************************************
# Diagram generation
# ****************************************************************************************

def build_options(args):
    '''
    Build the immutable run options from parsed arguments.

    Input:
        args: argparse.Namespace from handle_args().

    Output:
        RenderOptions instance.
    '''
    return RenderOptions(
        input_file=args.input_file,
        output_file=args.output_file,
        supplemental_file=args.supplemental_file or None,
        hide_summary=args.hide_summary,
        hide_orphans=args.hide_orphans,
        hide_keys=parse_keys(args.hide_keys),
        show_keys=parse_keys(args.show_keys),
        highlight_keys=parse_keys(args.highlight_keys),
        highlight_color=args.highlight_color,
        wrap_width=args.wrap_width,
    )


def _create_output(output_file):
    try:
        return open(output_file, 'w', encoding='utf-8')
    except OSError as e:
        raise OutputFileError(f"can't create output file ({output_file}): {e}")


def _flush_output(out_file, content):
    '''
    Write the buffered diagram to the output file in one pass and close it.

    Output:
        True on success. A failure is reported but not raised; whatever was
        already written stays in the file.
    '''
    try:
        with out_file:
            out_file.write(content)
    except OSError as e:
        error(f"couldn't flush output file ({out_file.name}): {e}")
        return False
    return True


def create_diagram(options):
    '''
    Create a PlantUML blocker diagram from the configured CSV file(s).

    Input:
        options: RenderOptions.

    Output:
        Dict with counts of tickets, objects and relationships written.

    Raises:
        InputFileError: If the primary input cannot be opened or decoded.
        OutputFileError: If the output file cannot be created.
        HeaderError: If the primary input has no 'Issue key' column.
        RenderError: If the diagram cannot be rendered.

    Side Effects:
        Creates or overwrites the output file.
    '''
    log.debug(f'Entering create_diagram(options={options})')

    with open_input(options.input_file) as in_file:
        issues = build_issue_map(options, primary_stream=in_file)

    log.info(f'Generating PlantUML diagram for {len(issues)} tickets')
    buffer = io.StringIO()
    objects, relationships = write_diagram(issues, buffer, options)

    # created only once the diagram is complete, so a failed run leaves no empty file
    out_file = _create_output(options.output_file)
    log.info(f'Writing diagram to {options.output_file}...')
    _flush_output(out_file, buffer.getvalue())

    output('')
    output('=' * 80)
    output('PlantUML Diagram Created')
    output('=' * 80)
    output(f'Input file:    {options.input_file}')
    if options.supplemental_file:
        output(f'Supplemental:  {options.supplemental_file}')
    output(f'Output file:   {options.output_file}')
    output(f'Tickets:       {len(issues)}')
    output(f'Objects:       {objects}')
    output(f'Relationships: {relationships}')
    output('=' * 80)
    output('')

    return {
        'tickets': len(issues),
        'objects': objects,
        'relationships': relationships,
    }


# ****************************************************************************************
# Handle the arguments
# ****************************************************************************************

def handle_args(argv=None):
    '''
    Parse CLI arguments and configure console logging handlers.

    Input:
        argv: Optional argument list (defaults to sys.argv[1:]).

    Output:
        argparse.Namespace containing parsed arguments.

    Side Effects:
        Attaches a stream handler to the module logger with formatting and
        level derived from the parsed arguments.
    '''
    global ch, _quiet_mode
    log.debug('Entering handle_args()')

    parser = argparse.ArgumentParser(
        description='Generate a PlantUML "blocks" diagram from Jira CSV exports',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  %(prog)s --in tickets.csv --out tickets.txt
      Diagram every ticket in tickets.csv that blocks or is blocked by another

  %(prog)s --in sprint.csv --supplemental epics.csv
      Merge a second export; rows in the primary file win

  %(prog)s --in tickets.csv --hide-keys STL-1,STL-2 --highlight-keys STL-7
      Leave out two tickets and highlight another

  %(prog)s --in tickets.csv --show-orphans --hide-summary
      Include tickets without relationships, status only

Recognized columns:
  Issue key (required), Summary, Status,
  Inward issue link (Blocks), Outward issue link (Blocks)

Environment:
  BLOCKMAP_INPUT_FILE, BLOCKMAP_OUTPUT_FILE, BLOCKMAP_SUPPLEMENTAL_FILE,
  BLOCKMAP_HIDE_SUMMARY, BLOCKMAP_HIDE_ORPHANS, BLOCKMAP_HIGHLIGHT_COLOR,
  BLOCKMAP_WRAP_WIDTH, BLOCKMAP_LOG_FILE (also read from .env)
        ''')

    try:
        settings = get_settings()
        settings.validate()
    except ValueError as e:
        parser.error(str(e))

    set_log_file(settings.log_file)
    log.debug(f'Settings: {settings.to_dict()}')

    parser.add_argument(
        '-v',
        '--verbose',
        action='store_true',
        help='Enable verbose output to stdout.')

    parser.add_argument(
        '-q',
        '--quiet',
        action='store_true',
        help='Minimal stdout.')

    parser.add_argument(
        '--in',
        '-i',
        type=str,
        metavar='CSV_FILE',
        dest='input_file',
        default=settings.input_file,
        help=f'The Jira CSV export to process (default: {settings.input_file}).')

    parser.add_argument(
        '--out',
        '-o',
        type=str,
        metavar='FILE',
        dest='output_file',
        default=settings.output_file,
        help=f'The PlantUML file to create (default: {settings.output_file}).')

    parser.add_argument(
        '--supplemental',
        '-s',
        type=str,
        metavar='CSV_FILE',
        dest='supplemental_file',
        default=settings.supplemental_file,
        help='Supplemental CSV export, read before the input file. Failures are not fatal.')

    summaries = parser.add_mutually_exclusive_group()
    summaries.add_argument(
        '--hide-summary',
        action='store_true',
        dest='hide_summary',
        help="Don't show ticket summaries.")
    summaries.add_argument(
        '--show-summary',
        action='store_false',
        dest='hide_summary',
        help='Show ticket summaries (default).')
    parser.set_defaults(hide_summary=settings.hide_summary)

    orphans = parser.add_mutually_exclusive_group()
    orphans.add_argument(
        '--hide-orphans',
        action='store_true',
        dest='hide_orphans',
        help="Don't show tickets without relationships (default).")
    orphans.add_argument(
        '--show-orphans',
        action='store_false',
        dest='hide_orphans',
        help='Show tickets without relationships.')
    parser.set_defaults(hide_orphans=settings.hide_orphans)

    parser.add_argument(
        '--hide-keys',
        type=str,
        metavar='KEYS',
        dest='hide_keys',
        default='',
        help="Don't show these tickets (comma delimited).")

    parser.add_argument(
        '--show-keys',
        type=str,
        metavar='KEYS',
        dest='show_keys',
        default='',
        help='Always show these tickets, even if hidden or orphaned (comma delimited).')

    parser.add_argument(
        '--highlight-keys',
        type=str,
        metavar='KEYS',
        dest='highlight_keys',
        default='',
        help='Highlight these tickets (comma delimited).')

    parser.add_argument(
        '--highlight-color',
        type=str,
        metavar='COLOR',
        dest='highlight_color',
        default=settings.highlight_color,
        help=f'Color for --highlight-keys (default: {settings.highlight_color}).')

    parser.add_argument(
        '--wrap-width',
        type=int,
        metavar='N',
        dest='wrap_width',
        default=settings.wrap_width,
        help=f'Point at which to start wrapping text (default: {settings.wrap_width}).')

    args = parser.parse_args(argv)

    # Configure stdout logging based on arguments (always add handler, level varies)
    if ch is not None:
        log.removeHandler(ch)
    ch = logging.StreamHandler(sys.stdout)
    if args.verbose:
        ch.setLevel(logging.DEBUG)
    elif args.quiet:
        ch.setLevel(logging.ERROR)
    else:
        ch.setLevel(logging.INFO)
    ch.setFormatter(formatter)
    log.addHandler(ch)

    # Set quiet mode for output function
    _quiet_mode = args.quiet

    # Validate arguments
    if args.wrap_width <= 0:
        parser.error('--wrap-width must be a positive integer')
    if not args.highlight_color.strip():
        parser.error('--highlight-color must not be empty')

    log.info('++++++++++++++++++++++++++++++++++++++++++++++')
    log.info(f'+  {os.path.basename(sys.argv[0])}')
    log.info(f'+  Python Version: {sys.version.split()[0]}')
    log.info(f'+  Today is: {date.today()}')
    log.info('++++++++++++++++++++++++++++++++++++++++++++++')

    return args


# ****************************************************************************************
# Main
# ****************************************************************************************

def main(argv=None):
    '''
    Entrypoint that wires together dependencies and launches the CLI.

    Sequence:
        1. Parse command line arguments
        2. Build the run options
        3. Create the diagram

    Output:
        Exit code 0 on success, 1 on failure. A failing supplemental file is
        only a warning.
    '''
    args = handle_args(argv)
    log.debug('Entering main()')

    options = build_options(args)

    try:
        create_diagram(options)

    except (InputFileError, OutputFileError) as e:
        error(str(e))
        sys.exit(1)
    except HeaderError as e:
        error(f'input failure: {e}')
        sys.exit(1)
    except RenderError as e:
        error(f'output failure: {e}')
        sys.exit(1)
    except Error as e:
        error(f'processing failed: {e}')
        sys.exit(1)
    except Exception as e:
        error(f'Unexpected error: {e}')
        sys.exit(1)

    log.info('Operation complete.')


if __name__ == '__main__':
    main()
