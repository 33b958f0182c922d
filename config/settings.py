##########################################################################################
#
# Module: config/settings.py
#
# Description: Application settings and configuration management.
#              Settings provide the defaults for the command line options.
#
# Author: Cornelis Networks
#
##########################################################################################

import logging
import os
import sys
from dataclasses import dataclass
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from blockmap.models import (
    DEFAULT_HIGHLIGHT_COLOR,
    DEFAULT_INPUT_FILE,
    DEFAULT_OUTPUT_FILE,
    DEFAULT_WRAP_WIDTH,
)

# Load environment variables
load_dotenv()

# Logging config - follows jira_utils.py pattern
log = logging.getLogger(os.path.basename(sys.argv[0]))

DEFAULT_LOG_FILE = 'plantuml_utilities.log'


@dataclass
class Settings:
    '''
    Application settings loaded from environment variables.
    '''
    # Files
    input_file: str = DEFAULT_INPUT_FILE
    output_file: str = DEFAULT_OUTPUT_FILE
    supplemental_file: Optional[str] = None

    # Diagram
    hide_summary: bool = False
    hide_orphans: bool = True
    highlight_color: str = DEFAULT_HIGHLIGHT_COLOR
    wrap_width: int = DEFAULT_WRAP_WIDTH

    # Logging
    log_file: str = DEFAULT_LOG_FILE

    @classmethod
    def from_env(cls) -> 'Settings':
        '''
        Create settings from environment variables.

        Output:
            Settings instance populated from environment.

        Raises:
            ValueError: If BLOCKMAP_WRAP_WIDTH is not an integer.
        '''
        return cls(
            # Files
            input_file=os.getenv('BLOCKMAP_INPUT_FILE', DEFAULT_INPUT_FILE),
            output_file=os.getenv('BLOCKMAP_OUTPUT_FILE', DEFAULT_OUTPUT_FILE),
            supplemental_file=os.getenv('BLOCKMAP_SUPPLEMENTAL_FILE') or None,

            # Diagram
            hide_summary=os.getenv('BLOCKMAP_HIDE_SUMMARY', 'false').lower() == 'true',
            hide_orphans=os.getenv('BLOCKMAP_HIDE_ORPHANS', 'true').lower() == 'true',
            highlight_color=os.getenv('BLOCKMAP_HIGHLIGHT_COLOR', DEFAULT_HIGHLIGHT_COLOR),
            wrap_width=int(os.getenv('BLOCKMAP_WRAP_WIDTH', str(DEFAULT_WRAP_WIDTH))),

            # Logging
            log_file=os.getenv('BLOCKMAP_LOG_FILE', DEFAULT_LOG_FILE),
        )

    def validate(self) -> bool:
        '''
        Validate the settings.

        Output:
            True if all settings are valid.

        Raises:
            ValueError: If any setting is invalid.
        '''
        errors = []

        if self.wrap_width <= 0:
            errors.append('BLOCKMAP_WRAP_WIDTH must be a positive integer')
        if not self.highlight_color.strip():
            errors.append('BLOCKMAP_HIGHLIGHT_COLOR must not be empty')
        if not self.input_file:
            errors.append('BLOCKMAP_INPUT_FILE must not be empty')
        if not self.output_file:
            errors.append('BLOCKMAP_OUTPUT_FILE must not be empty')
        if not self.log_file:
            errors.append('BLOCKMAP_LOG_FILE must not be empty')

        if errors:
            for error in errors:
                log.error(f'Configuration error: {error}')
            raise ValueError(f'Configuration errors: {", ".join(errors)}')

        return True

    def to_dict(self) -> Dict[str, Any]:
        '''Convert settings to dictionary.'''
        return {
            'input_file': self.input_file,
            'output_file': self.output_file,
            'supplemental_file': self.supplemental_file,
            'hide_summary': self.hide_summary,
            'hide_orphans': self.hide_orphans,
            'highlight_color': self.highlight_color,
            'wrap_width': self.wrap_width,
            'log_file': self.log_file,
        }


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    '''
    Get the global settings instance.

    Output:
        Settings instance (creates from environment if not exists).
    '''
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    '''Drop the cached settings so the next get_settings() re-reads the environment.'''
    global _settings
    _settings = None
