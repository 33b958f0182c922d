##########################################################################################
#
# Module: config
#
# Description: Configuration management for the Jira blocker map utilities.
#
# Author: Cornelis Networks
#
##########################################################################################

from config.settings import Settings, get_settings

__all__ = [
    'Settings',
    'get_settings',
]
