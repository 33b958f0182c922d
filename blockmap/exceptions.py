##########################################################################################
#
# Module: blockmap/exceptions.py
#
# Description: Exceptions raised while building and rendering blocker maps.
#
# Author: Cornelis Networks
#
##########################################################################################


class Error(Exception):
    '''Base exception for blockmap errors.'''
    def __init__(self, message):
        self.message = message
        super().__init__(self.message)


class HeaderError(Error):
    '''
    Exception raised when a CSV header row cannot be resolved.
    '''
    def __init__(self, message):
        super().__init__(f'Header error: {message}')


class InputFileError(Error):
    '''
    Exception raised when an input CSV file cannot be opened.
    '''
    def __init__(self, message):
        super().__init__(f'Input file error: {message}')


class OutputFileError(Error):
    '''Raised when the output file cannot be created or written.'''
    def __init__(self, message):
        super().__init__(f'Output file error: {message}')


class RenderError(Error):
    '''
    Exception raised when the PlantUML diagram cannot be rendered.
    '''
    def __init__(self, message):
        super().__init__(f'Render error: {message}')
