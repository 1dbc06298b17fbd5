"""Library-level exceptions.

Failures while reading or running an extension file are never wrapped in
these: callers see the raw FileNotFoundError, SyntaxError or whatever the
extension itself raised.
"""


class JabroniError(Exception):
    """Base class for jabroni failures."""


class ExtensionDirectoryError(JabroniError):
    """The extension directory of a class cannot be determined."""
