"""Error taxonomy for the mailsift pipeline.

Fatal errors (AuthError, FetchError, WriteError) propagate to the CLI, which
logs them and exits non-zero. ExtractionError never leaves the extractor: it
is turned into an ``error`` field on the affected record.
"""


class MailsiftError(Exception):
    """Base class for all mailsift errors."""


class AuthError(MailsiftError):
    """Client credentials are malformed or the OAuth exchange was rejected."""


class FetchError(MailsiftError):
    """Listing messages from Gmail failed."""


class ExtractionError(MailsiftError):
    """A single message could not be turned into a record."""


class WriteError(MailsiftError):
    """The output directory or output file could not be written."""


class MappingLoadWarning(Warning):
    """The phone mapping file is missing or unusable; an empty mapping is used."""
