"""Exceptions raised by the SRU server core.

``SRUException`` is the protocol-level exception: it aborts normal control
flow and is converted into exactly one Diagnostic at the result boundary.
Everything else signals a configuration or programming error and is not part
of the client facing diagnostic taxonomy.
"""

from sruserver.diagnostic import Diagnostic, diagnosticUri, defaultMessages


class SRUServerException(Exception):

    def __init__(self, text="None"):
        Exception.__init__(self, text)
        self.reason = text

    def __str__(self):
        return "{0.__class__.__name__}: {0.reason}".format(self)

    def __repr__(self):
        return "{0.__class__.__name__}: {0.reason}".format(self)


class ConfigFileException(SRUServerException):
    pass


class ObjectAlreadyExistsException(ConfigFileException):
    pass


class SRUException(SRUServerException):
    """An exceptional condition that maps to a single SRU diagnostic.

    Carries the identifying diagnostic URI (required, non-empty, trimmed),
    optional details, optional human readable message and optionally the
    exception that caused it.
    """

    def __init__(self, uri, details=None, message=None, cause=None):
        if uri is None:
            raise TypeError("uri must not be None")
        uri = uri.strip()
        if not uri:
            raise ValueError("uri must not be empty")
        SRUServerException.__init__(self, message or uri)
        self.uri = uri
        self.details = details
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def fromCode(cls, code, details=None, message=None, cause=None):
        """Create from a standard SRU diagnostic number."""
        if message is None:
            message = defaultMessages.get(code)
        return cls(diagnosticUri(code), details, message, cause)

    def __str__(self):
        if self.details:
            return "%s [%s]: %s" % (self.uri, self.message, self.details)
        return "%s [%s]" % (self.uri, self.message)

    def toDiagnostic(self):
        return Diagnostic(self.uri, self.details, self.message)
