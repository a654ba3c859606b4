"""Abstract Base Classes for sruserver Objects.

Defines the base classes of object in the sruserver object model, their API
methods and documentation.

Functional implementations are contained in the module for each class e.g.
QueryParser in sruserver.queryFactory etc.
"""

from sruserver.configParser import SRUObject


class Logger(SRUObject):
    """A Logger logs messages for system events."""

    def log(self, msg, *args, **kw):
        """Log a message at the default log level."""
        raise NotImplementedError

    def log_lvl(self, lvl, msg, *args, **kw):
        """Log a message at the specified log level."""
        raise NotImplementedError


class QueryParser(object):
    """A QueryParser turns the raw query parameters of a request into a Query.

    Each QueryParser supports exactly one query type (e.g. ``cql``) and is
    described by a QueryParserDescriptor, giving the names of the request
    parameters it consumes and the SRU versions it may be used with.
    QueryParsers are registered with a QueryParserRegistry, which is
    responsible for checking the version and for extracting the declared
    parameters before handing them on.

    A QueryParser must not raise for malformed client input. Problems are
    reported by appending to the supplied DiagnosticList and returning None.
    """

    descriptor = None

    @property
    def queryType(self):
        return self.descriptor.queryType

    def parseQuery(self, version, parameters, diagnostics):
        """Parse the query parameters, return a Query or None.

        version: the SRUVersion of the request
        parameters: dictionary of the declared query parameters, each
                    guaranteed to be present and non-empty
        diagnostics: the DiagnosticList for the request
        """
        raise NotImplementedError


class SearchEngine(SRUObject):
    """A SearchEngine performs the actual work for SRU operations.

    The protocol handler validates a request and then hands it to the
    SearchEngine together with the server configuration and the
    DiagnosticList for the request. Implementations may raise SRUException to
    signal a fatal condition, or append non-fatal (or surrogate) diagnostics
    and carry on.
    """

    def explain(self, config, request, diagnostics):
        """Handle an explain operation.

        Return an ExplainResult, or None to let the protocol handler
        generate a default explain response from the server configuration.
        """
        return None

    def search(self, config, request, diagnostics):
        """Handle a searchRetrieve operation, return a SearchResultSet."""
        raise NotImplementedError

    def scan(self, config, request, diagnostics):
        """Handle a scan operation.

        Return a ScanResultSet, or None if scan is not supported.
        """
        return None
