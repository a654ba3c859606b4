"""Query types, query parsers and the query parser registry.

A request's query is interpreted by the QueryParser registered for its query
type. The protocol layer never looks inside a parsed query: ``SRUQuery``
carries the raw string and whatever the parser produced.
"""

import sruserver.cqlParser as cql

from sruserver import diagnostic as diag
from sruserver.baseObjects import QueryParser
from sruserver.exceptions import SRUException, ObjectAlreadyExistsException, \
                                 ConfigFileException
from sruserver.internal import PARAM_QUERY, QUERY_TYPE_CQL, \
                               QUERY_TYPE_SEARCH_TERMS
from sruserver.logger import defaultLogger
from sruserver.protocol import versions, VERSION_1_1, VERSION_2_0


class SRUQuery(object):
    """A parsed query.

    queryType: the query type, e.g. 'cql'
    rawQuery: the query string as received from the client
    parsedQuery: the query parser's representation of the query
    """

    def __init__(self, queryType, rawQuery, parsedQuery):
        self.queryType = queryType
        self.rawQuery = rawQuery
        self.parsedQuery = parsedQuery

    def __repr__(self):
        return "<SRUQuery %s: %r>" % (self.queryType, self.rawQuery)


class QueryParserDescriptor(object):
    """Describes the query type a QueryParser handles."""

    def __init__(self, queryType, queryParameterNames=(PARAM_QUERY,),
                 supportedVersions=versions, queryTypeDefinition=None):
        if not queryType:
            raise ValueError("queryType must not be empty")
        if not queryParameterNames:
            raise ValueError("queryParameterNames must not be empty")
        self._queryType = queryType
        self._queryParameterNames = tuple(queryParameterNames)
        self._supportedVersions = frozenset(supportedVersions)
        self._queryTypeDefinition = queryTypeDefinition

    def __repr__(self):
        return "<QueryParserDescriptor %s>" % self._queryType

    @property
    def queryType(self):
        return self._queryType

    @property
    def queryParameterNames(self):
        return self._queryParameterNames

    @property
    def supportedVersions(self):
        return self._supportedVersions

    @property
    def queryTypeDefinition(self):
        """URI identifying the query type, if any."""
        return self._queryTypeDefinition

    def supportsVersion(self, version):
        if version is None:
            raise TypeError("version must not be None")
        return version in self._supportedVersions


class CQLQueryParser(QueryParser):
    """QueryParser for CQL (query type 'cql').

    The parsed query is the root of a cqlParser query tree. SRU 1.1 requests
    are parsed as CQL 1.1, later versions as CQL 1.2.
    """

    descriptor = QueryParserDescriptor(QUERY_TYPE_CQL)

    def parseQuery(self, version, parameters, diagnostics):
        rawQuery = parameters.get(PARAM_QUERY)
        if rawQuery is None:
            diagnostics.addDiagnostic(diag.GENERAL_SYSTEM_ERROR,
                                      message="no query passed to query "
                                              "parser")
            return None
        if version == VERSION_1_1:
            compat = cql.V1_1
        else:
            compat = cql.V1_2
        try:
            tree = cql.parse(rawQuery, compat)
        except cql.Diagnostic as e:
            diagnostics.addDiagnostic(diag.QUERY_SYNTAX_ERROR,
                                      details=e.details or e.message)
            return None
        except RecursionError:
            diagnostics.addDiagnostic(diag.QUERY_SYNTAX_ERROR,
                                      details="Query nested too deeply")
            return None
        return SRUQuery(QUERY_TYPE_CQL, rawQuery, tree)


class SearchTermsQueryParser(QueryParser):
    """QueryParser for SRU 2.0 search terms (query type 'searchTerms').

    The parsed query is a tuple of the whitespace separated terms.
    """

    descriptor = QueryParserDescriptor(QUERY_TYPE_SEARCH_TERMS,
                                       supportedVersions=(VERSION_2_0,))

    def parseQuery(self, version, parameters, diagnostics):
        rawQuery = parameters.get(PARAM_QUERY)
        if rawQuery is None:
            diagnostics.addDiagnostic(diag.GENERAL_SYSTEM_ERROR,
                                      message="no query passed to query "
                                              "parser")
            return None
        return SRUQuery(QUERY_TYPE_SEARCH_TERMS, rawQuery,
                        tuple(rawQuery.split()))


parserHash = {
    QUERY_TYPE_CQL: CQLQueryParser,
    QUERY_TYPE_SEARCH_TERMS: SearchTermsQueryParser
}


class QueryParserRegistry(object):
    """Registry of QueryParsers, keyed by query type.

    Populated during server start-up, then frozen. After ``freeze()`` the
    registry is read-only and may be shared by concurrent request cycles.
    """

    def __init__(self, registerDefaults=True, logger=None):
        self._parsers = []
        self._frozen = False
        self.logger = logger or defaultLogger
        if registerDefaults:
            self.registerDefaults()

    def __contains__(self, queryType):
        return self._find(queryType) is not None

    def __len__(self):
        return len(self._parsers)

    def _find(self, queryType):
        for descriptor, parser in self._parsers:
            if descriptor.queryType == queryType:
                return descriptor, parser
        return None

    @property
    def frozen(self):
        return self._frozen

    @property
    def queryParsers(self):
        """List of registered QueryParsers, in order of registration."""
        return [parser for descriptor, parser in self._parsers]

    def freeze(self):
        """Mark the end of configuration."""
        self._frozen = True

    def register(self, descriptor, parser):
        """Register parser to handle descriptor's query type."""
        if descriptor is None:
            raise TypeError("descriptor must not be None")
        if parser is None:
            raise TypeError("parser must not be None")
        if self._frozen:
            raise ConfigFileException("Cannot register query parser for "
                                      "queryType '%s', registry is frozen" %
                                      descriptor.queryType)
        if self._find(descriptor.queryType) is not None:
            raise ObjectAlreadyExistsException(
                "query parser for queryType '%s' is already registered" %
                descriptor.queryType
            )
        self._parsers.append((descriptor, parser))
        self.logger.log_debug("Registered query parser for queryType '%s'",
                              descriptor.queryType)
        return parser

    def registerParser(self, parser):
        """Register parser using its own descriptor."""
        return self.register(parser.descriptor, parser)

    def registerDefaults(self):
        """Register the standard parsers for any query types not yet taken."""
        for queryType, parserClass in parserHash.items():
            if self._find(queryType) is None:
                self.registerParser(parserClass())

    def lookup(self, queryType):
        """Return the QueryParser for queryType, or None."""
        if queryType is None:
            raise TypeError("queryType must not be None")
        found = self._find(queryType)
        if found is None:
            return None
        return found[1]

    def getDescriptor(self, queryType):
        found = self._find(queryType)
        if found is None:
            return None
        return found[0]

    def parse(self, queryType, version, rawParameters, diagnostics):
        """Parse the query of a request, return an SRUQuery or None.

        Raise SRUException if there is no parser for queryType, or if the
        parser does not support version. Only the parameters declared by the
        parser's descriptor are passed on; each one that is missing or empty
        is reported to diagnostics and None is returned.
        """
        found = self._find(queryType)
        if found is None:
            raise SRUException.fromCode(
                diag.CANNOT_PROCESS_QUERY_REASON_UNKNOWN,
                details=queryType,
                message='Query type "%s" is not supported' % queryType
            )
        descriptor, parser = found
        if not descriptor.supportsVersion(version):
            raise SRUException.fromCode(
                diag.UNSUPPORTED_PARAMETER_VALUE,
                details=queryType,
                message='Query type "%s" is not supported in SRU version %s' %
                        (queryType, version)
            )
        parameters = {}
        missing = False
        for name in descriptor.queryParameterNames:
            value = rawParameters.get(name)
            if value is None or not value.strip():
                diagnostics.addDiagnostic(
                    diag.MANDATORY_PARAMETER_NOT_SUPPLIED,
                    details=name,
                    message='Mandatory parameter "%s" was missing or empty' %
                            name
                )
                missing = True
            else:
                parameters[name] = value
        if missing:
            return None
        return parser.parseQuery(version, parameters, diagnostics)
