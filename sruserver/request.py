"""The validated SRU request model and the builder that produces it.

A RequestBuilder takes the raw parameters of one request (a case-sensitive
mapping of parameter name to string value) together with the already
resolved operation and version, validates every parameter that applies to
that operation in that version, and produces an immutable SRURequest.

Problems are recorded in the DiagnosticList of the request cycle. Problems
that leave the request usable (e.g. a parameter that is not supported in the
requested version) are appended and the request is still built. Anything
else is fatal: exactly one fatal diagnostic ends up in the list and no
request is built.
"""

import re

from sruserver import diagnostic as diag
from sruserver import protocol
from sruserver.diagnostic import DiagnosticList
from sruserver.exceptions import SRUException
from sruserver.internal import PARAM_OPERATION, PARAM_VERSION, \
                               PARAM_STYLESHEET, PARAM_RENDER_BY, \
                               PARAM_HTTP_ACCEPT, PARAM_RESPONSE_TYPE, \
                               PARAM_QUERY, PARAM_QUERY_TYPE, \
                               PARAM_START_RECORD, PARAM_MAXIMUM_RECORDS, \
                               PARAM_RECORD_XML_ESCAPING, \
                               PARAM_RECORD_PACKING, \
                               PARAM_RECORD_SCHEMA, PARAM_RECORD_XPATH, \
                               PARAM_RESULT_SET_TTL, PARAM_SORT_KEYS, \
                               PARAM_SCAN_CLAUSE, PARAM_RESPONSE_POSITION, \
                               PARAM_MAXIMUM_TERMS, PARAM_EXTENSION_PREFIX, \
                               QUERY_TYPE_CQL, DEFAULT_START_RECORD, \
                               DEFAULT_RESPONSE_POSITION, UNSPECIFIED
from sruserver.logger import defaultLogger


# RequestBuilder states
COLLECTING = "COLLECTING"
VALIDATED = "VALIDATED"
FAILED = "FAILED"

_queryTypeRe = re.compile(r'[A-Za-z0-9][A-Za-z0-9_-]*\Z')


class SRURequest(object):
    """An immutable, validated SRU request.

    Values that the client did not supply hold their defaults: startRecord
    and responsePosition 1, maximumRecords, maximumTerms and resultSetTTL -1
    (server decides), everything else None. recordXmlEscaping and
    recordPacking fall back to the server's configured defaults.
    """

    __slots__ = ('operation', 'version', 'recordXmlEscaping',
                 'recordPacking', 'query', 'scanClause', 'startRecord',
                 'maximumRecords', 'responsePosition', 'maximumTerms',
                 'recordSchema', 'recordSchemaIdentifier', 'recordXPath',
                 'sortKeys', 'resultSetTTL', 'stylesheet', 'renderBy',
                 'responseType', 'httpAccept', 'protocolScheme',
                 'diagnostics', '_extraRequestData', '_parameters')

    def __init__(self, operation, version, diagnostics, parameters=None,
                 protocolScheme="http://", **fields):
        sa = object.__setattr__
        sa(self, 'operation', operation)
        sa(self, 'version', version)
        sa(self, 'diagnostics', diagnostics)
        sa(self, 'protocolScheme', protocolScheme)
        parameters = parameters or {}
        sa(self, '_parameters', tuple(sorted(parameters.items())))
        sa(self, '_extraRequestData',
           tuple([(k, v) for (k, v) in sorted(parameters.items())
                  if k.startswith(PARAM_EXTENSION_PREFIX)]))
        defaults = {
            'recordXmlEscaping': protocol.RECORD_XML_ESCAPING_XML,
            'recordPacking': protocol.RECORD_PACKING_PACKED,
            'startRecord': DEFAULT_START_RECORD,
            'maximumRecords': UNSPECIFIED,
            'responsePosition': DEFAULT_RESPONSE_POSITION,
            'maximumTerms': UNSPECIFIED,
            'resultSetTTL': UNSPECIFIED
        }
        for name in self.__slots__:
            if name.startswith('_') or name in ('operation', 'version',
                                                 'diagnostics',
                                                 'protocolScheme'):
                continue
            sa(self, name, fields.pop(name, defaults.get(name)))
        if fields:
            raise TypeError("Unknown request fields: %s" %
                            ', '.join(sorted(fields)))

    def __setattr__(self, name, value):
        raise AttributeError("SRURequest is immutable")

    def __delattr__(self, name):
        raise AttributeError("SRURequest is immutable")

    def __repr__(self):
        return "<SRURequest %s %s>" % (self.operation.parameterValue,
                                       self.version)

    def isVersion(self, minVersion, maxVersion=None):
        """Is the request version equal to minVersion, or within the range
        minVersion..maxVersion if both are given?
        """
        if maxVersion is None:
            if minVersion is None:
                raise TypeError("version must not be None")
            return self.version == minVersion
        return self.version.isIn(minVersion, maxVersion)

    @property
    def queryType(self):
        if self.query is not None:
            return self.query.queryType
        return None

    def isQueryType(self, queryType):
        return queryType is not None and self.queryType == queryType

    @property
    def extraRequestDataNames(self):
        return [k for (k, v) in self._extraRequestData]

    def getExtraRequestData(self, name):
        """Return the value of the extra request parameter name, or None.

        name must start with 'x-'.
        """
        if name is None:
            raise TypeError("name must not be None")
        if not name.startswith(PARAM_EXTENSION_PREFIX):
            raise ValueError('name must start with "%s"' %
                             PARAM_EXTENSION_PREFIX)
        return dict(self._extraRequestData).get(name)

    def getParameter(self, name):
        """Return the raw value of parameter name as sent, or None."""
        return dict(self._parameters).get(name)

    @property
    def parameterNames(self):
        return [k for (k, v) in self._parameters]


class ParameterInfo(object):
    """A request parameter an operation accepts, and in which versions."""

    def __init__(self, field, mandatory=False,
                 minVersion=protocol.VERSION_1_1,
                 maxVersion=protocol.VERSION_2_0, names=None):
        self.field = field
        self.mandatory = mandatory
        self.minVersion = minVersion
        self.maxVersion = maxVersion
        # Parameter name per version, if it differs from field
        self.names = names or {}

    def __repr__(self):
        return "<ParameterInfo %s>" % self.field

    def getName(self, version):
        return self.names.get(version, self.field)

    def isForVersion(self, version):
        return version.isIn(self.minVersion, self.maxVersion)


# 'recordPacking' was renamed to 'recordXMLEscaping' in SRU 2.0, which
# re-uses 'recordPacking' for packed / unpacked
_xmlEscapingNames = {protocol.VERSION_1_1: PARAM_RECORD_PACKING,
                     protocol.VERSION_1_2: PARAM_RECORD_PACKING,
                     protocol.VERSION_2_0: PARAM_RECORD_XML_ESCAPING}

_packingNames = {protocol.VERSION_1_1: None,
                 protocol.VERSION_1_2: None}

parameterSets = {
    protocol.EXPLAIN: [
        ParameterInfo(PARAM_STYLESHEET),
        ParameterInfo('recordXmlEscaping', names=_xmlEscapingNames),
        ParameterInfo(PARAM_RECORD_PACKING, names=_packingNames)
    ],
    protocol.SEARCH_RETRIEVE: [
        ParameterInfo(PARAM_STYLESHEET),
        ParameterInfo(PARAM_HTTP_ACCEPT, minVersion=protocol.VERSION_2_0),
        ParameterInfo(PARAM_RENDER_BY, minVersion=protocol.VERSION_2_0),
        ParameterInfo(PARAM_RESPONSE_TYPE, minVersion=protocol.VERSION_2_0),
        ParameterInfo(PARAM_START_RECORD),
        ParameterInfo(PARAM_MAXIMUM_RECORDS),
        ParameterInfo('recordXmlEscaping', names=_xmlEscapingNames),
        ParameterInfo(PARAM_RECORD_PACKING, names=_packingNames),
        ParameterInfo(PARAM_RECORD_SCHEMA),
        ParameterInfo(PARAM_RESULT_SET_TTL),
        ParameterInfo(PARAM_RECORD_XPATH, maxVersion=protocol.VERSION_1_1),
        ParameterInfo(PARAM_SORT_KEYS, maxVersion=protocol.VERSION_1_1)
    ],
    protocol.SCAN: [
        ParameterInfo(PARAM_STYLESHEET),
        ParameterInfo(PARAM_HTTP_ACCEPT, minVersion=protocol.VERSION_2_0),
        ParameterInfo(PARAM_SCAN_CLAUSE, mandatory=True),
        ParameterInfo(PARAM_RESPONSE_POSITION),
        ParameterInfo(PARAM_MAXIMUM_TERMS)
    ]
}

# Smallest acceptable value of numeric parameters
_minimumValues = {
    PARAM_START_RECORD: 1,
    PARAM_MAXIMUM_RECORDS: 0,
    PARAM_RESULT_SET_TTL: 0,
    PARAM_RESPONSE_POSITION: 1,
    PARAM_MAXIMUM_TERMS: 0
}


class RequestBuilder(object):
    """Validate the raw parameters of one request and build an SRURequest.

    The builder starts out COLLECTING. ``build()`` may be called once; it
    moves the builder to VALIDATED and returns the SRURequest, or to FAILED
    and returns None. Either way, diagnostics holds everything that was
    found wrong with the request.
    """

    def __init__(self, config, registry, parameters, operation, version,
                 protocolScheme="http://", diagnostics=None, logger=None):
        if parameters is None:
            raise TypeError("parameters must not be None")
        if operation is None or version is None:
            raise TypeError("operation and version must not be None")
        self.config = config
        self.registry = registry
        self.parameters = dict(parameters)
        self.operation = operation
        self.version = version
        self.protocolScheme = protocolScheme
        if diagnostics is None:
            diagnostics = DiagnosticList()
        self.diagnostics = diagnostics
        self.logger = logger or defaultLogger
        self.state = COLLECTING
        self.fields = {}
        # The diagnostics that made the request fail
        self.fatalDiagnostics = ()
        # Names of parameters not (yet) consumed by validation
        self._unconsumed = set([n for n in self.parameters
                                if n not in (PARAM_OPERATION, PARAM_VERSION)])

    def _getParameter(self, name):
        # Empty values are treated as though the parameter were absent
        self._unconsumed.discard(name)
        value = self.parameters.get(name)
        if value is None:
            return None
        value = value.strip()
        if not value:
            return None
        return value

    def _unsupportedParameter(self, name, message):
        self.diagnostics.addDiagnostic(diag.UNSUPPORTED_PARAMETER,
                                       details=name, message=message)

    def _parseNumber(self, name, value):
        minimum = _minimumValues[name]
        try:
            number = int(value)
        except ValueError:
            number = None
        if number is None or number < minimum:
            raise SRUException.fromCode(
                diag.UNSUPPORTED_PARAMETER_VALUE,
                details=name,
                message='Value "%s" for parameter "%s" is not supported; it '
                        'must be an integer of at least %d.' %
                        (value, name, minimum)
            )
        return number

    def _parseChoice(self, name, value, choices,
                     code=diag.UNSUPPORTED_PARAMETER_VALUE):
        if value not in choices:
            raise SRUException.fromCode(
                code,
                details=name,
                message='Value "%s" for parameter "%s" is not supported.' %
                        (value, name)
            )
        return value

    def _handleRecordSchema(self, value):
        schema = self.config.findSchemaInfo(value)
        if schema is None:
            # Must be non-surrogate (fatal)
            raise SRUException.fromCode(
                diag.UNKNOWN_SCHEMA_FOR_RETRIEVAL,
                details=value,
                message='Record schema "%s" is not supported for '
                        'retrieval.' % value
            )
        self.fields['recordSchema'] = value
        self.fields['recordSchemaIdentifier'] = schema.identifier

    def _handleParameter(self, info, name, value):
        field = info.field
        if field == 'recordXmlEscaping':
            self.fields[field] = self._parseChoice(
                name, value, protocol.recordXmlEscapings,
                diag.UNSUPPORTED_RECORD_PACKING)
        elif field == PARAM_RECORD_PACKING:
            self.fields['recordPacking'] = self._parseChoice(
                name, value, protocol.recordPackings)
        elif field == PARAM_RENDER_BY:
            self.fields['renderBy'] = self._parseChoice(
                name, value, protocol.renderBys)
        elif field in _minimumValues:
            self.fields[field] = self._parseNumber(name, value)
        elif field == PARAM_RECORD_SCHEMA:
            self._handleRecordSchema(value)
        elif field == PARAM_SCAN_CLAUSE:
            self.fields['scanClause'] = self._parseScanClause(value)
        else:
            self.fields[field] = value

    def _parseScanClause(self, value):
        self.logger.log_debug("parsing scan clause %r", value)
        start = len(self.diagnostics)
        query = self.registry.parse(QUERY_TYPE_CQL, self.version,
                                    {PARAM_QUERY: value}, self.diagnostics)
        if query is None:
            raise _Failed(start)
        return query

    def _determineQueryType(self):
        if self.version < protocol.VERSION_2_0:
            # SRU 1.1 and 1.2 only support CQL
            return QUERY_TYPE_CQL
        value = self._getParameter(PARAM_QUERY_TYPE)
        if value is None:
            return QUERY_TYPE_CQL
        if not _queryTypeRe.match(value):
            raise SRUException.fromCode(
                diag.UNSUPPORTED_PARAMETER_VALUE,
                details=PARAM_QUERY_TYPE,
                message='Value "%s" for parameter "queryType" contains '
                        'illegal characters.' % value
            )
        return value

    def _handleQuery(self):
        queryType = self._determineQueryType()
        descriptor = self.registry.getDescriptor(queryType)
        if descriptor is not None:
            for name in descriptor.queryParameterNames:
                self._unconsumed.discard(name)
        self.logger.log_debug("parsing query of query type '%s'", queryType)
        start = len(self.diagnostics)
        query = self.registry.parse(queryType, self.version, self.parameters,
                                    self.diagnostics)
        if query is None:
            raise _Failed(start)
        self.fields['query'] = query

    def _collect(self):
        for info in parameterSets[self.operation]:
            name = info.getName(self.version)
            if name is None:
                # No such parameter in this version
                continue
            value = self._getParameter(name)
            if not info.isForVersion(self.version):
                if value is not None:
                    self._unsupportedParameter(
                        name,
                        'Version %s does not support parameter "%s".' %
                        (self.version, name)
                    )
                continue
            if value is None:
                if info.mandatory:
                    raise SRUException.fromCode(
                        diag.MANDATORY_PARAMETER_NOT_SUPPLIED,
                        details=name,
                        message='Mandatory parameter "%s" was not '
                                'supplied.' % name
                    )
                continue
            self._handleParameter(info, name, value)
        if self.operation == protocol.SEARCH_RETRIEVE:
            self._handleQuery()
        for name in sorted(self._unconsumed):
            # Skip extra request data (aka extensions)
            if not name.startswith(PARAM_EXTENSION_PREFIX):
                self._unsupportedParameter(
                    name,
                    'Parameter "%s" is not supported for this operation.' %
                    name
                )

    def build(self):
        """Validate the parameters, return an SRURequest or None."""
        if self.state != COLLECTING:
            raise RuntimeError("build() has already been called (state %s)" %
                               self.state)
        try:
            self._collect()
        except SRUException as e:
            self.logger.log_debug("request failed: %s", e)
            fatal = e.toDiagnostic()
            self.diagnostics.append(fatal)
            self.fatalDiagnostics = (fatal,)
            self.state = FAILED
            return None
        except _Failed as e:
            self.fatalDiagnostics = self.diagnostics.diagnostics[e.start:]
            self.logger.log_debug("request failed: %d diagnostic(s)",
                                  len(self.fatalDiagnostics))
            self.state = FAILED
            return None
        fields = dict(self.fields)
        fields.setdefault('recordXmlEscaping',
                          self.config.defaultRecordXmlEscaping)
        fields.setdefault('recordPacking', self.config.defaultRecordPacking)
        self.state = VALIDATED
        return SRURequest(self.operation, self.version, self.diagnostics,
                          self.parameters, self.protocolScheme, **fields)


class _Failed(Exception):
    # Fatal diagnostics have already been appended to the DiagnosticList,
    # starting at index start

    def __init__(self, start):
        Exception.__init__(self, start)
        self.start = start
