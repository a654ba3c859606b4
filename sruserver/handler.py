"""SRU ProtocolHandler.

Drives one request/response cycle: resolve operation and version, validate
the request, hand it to a SearchEngine and render the result (or the
diagnostics) as an lxml response tree, using the namespaces of the SRU
version in effect.
"""

import re

from lxml import etree
from lxml.builder import ElementMaker

from sruserver import diagnostic as diag
from sruserver import protocol
from sruserver.cqlParser import PrefixableObject
from sruserver.diagnostic import DiagnosticList
from sruserver.exceptions import SRUException
from sruserver.internal import sruserverVersion, PARAM_OPERATION, \
                               PARAM_VERSION, PARAM_EXTENSION_PREFIX, \
                               PARAM_QUERY, PARAM_QUERY_TYPE
from sruserver.namespaces import getNamespaces
from sruserver.queryFactory import QueryParserRegistry
from sruserver.request import RequestBuilder, parameterSets

DIAGNOSTIC_SCHEMA = "info:srw/schema/1/diagnostics-v1.1"
EXPLAIN_SCHEMA = "http://explain.z3950.org/dtd/2.0/"

# Parameters that may be echoed back, all others are unsupported
echoedParameters = set([PARAM_QUERY, PARAM_QUERY_TYPE] +
                       [info.field for infos in parameterSets.values()
                        for info in infos] +
                       [name for infos in parameterSets.values()
                        for info in infos
                        for name in info.names.values() if name])

# Characters not allowed in XML 1.0 documents
_nonXmlRe = re.compile('[^\t\n\r\x20-\ud7ff\ue000-\ufffd'
                       '\U00010000-\U0010ffff]')


def xmlSafe(value):
    """Return value with characters that cannot appear in XML replaced."""
    if value is None:
        return None
    return _nonXmlRe.sub('\ufffd', value)


class ResponseFactory(object):
    """ElementMakers for the response, diagnostic and explain namespaces of
    one SRU version.
    """

    def __init__(self, version, operation):
        self.version = version
        self.namespaces = ns = getNamespaces(version)
        if operation == protocol.SCAN:
            self.elemFac = ElementMaker(namespace=ns.scanNS,
                                        nsmap=ns.scanNsmap)
        else:
            self.elemFac = ElementMaker(namespace=ns.responseNS,
                                        nsmap=ns.responseNsmap)
        self.diagElemFac = ElementMaker(namespace=ns.diagnosticNS,
                                        nsmap={ns.diagnosticPrefix:
                                               ns.diagnosticNS})
        self.explainElemFac = ElementMaker(namespace=ns.explainNS,
                                           nsmap={ns.explainPrefix:
                                                  ns.explainNS})

    def response(self, operation):
        name = "%sResponse" % operation.parameterValue
        return getattr(self.elemFac, name)(
            self.elemFac.version(self.version.versionString)
        )

    def diagnosticToXml(self, d):
        # details and message may quote client input
        x = self.diagElemFac.diagnostic(self.diagElemFac.uri(xmlSafe(d.uri)))
        if d.details:
            x.append(self.diagElemFac.details(xmlSafe(d.details)))
        if d.message:
            x.append(self.diagElemFac.message(xmlSafe(d.message)))
        return x

    def diagnostics(self, diagnostics):
        x = self.elemFac.diagnostics()
        for d in diagnostics:
            x.append(self.diagnosticToXml(d))
        return x


class SRUProtocolHandler(object):
    """SRU Protocol Handler.

    config: an SRUServerConfig
    searchEngine: the SearchEngine doing the actual work
    registry: the QueryParserRegistry to use, by default one with the
              standard query parsers. It is frozen by the handler.
    """

    def __init__(self, config, searchEngine, registry=None, logger=None):
        if config is None or searchEngine is None:
            raise TypeError("config and searchEngine must not be None")
        self.config = config
        self.searchEngine = searchEngine
        if registry is None:
            registry = QueryParserRegistry(logger=logger or config.logger)
        registry.freeze()
        self.registry = registry
        self.logger = logger or config.logger

    def _resolve(self, parameters):
        operation, version = protocol.resolve(
            parameters.get(PARAM_OPERATION),
            parameters.get(PARAM_VERSION),
            self.config.defaultVersion,
            parameters
        )
        if not version.isIn(self.config.minVersion, self.config.maxVersion):
            raise SRUException.fromCode(
                diag.UNSUPPORTED_VERSION,
                details=self.config.maxVersion.versionString,
                message='Version "%s" is not supported by this endpoint' %
                        version
            )
        return operation, version

    def process(self, parameters, protocolScheme="http://"):
        """Process one request, return the response as an lxml element."""
        return self._process(parameters, protocolScheme)[0]

    def _process(self, parameters, protocolScheme):
        diagnostics = DiagnosticList()
        operation = protocol.EXPLAIN
        version = self.config.defaultVersion
        try:
            operation, version = self._resolve(parameters)
        except SRUException as e:
            self.logger.log_debug("cannot resolve request: %s", e)
            diagnostics.append(e.toDiagnostic())
            return self.errorResponse(operation, version, diagnostics), None
        self.logger.log_info("%s request, version %s",
                             operation.parameterValue, version)
        builder = RequestBuilder(self.config, self.registry, parameters,
                                 operation, version, protocolScheme,
                                 diagnostics, self.logger)
        request = builder.build()
        if request is None:
            # Only the fatal diagnostic(s), not what was noticed before
            return self.errorResponse(operation, version,
                                      builder.fatalDiagnostics), None
        fn = getattr(self, 'process_%s' % operation.parameterValue)
        try:
            response = fn(request, ResponseFactory(version, operation))
        except SRUException as e:
            self.logger.log_debug("fatal diagnostic: %s", e)
            fatal = e.toDiagnostic()
            diagnostics.append(fatal)
            response = self.errorResponse(operation, version, [fatal])
        return response, request

    def handle(self, parameters, protocolScheme="http://"):
        """Process one request, return the serialized response (bytes)."""
        response, request = self._process(parameters, protocolScheme)
        return self.serialize(response, request)

    def serialize(self, response, request=None):
        indent = self.config.effectiveIndentResponse(request)
        tree = etree.ElementTree(response)
        if request is not None and request.stylesheet:
            href = xmlSafe(request.stylesheet).replace('"', '%22')
            if '?>' in href:
                self.logger.log_debug("cannot reference stylesheet %r", href)
            else:
                pi = etree.ProcessingInstruction(
                    'xml-stylesheet',
                    'type="text/xsl" href="%s"' % href
                )
                response.addprevious(pi)
        return etree.tostring(tree, pretty_print=indent > 0,
                              xml_declaration=True, encoding="utf-8")

    def errorResponse(self, operation, version, diagnostics):
        fac = ResponseFactory(version, operation)
        response = fac.response(operation)
        if operation == protocol.SEARCH_RETRIEVE:
            response.append(fac.elemFac.numberOfRecords("0"))
        response.append(fac.diagnostics(diagnostics))
        return response

    def _finish(self, request, fac, response, result):
        # Echo, extra response data and diagnostics, in schema order
        if self.config.echoRequests and \
                request.operation != protocol.EXPLAIN:
            response.append(self.echoedRequest(request, fac))
        if request.diagnostics:
            response.append(fac.diagnostics(request.diagnostics))
        if result is not None and result.hasExtraResponseData():
            extra = fac.elemFac.extraResponseData()
            result.writeExtraResponseData(extra)
            response.append(extra)
        return response

    def echoedRequest(self, request, fac):
        oname = request.operation.parameterValue
        name = "echoed%s%sRequest" % (oname[0].upper(), oname[1:])
        echo = getattr(fac.elemFac, name)(
            fac.elemFac.version(request.version.versionString)
        )
        extras = []
        for name in request.parameterNames:
            if name in (PARAM_OPERATION, PARAM_VERSION):
                continue
            value = request.getParameter(name)
            if name.startswith(PARAM_EXTENSION_PREFIX):
                # accumulate and include at end
                extras.append((name, value))
                continue
            if name not in echoedParameters:
                continue
            echo.append(getattr(fac.elemFac, name)(xmlSafe(value)))
            if request.query is not None and name == PARAM_QUERY and \
                    isinstance(request.query.parsedQuery, PrefixableObject):
                xq = fac.elemFac.xQuery()
                xcql = request.query.parsedQuery.toXCQL(
                    namespace=fac.namespaces.xcqlNS)
                xq.append(etree.XML(xmlSafe(xcql)))
                echo.append(xq)
        if extras:
            extra = fac.elemFac.extraRequestData()
            for name, value in extras:
                try:
                    e = etree.SubElement(extra, name)
                except ValueError:
                    self.logger.log_debug("cannot echo %r", name)
                    continue
                e.text = xmlSafe(value)
            echo.append(extra)
        echo.append(fac.elemFac.baseUrl(self.config.baseUrl))
        return echo

    def record(self, fac, request, schema, data, position=None,
               identifier=None):
        """Build a record element, data being an lxml element."""
        E = fac.elemFac
        rec = E.record(E.recordSchema(schema))
        escaping = request.recordXmlEscaping
        if request.version >= protocol.VERSION_2_0:
            rec.append(E.recordXMLEscaping(escaping))
        else:
            rec.append(E.recordPacking(escaping))
        if escaping == protocol.RECORD_XML_ESCAPING_STRING:
            rec.append(E.recordData(etree.tostring(data, encoding='unicode')))
        else:
            rec.append(E.recordData(data))
        if identifier:
            rec.append(E.recordIdentifier(str(identifier)))
        if position is not None:
            rec.append(E.recordPosition(str(position)))
        return rec

    def explainRecord(self, fac):
        """Build a ZeeRex explain record from the server configuration."""
        Z = fac.explainElemFac
        config = self.config
        serverInfo = Z.serverInfo(
            Z.host(config.get_setting('host')),
            Z.port(str(config.get_setting('port'))),
            Z.database(config.get_setting('database')),
            protocol="SRU",
            version=fac.version.versionString,
            transport=config.get_setting('transport')
        )
        databaseInfo = Z.databaseInfo()
        for tag in ('title', 'description', 'author'):
            for s in getattr(config.databaseInfo, tag):
                e = getattr(Z, tag)(s.value)
                if s.lang:
                    e.set('lang', s.lang)
                if s.primary:
                    e.set('primary', 'true')
                databaseInfo.append(e)
        databaseInfo.append(Z.implementation(
            Z.title("sruserver"),
            identifier="sruserver",
            version="%d.%d.%d" % sruserverVersion
        ))
        explain = Z.explain(serverInfo, databaseInfo)
        if config.schemaInfo:
            schemaInfo = Z.schemaInfo()
            for schema in config.schemaInfo:
                s = Z.schema(identifier=schema.identifier, name=schema.name,
                             sort=str(schema.sort).lower(),
                             retrieve=str(schema.retrieve).lower())
                if schema.location:
                    s.set('location', schema.location)
                for t in schema.title:
                    s.append(Z.title(t.value))
                schemaInfo.append(s)
            explain.append(schemaInfo)
        explain.append(Z.configInfo(
            Z.default(str(config.numberOfRecords), type="numberOfRecords"),
            Z.setting(str(config.maximumRecords), type="maximumRecords")
        ))
        return explain

    def process_explain(self, request, fac):
        result = self.searchEngine.explain(self.config, request,
                                           request.diagnostics)
        try:
            response = fac.response(protocol.EXPLAIN)
            response.append(self.record(fac, request, EXPLAIN_SCHEMA,
                                        self.explainRecord(fac)))
            return self._finish(request, fac, response, result)
        finally:
            if result is not None:
                result.close()

    def process_searchRetrieve(self, request, fac):
        config = self.config
        result = self.searchEngine.search(config, request,
                                          request.diagnostics)
        if result is None:
            raise SRUException.fromCode(
                diag.GENERAL_SYSTEM_ERROR,
                message="Search engine returned no result"
            )
        with result:
            E = fac.elemFac
            response = fac.response(protocol.SEARCH_RETRIEVE)
            total = result.getTotalRecordCount()
            response.append(E.numberOfRecords(str(total)))
            if result.getResultSetId():
                response.append(E.resultSetId(result.getResultSetId()))
                response.append(E.resultSetIdleTime(
                    str(result.getResultSetIdleTime())))
            count = result.getRecordCount()
            if count > 0:
                maximum = config.effectiveMaximumRecords(request)
                if maximum >= 0 and count > maximum:
                    count = maximum
                records = E.records()
                position = request.startRecord
                for rs in result.records():
                    if len(records) >= count:
                        break
                    surrogate = rs.getSurrogateDiagnostic()
                    if surrogate is not None:
                        rec = self.record(fac, request, DIAGNOSTIC_SCHEMA,
                                          fac.diagnosticToXml(surrogate),
                                          position)
                    else:
                        data = E.recordData()
                        rs.writeRecord(data)
                        if not len(data):
                            raise SRUException.fromCode(
                                diag.GENERAL_SYSTEM_ERROR,
                                details=rs.getRecordIdentifier(),
                                message="Search engine wrote no record at "
                                        "position %d" % position
                            )
                        rec = self.record(fac, request,
                                          rs.getRecordSchemaIdentifier(),
                                          data[0], position,
                                          rs.getRecordIdentifier())
                    if rs.hasExtraRecordData():
                        extra = E.extraRecordData()
                        rs.writeExtraRecordData(extra)
                        rec.append(extra)
                    records.append(rec)
                    position += 1
                response.append(records)
                if total < 0 or position <= total:
                    response.append(E.nextRecordPosition(str(position)))
            precision = result.getTotalRecordCountPrecision()
            if precision and request.version >= protocol.VERSION_2_0:
                response.append(E.resultCountPrecision(precision))
            return self._finish(request, fac, response, result)

    def process_scan(self, request, fac):
        config = self.config
        result = self.searchEngine.scan(config, request, request.diagnostics)
        if result is None:
            raise SRUException.fromCode(
                diag.UNSUPPORTED_OPERATION,
                details=protocol.SCAN.parameterValue,
                message="Scan operation is not supported by this endpoint"
            )
        with result:
            E = fac.elemFac
            response = fac.response(protocol.SCAN)
            maximum = config.effectiveMaximumTerms(request)
            terms = E.terms()
            for rs in result.terms():
                if maximum >= 0 and len(terms) >= maximum:
                    break
                t = E.term(E.value(rs.getValue()))
                if rs.getNumberOfRecords() >= 0:
                    t.append(E.numberOfRecords(str(rs.getNumberOfRecords())))
                if rs.getDisplayTerm():
                    t.append(E.displayTerm(rs.getDisplayTerm()))
                if rs.getWhereInList():
                    t.append(E.whereInList(rs.getWhereInList()))
                if rs.hasExtraTermData():
                    extra = E.extraTermData()
                    rs.writeExtraTermData(extra)
                    t.append(extra)
                terms.append(t)
            if len(terms):
                response.append(terms)
            return self._finish(request, fac, response, result)
