"""SRU server configuration.

Example configuration::

    <config id="sruServer">
      <name>Example SRU endpoint</name>
      <paths>
        <path type="defaultPath">/var/lib/sru</path>
      </paths>
      <options>
        <setting type="host">sru.example.org</setting>
        <setting type="database">books</setting>
        <setting type="defaultVersion">2.0</setting>
        <setting type="numberOfRecords">10</setting>
        <setting type="maximumRecords">50</setting>
      </options>
      <databaseInfo>
        <title lang="en" primary="true">Books</title>
        <description lang="en">All the books</description>
      </databaseInfo>
      <schemaInfo>
        <schema identifier="info:srw/schema/1/dc-v1.1" name="dc"
                sort="false" retrieve="true">
          <title lang="en">Dublin Core</title>
        </schema>
      </schemaInfo>
    </config>
"""

from lxml import etree

from sruserver import protocol
from sruserver.configParser import SRUObject, _tagIn
from sruserver.exceptions import ConfigFileException
from sruserver.internal import UNSPECIFIED, X_UNLIMITED_RESULTSET, \
                               X_UNLIMITED_TERMLIST, X_INDENT_RESPONSE
from sruserver.logger import buildLogger, defaultLogger


def _parseVersion(value):
    version = protocol.parseVersion(value.strip())
    if version is None:
        raise ValueError("Unknown SRU version: %r" % value)
    return version


def _parseBoolean(value):
    return value.strip().lower() in ('true', '1', 'yes')


class LocalizedString(object):
    """A string value with an optional language, e.g. a database title."""

    def __init__(self, value, lang=None, primary=False):
        self.value = value
        self.lang = lang
        self.primary = primary

    def __repr__(self):
        return "<LocalizedString %r (%s)>" % (self.value, self.lang)


def _localizedStrings(elem, tag):
    strings = []
    for e in elem.iterchildren(tag=etree.Element):
        if _tagIn(e, tag):
            strings.append(LocalizedString(
                (e.text or '').strip(),
                e.attrib.get('lang'),
                _parseBoolean(e.attrib.get('primary', 'false'))
            ))
    return strings


class SchemaInfo(object):
    """A record schema the server can deliver records in."""

    def __init__(self, identifier, name, location=None, sort=False,
                 retrieve=True, title=None):
        self.identifier = identifier
        self.name = name
        self.location = location
        self.sort = sort
        self.retrieve = retrieve
        self.title = title or []

    def __repr__(self):
        return "<SchemaInfo %s (%s)>" % (self.name, self.identifier)


class DatabaseInfo(object):
    """Descriptive information about the database, used by explain."""

    def __init__(self, title=None, description=None, author=None):
        self.title = title or []
        self.description = description or []
        self.author = author or []


class SRUServerConfig(SRUObject):
    """Configuration of an SRU endpoint.

    May be constructed from an lxml configuration element, from a string or
    file holding such configuration, and/or from keyword arguments naming
    settings. Keyword arguments override settings from the configuration.
    """

    _possibleSettings = {
        'defaultVersion': {
            'docs': "SRU version to assume if a request does not give one.",
            'type': _parseVersion,
            'options': "1.1|1.2|2.0"
        },
        'minVersion': {
            'docs': "Lowest SRU version the endpoint will accept.",
            'type': _parseVersion,
            'options': "1.1|1.2|2.0"
        },
        'maxVersion': {
            'docs': "Highest SRU version the endpoint will accept.",
            'type': _parseVersion,
            'options': "1.1|1.2|2.0"
        },
        'defaultRecordXmlEscaping': {
            'docs': ("How records are embedded in responses if the request "
                     "does not say: 'xml' or 'string'."),
            'type': str,
            'options': "xml|string"
        },
        'defaultRecordPacking': {
            'docs': ("SRU 2.0 record packing to use if the request does not "
                     "say: 'packed' or 'unpacked'."),
            'type': str,
            'options': "packed|unpacked"
        },
        'transport': {
            'docs': "Transport protocol(s) for the endpoint, e.g. 'http'.",
            'type': str
        },
        'host': {
            'docs': "Host name of the endpoint.",
            'type': str
        },
        'port': {
            'docs': "Port of the endpoint.",
            'type': int
        },
        'database': {
            'docs': "Path of the database on the host.",
            'type': str
        },
        'numberOfRecords': {
            'docs': ("Number of records to return if the request does not "
                     "give maximumRecords."),
            'type': int
        },
        'maximumRecords': {
            'docs': "Largest number of records to return in one response.",
            'type': int
        },
        'numberOfTerms': {
            'docs': ("Number of terms to return if the request does not give "
                     "maximumTerms."),
            'type': int
        },
        'maximumTerms': {
            'docs': "Largest number of terms to return in one response.",
            'type': int
        },
        'allowOverrideMaximumRecords': {
            'docs': ("Let clients lift the maximumRecords limit with the "
                     "x-unlimited-resultset extra parameter."),
            'type': int,
            'options': "0|1"
        },
        'allowOverrideMaximumTerms': {
            'docs': ("Let clients lift the maximumTerms limit with the "
                     "x-unlimited-termlist extra parameter."),
            'type': int,
            'options': "0|1"
        },
        'echoRequests': {
            'docs': "Echo the request in searchRetrieve and scan responses.",
            'type': int,
            'options': "0|1"
        },
        'indentResponse': {
            'docs': "Indent serialized responses (-1 to disable).",
            'type': int
        },
        'allowOverrideIndentResponse': {
            'docs': ("Let clients control indentation with the "
                     "x-indent-response extra parameter."),
            'type': int,
            'options': "0|1"
        },
        'logPath': {
            'docs': ("File to log to, or 'stdout' / 'stderr'. If not given "
                     "messages go to the logging module."),
            'type': str
        },
        'loggerName': {
            'docs': "Name of the logging module logger to use.",
            'type': str
        },
        'logLevel': {
            'docs': "Minimum level of messages to log.",
            'type': int
        }
    }

    defaultSettings = {
        'defaultVersion': protocol.VERSION_1_2,
        'minVersion': protocol.VERSION_1_1,
        'maxVersion': protocol.VERSION_2_0,
        'defaultRecordXmlEscaping': protocol.RECORD_XML_ESCAPING_XML,
        'defaultRecordPacking': protocol.RECORD_PACKING_PACKED,
        'transport': "http",
        'host': "localhost",
        'port': 80,
        'database': "",
        'numberOfRecords': 100,
        'maximumRecords': 250,
        'numberOfTerms': 250,
        'maximumTerms': 500,
        'allowOverrideMaximumRecords': 0,
        'allowOverrideMaximumTerms': 0,
        'echoRequests': 0,
        'indentResponse': -1,
        'allowOverrideIndentResponse': 0,
        'logPath': None,
        'loggerName': "sruserver",
        'logLevel': None
    }

    def __init__(self, config=None, parent=None, **settings):
        self.schemaInfo = []
        self.databaseInfo = DatabaseInfo()
        SRUObject.__init__(self, config, parent)
        for typ, value in settings.items():
            if isinstance(value, str):
                value = self._verifySetting(typ, value)
            elif typ not in self._findParams()[1]:
                raise ConfigFileException("Unknown Setting on '%s': %s" %
                                          (self.id, typ))
            self.settings[typ] = value
        self._logger = None
        self._validate()

    @classmethod
    def fromString(cls, data, **settings):
        try:
            config = etree.XML(data)
        except etree.XMLSyntaxError as e:
            raise ConfigFileException("Invalid configuration: %s" % e)
        return cls(config, **settings)

    @classmethod
    def fromFile(cls, path, **settings):
        try:
            config = etree.parse(path).getroot()
        except (IOError, OSError, etree.XMLSyntaxError) as e:
            raise ConfigFileException("Cannot read configuration from %s: %s"
                                      % (path, e))
        return cls(config, **settings)

    def _handleLxmlConfigNode(self, node):
        if _tagIn(node, 'schemaInfo'):
            for e in node.iterchildren(tag=etree.Element):
                if not _tagIn(e, 'schema'):
                    continue
                try:
                    identifier = e.attrib['identifier']
                    name = e.attrib['name']
                except KeyError:
                    raise ConfigFileException("schema must have identifier "
                                              "and name")
                if self.findSchemaInfo(identifier) is not None or \
                        self.findSchemaInfo(name) is not None:
                    raise ConfigFileException("Duplicate schema: %s" % name)
                self.schemaInfo.append(SchemaInfo(
                    identifier,
                    name,
                    e.attrib.get('location'),
                    _parseBoolean(e.attrib.get('sort', 'false')),
                    _parseBoolean(e.attrib.get('retrieve', 'true')),
                    _localizedStrings(e, 'title')
                ))
        elif _tagIn(node, 'databaseInfo'):
            self.databaseInfo = DatabaseInfo(
                _localizedStrings(node, 'title'),
                _localizedStrings(node, 'description'),
                _localizedStrings(node, 'author')
            )
        else:
            raise ConfigFileException("Unknown configuration element on "
                                      "'%s': %s" % (self.id, node.tag))

    def _validate(self):
        minVersion = self.minVersion
        maxVersion = self.maxVersion
        if minVersion > maxVersion:
            raise ConfigFileException("minVersion (%s) is greater than "
                                      "maxVersion (%s)" %
                                      (minVersion, maxVersion))
        if not minVersion <= self.defaultVersion <= maxVersion:
            raise ConfigFileException("defaultVersion (%s) is outside of "
                                      "%s..%s" %
                                      (self.defaultVersion, minVersion,
                                       maxVersion))
        for name in ('numberOfRecords', 'maximumRecords',
                     'numberOfTerms', 'maximumTerms'):
            if self.get_setting(name) < 1:
                raise ConfigFileException("%s must be greater than 0" % name)
        if self.numberOfRecords > self.maximumRecords:
            raise ConfigFileException("numberOfRecords must not be greater "
                                      "than maximumRecords")
        if self.numberOfTerms > self.maximumTerms:
            raise ConfigFileException("numberOfTerms must not be greater "
                                      "than maximumTerms")

    def get_setting(self, id, default=None):
        """Return the value for a setting, falling back to built-in defaults.
        """
        if id in self.settings:
            return self.settings[id]
        return self.defaultSettings.get(id, default)

    @property
    def defaultVersion(self):
        return self.get_setting('defaultVersion')

    @property
    def minVersion(self):
        return self.get_setting('minVersion')

    @property
    def maxVersion(self):
        return self.get_setting('maxVersion')

    @property
    def defaultRecordXmlEscaping(self):
        return self.get_setting('defaultRecordXmlEscaping')

    @property
    def defaultRecordPacking(self):
        return self.get_setting('defaultRecordPacking')

    @property
    def numberOfRecords(self):
        return self.get_setting('numberOfRecords')

    @property
    def maximumRecords(self):
        return self.get_setting('maximumRecords')

    @property
    def numberOfTerms(self):
        return self.get_setting('numberOfTerms')

    @property
    def maximumTerms(self):
        return self.get_setting('maximumTerms')

    @property
    def echoRequests(self):
        return bool(self.get_setting('echoRequests'))

    @property
    def baseUrl(self):
        url = [self.get_setting('transport').split()[0], "://",
               self.get_setting('host')]
        port = self.get_setting('port')
        if port != 80:
            url.append(":%d" % port)
        url.append("/")
        url.append(self.get_setting('database').lstrip('/'))
        return ''.join(url)

    @property
    def logger(self):
        """Logger built from the log settings, created when first used."""
        if self._logger is None:
            logPath = self.get_setting('logPath')
            logLevel = self.get_setting('logLevel')
            loggerName = self.get_setting('loggerName')
            if logPath is None and logLevel is None and \
                    loggerName == self.defaultSettings['loggerName']:
                self._logger = defaultLogger
            else:
                self._logger = buildLogger(logPath, loggerName, logLevel)
        return self._logger

    @logger.setter
    def logger(self, value):
        # SRUObject.__init__ initializes this to None
        self._logger = value

    def findSchemaInfo(self, value):
        """Return the SchemaInfo whose identifier or name is value, or None.
        """
        if value is None:
            return None
        for schema in self.schemaInfo:
            if value in (schema.identifier, schema.name):
                return schema
        return None

    def getRecordSchemaIdentifier(self, recordSchemaName):
        if recordSchemaName is None:
            return None
        for schema in self.schemaInfo:
            if schema.name == recordSchemaName:
                return schema.identifier
        return None

    def getRecordSchemaName(self, schemaIdentifier):
        if schemaIdentifier is None:
            return None
        for schema in self.schemaInfo:
            if schema.identifier == schemaIdentifier:
                return schema.name
        return None

    def effectiveMaximumRecords(self, request):
        """Number of records to deliver for a searchRetrieve request.

        Returns -1 if the client lifted the limit and is allowed to.
        """
        if self.get_setting('allowOverrideMaximumRecords') and \
                request.getExtraRequestData(X_UNLIMITED_RESULTSET) \
                is not None:
            return UNSPECIFIED
        requested = request.maximumRecords
        if requested == UNSPECIFIED:
            return self.numberOfRecords
        return min(requested, self.maximumRecords)

    def effectiveMaximumTerms(self, request):
        """Number of terms to deliver for a scan request.

        Returns -1 if the client lifted the limit and is allowed to.
        """
        if self.get_setting('allowOverrideMaximumTerms') and \
                request.getExtraRequestData(X_UNLIMITED_TERMLIST) \
                is not None:
            return UNSPECIFIED
        requested = request.maximumTerms
        if requested == UNSPECIFIED:
            return self.numberOfTerms
        return min(requested, self.maximumTerms)

    def effectiveIndentResponse(self, request=None):
        indent = self.get_setting('indentResponse')
        if request is not None and \
                self.get_setting('allowOverrideIndentResponse'):
            value = request.getExtraRequestData(X_INDENT_RESPONSE)
            if value is not None:
                try:
                    indent = int(value)
                except ValueError:
                    pass
        return indent
