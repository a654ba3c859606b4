"""SRU protocol versions and operations.

Versions are totally ordered (1.1 < 1.2 < 2.0). Operations are a closed set
of explain, searchRetrieve and scan. ``resolve`` maps raw request parameter
values onto these, raising an SRUException for anything it cannot map.
"""

from sruserver import diagnostic as diag
from sruserver.exceptions import SRUException
from sruserver.internal import PARAM_QUERY, PARAM_QUERY_TYPE, \
                               PARAM_SCAN_CLAUSE


class SRUVersion(object):
    """An SRU protocol version."""

    def __init__(self, major, minor):
        self.major = major
        self.minor = minor
        self.versionNumber = (major << 16) | minor
        self.versionString = "%d.%d" % (major, minor)

    def __str__(self):
        return self.versionString

    def __repr__(self):
        return "<SRUVersion %s>" % self.versionString

    def __eq__(self, other):
        if not isinstance(other, SRUVersion):
            return NotImplemented
        return self.versionNumber == other.versionNumber

    def __ne__(self, other):
        if not isinstance(other, SRUVersion):
            return NotImplemented
        return self.versionNumber != other.versionNumber

    def __lt__(self, other):
        if not isinstance(other, SRUVersion):
            return NotImplemented
        return self.versionNumber < other.versionNumber

    def __le__(self, other):
        if not isinstance(other, SRUVersion):
            return NotImplemented
        return self.versionNumber <= other.versionNumber

    def __gt__(self, other):
        if not isinstance(other, SRUVersion):
            return NotImplemented
        return self.versionNumber > other.versionNumber

    def __ge__(self, other):
        if not isinstance(other, SRUVersion):
            return NotImplemented
        return self.versionNumber >= other.versionNumber

    def __hash__(self):
        return hash(self.versionNumber)

    def isIn(self, minVersion, maxVersion):
        """Is this version within [minVersion, maxVersion]?

        Missing bounds or minVersion > maxVersion are errors by the caller,
        not protocol diagnostics.
        """
        if minVersion is None or maxVersion is None:
            raise TypeError("minVersion and maxVersion must not be None")
        if minVersion > maxVersion:
            raise ValueError("minVersion > maxVersion")
        return minVersion <= self <= maxVersion


VERSION_1_1 = SRUVersion(1, 1)
VERSION_1_2 = SRUVersion(1, 2)
VERSION_2_0 = SRUVersion(2, 0)

versions = (VERSION_1_1, VERSION_1_2, VERSION_2_0)
versionHash = dict([(v.versionString, v) for v in versions])


class SRUOperation(object):
    """An SRU operation."""

    def __init__(self, name, parameterValue):
        self.name = name
        self.parameterValue = parameterValue

    def __str__(self):
        return self.parameterValue

    def __repr__(self):
        return "<SRUOperation %s>" % self.name


EXPLAIN = SRUOperation('EXPLAIN', 'explain')
SEARCH_RETRIEVE = SRUOperation('SEARCH_RETRIEVE', 'searchRetrieve')
SCAN = SRUOperation('SCAN', 'scan')

operations = (EXPLAIN, SEARCH_RETRIEVE, SCAN)
operationHash = dict([(o.parameterValue, o) for o in operations])


# Record XML escaping (aka recordPacking prior to SRU 2.0)
RECORD_XML_ESCAPING_XML = "xml"
RECORD_XML_ESCAPING_STRING = "string"
recordXmlEscapings = (RECORD_XML_ESCAPING_XML, RECORD_XML_ESCAPING_STRING)

# Record packing (SRU 2.0)
RECORD_PACKING_PACKED = "packed"
RECORD_PACKING_UNPACKED = "unpacked"
recordPackings = (RECORD_PACKING_PACKED, RECORD_PACKING_UNPACKED)

RENDER_BY_CLIENT = "client"
RENDER_BY_SERVER = "server"
renderBys = (RENDER_BY_CLIENT, RENDER_BY_SERVER)


def parseVersion(value):
    """Return the SRUVersion for a version string, or None."""
    return versionHash.get(value)


def resolve(rawOperation, rawVersion, defaultVersion=VERSION_1_2,
            parameters=None):
    """Resolve raw operation and version parameter values.

    Return an (SRUOperation, SRUVersion) tuple. A missing version resolves to
    defaultVersion. A missing operation is inferred from parameters for SRU
    2.0 (which has no operation parameter for searchRetrieve) and defaults to
    explain otherwise.
    """
    if rawVersion is None:
        version = defaultVersion
    else:
        version = versionHash.get(rawVersion.strip())
        if version is None:
            raise SRUException.fromCode(
                diag.UNSUPPORTED_VERSION,
                details=versions[-1].versionString,
                message='Version "%s" is not supported' % rawVersion
            )
    if rawOperation is None:
        parameters = parameters or {}
        if version < VERSION_2_0:
            operation = EXPLAIN
        elif (parameters.get(PARAM_QUERY) is not None or
              parameters.get(PARAM_QUERY_TYPE) is not None):
            operation = SEARCH_RETRIEVE
        elif parameters.get(PARAM_SCAN_CLAUSE) is not None:
            operation = SCAN
        else:
            operation = EXPLAIN
    else:
        op = rawOperation.strip()
        if not op:
            raise SRUException.fromCode(
                diag.UNSUPPORTED_OPERATION,
                message='An empty parameter "operation" is not supported.'
            )
        try:
            operation = operationHash[op]
        except KeyError:
            raise SRUException.fromCode(
                diag.UNSUPPORTED_OPERATION,
                details=op,
                message='Operation "%s" is not supported.' % op
            )
    return operation, version
