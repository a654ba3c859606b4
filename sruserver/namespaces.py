"""Namespace URIs and prefixes for each SRU protocol version.

Pure data, keyed by SRUVersion. The core only ever carries the version
around; serialization looks the strings up here.
"""

from sruserver.protocol import VERSION_1_1, VERSION_1_2, VERSION_2_0


class SRUNamespaces(object):

    def __init__(self, responseNS, responsePrefix, scanNS, scanPrefix,
                 diagnosticNS, diagnosticPrefix, explainNS, explainPrefix,
                 xcqlNS):
        self.responseNS = responseNS
        self.responsePrefix = responsePrefix
        self.scanNS = scanNS
        self.scanPrefix = scanPrefix
        self.diagnosticNS = diagnosticNS
        self.diagnosticPrefix = diagnosticPrefix
        self.explainNS = explainNS
        self.explainPrefix = explainPrefix
        self.xcqlNS = xcqlNS

    def __repr__(self):
        return "<SRUNamespaces %s>" % self.responseNS

    @property
    def responseNsmap(self):
        return {self.responsePrefix: self.responseNS,
                self.diagnosticPrefix: self.diagnosticNS}

    @property
    def scanNsmap(self):
        return {self.scanPrefix: self.scanNS,
                self.diagnosticPrefix: self.diagnosticNS}


LEGACY_NAMESPACES = SRUNamespaces(
    responseNS="http://www.loc.gov/zing/srw/",
    responsePrefix="sru",
    scanNS="http://www.loc.gov/zing/srw/",
    scanPrefix="sru",
    diagnosticNS="http://www.loc.gov/zing/srw/diagnostic/",
    diagnosticPrefix="diag",
    explainNS="http://explain.z3950.org/dtd/2.0/",
    explainPrefix="zr",
    xcqlNS="http://www.loc.gov/zing/cql/xcql/"
)

OASIS_NAMESPACES = SRUNamespaces(
    responseNS="http://docs.oasis-open.org/ns/search-ws/sruResponse",
    responsePrefix="sruResponse",
    scanNS="http://docs.oasis-open.org/ns/search-ws/scan",
    scanPrefix="scan",
    diagnosticNS="http://docs.oasis-open.org/ns/search-ws/diagnostic",
    diagnosticPrefix="diag",
    explainNS="http://explain.z3950.org/dtd/2.0/",
    explainPrefix="zr",
    xcqlNS="http://docs.oasis-open.org/ns/search-ws/xcql"
)

namespaceHash = {
    VERSION_1_1: LEGACY_NAMESPACES,
    VERSION_1_2: LEGACY_NAMESPACES,
    VERSION_2_0: OASIS_NAMESPACES
}


def getNamespaces(version):
    try:
        return namespaceHash[version]
    except KeyError:
        raise ValueError("No namespaces for version %s" % (version,))
