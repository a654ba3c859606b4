"""Internal constants for the SRU server core."""

_major_version = 1
_minor_version = 0
_patch_version = 0

sruserverVersion = (_major_version, _minor_version, _patch_version)

CONFIG_NS = "http://www.cheshire3.org/schemas/sru/config/"

# General / explain related parameter names
PARAM_OPERATION = "operation"
PARAM_VERSION = "version"
PARAM_STYLESHEET = "stylesheet"
PARAM_RENDER_BY = "renderedBy"
PARAM_HTTP_ACCEPT = "httpAccept"
PARAM_RESPONSE_TYPE = "responseType"
# searchRetrieve related parameter names
PARAM_QUERY = "query"
PARAM_QUERY_TYPE = "queryType"
PARAM_START_RECORD = "startRecord"
PARAM_MAXIMUM_RECORDS = "maximumRecords"
PARAM_RECORD_XML_ESCAPING = "recordXMLEscaping"
PARAM_RECORD_PACKING = "recordPacking"
PARAM_RECORD_SCHEMA = "recordSchema"
PARAM_RECORD_XPATH = "recordXPath"
PARAM_RESULT_SET_TTL = "resultSetTTL"
PARAM_SORT_KEYS = "sortKeys"
# scan related parameter names
PARAM_SCAN_CLAUSE = "scanClause"
PARAM_RESPONSE_POSITION = "responsePosition"
PARAM_MAXIMUM_TERMS = "maximumTerms"

# Extra request data (aka extensions) must carry this prefix
PARAM_EXTENSION_PREFIX = "x-"
X_UNLIMITED_RESULTSET = "x-unlimited-resultset"
X_UNLIMITED_TERMLIST = "x-unlimited-termlist"
X_INDENT_RESPONSE = "x-indent-response"

QUERY_TYPE_CQL = "cql"
QUERY_TYPE_SEARCH_TERMS = "searchTerms"

DEFAULT_START_RECORD = 1
DEFAULT_RESPONSE_POSITION = 1
# Server decides
UNSPECIFIED = -1
