"""SRU Diagnostics.

A Diagnostic is a URI identified error or warning record as defined by the
SRU specification. A DiagnosticList accumulates the Diagnostics raised during
a single request/response cycle, in the order they were raised.

Whether a Diagnostic is a surrogate (per-record) or a non-surrogate
(request level) Diagnostic is decided by where the caller puts it, not by
anything stored on it.
"""

DIAGNOSTIC_URI_PREFIX = "info:srw/diagnostic/1/"

# General diagnostics
GENERAL_SYSTEM_ERROR = 1
SYSTEM_TEMPORARILY_UNAVAILABLE = 2
AUTHENTICATION_ERROR = 3
UNSUPPORTED_OPERATION = 4
UNSUPPORTED_VERSION = 5
UNSUPPORTED_PARAMETER_VALUE = 6
MANDATORY_PARAMETER_NOT_SUPPLIED = 7
UNSUPPORTED_PARAMETER = 8
# Diagnostics relating to CQL
QUERY_SYNTAX_ERROR = 10
TOO_MANY_CHARACTERS_IN_QUERY = 12
INVALID_OR_UNSUPPORTED_USE_OF_PARENTHESES = 13
INVALID_OR_UNSUPPORTED_USE_OF_QUOTES = 14
UNSUPPORTED_CONTEXT_SET = 15
UNSUPPORTED_INDEX = 16
UNSUPPORTED_COMBINATION_OF_INDEXES = 18
UNSUPPORTED_RELATION = 19
UNSUPPORTED_RELATION_MODIFIER = 20
UNSUPPORTED_COMBINATION_OF_RELATION_MODIFERS = 21
UNSUPPORTED_COMBINATION_OF_RELATION_AND_INDEX = 22
TOO_MANY_CHARACTERS_IN_TERM = 23
UNSUPPORTED_COMBINATION_OF_RELATION_AND_TERM = 24
NON_SPECIAL_CHARACTER_ESCAPED_IN_TERM = 26
EMPTY_TERM_UNSUPPORTED = 27
MASKING_CHARACTER_NOT_SUPPORTED = 28
MASKED_WORDS_TOO_SHORT = 29
TOO_MANY_MASKING_CHARACTERS_IN_TERM = 30
ANCHORING_CHARACTER_NOT_SUPPORTED = 31
ANCHORING_CHARACTER_IN_UNSUPPORTED_POSITION = 32
COMBINATION_OF_PROXIMITY_ADJACENCY_AND_MASKING_CHARACTERS_NOT_SUPPORTED = 33
COMBINATION_OF_PROXIMITY_ADJACENCY_AND_ANCHORING_CHARACTERS_NOT_SUPPORTED = 34
TERM_CONTAINS_ONLY_STOPWORDS = 35
TERM_IN_INVALID_FORMAT_FOR_INDEX_OR_RELATION = 36
UNSUPPORTED_BOOLEAN_OPERATOR = 37
TOO_MANY_BOOLEAN_OPERATORS_IN_QUERY = 38
PROXIMITY_NOT_SUPPORTED = 39
UNSUPPORTED_PROXIMITY_RELATION = 40
UNSUPPORTED_PROXIMITY_DISTANCE = 41
UNSUPPORTED_PROXIMITY_UNIT = 42
UNSUPPORTED_PROXIMITY_ORDERING = 43
UNSUPPORTED_COMBINATION_OF_PROXIMITY_MODIFIERS = 44
UNSUPPORTED_BOOLEAN_MODIFIER = 46
CANNOT_PROCESS_QUERY_REASON_UNKNOWN = 47
QUERY_FEATURE_UNSUPPORTED = 48
MASKING_CHARACTER_IN_UNSUPPORTED_POSITION = 49
# Diagnostics relating to result sets
RESULT_SETS_NOT_SUPPORTED = 50
RESULT_SET_DOES_NOT_EXIST = 51
RESULT_SET_TEMPORARILY_UNAVAILABLE = 52
RESULT_SETS_ONLY_SUPPORTED_FOR_RETRIEVAL = 53
COMBINATION_OF_RESULT_SETS_WITH_SEARCH_TERMS_NOT_SUPPORTED = 55
RESULT_SET_CREATED_WITH_UNPREDICTABLE_PARTIAL_RESULTS_AVAILABLE = 58
RESULT_SET_CREATED_WITH_VALID_PARTIAL_RESULTS_AVAILABLE = 59
RESULT_SET_NOT_CREATED_TOO_MANY_MATCHING_RECORDS = 60
# Diagnostics relating to records
FIRST_RECORD_POSITION_OUT_OF_RANGE = 61
RECORD_TEMPORARILY_UNAVAILABLE = 64
RECORD_DOES_NOT_EXIST = 65
UNKNOWN_SCHEMA_FOR_RETRIEVAL = 66
RECORD_NOT_AVAILABLE_IN_THIS_SCHEMA = 67
NOT_AUTHORISED_TO_SEND_RECORD = 68
NOT_AUTHORISED_TO_SEND_RECORD_IN_THIS_SCHEMA = 69
RECORD_TOO_LARGE_TO_SEND = 70
UNSUPPORTED_RECORD_PACKING = 71
XPATH_RETRIEVAL_UNSUPPORTED = 72
XPATH_EXPRESSION_CONTAINS_UNSUPPORTED_FEATURE = 73
UNABLE_TO_EVALUATE_XPATH_EXPRESSION = 74
# Diagnostics relating to sorting
SORT_NOT_SUPPORTED = 80
UNSUPPORTED_SORT_SEQUENCE = 82
TOO_MANY_RECORDS_TO_SORT = 83
TOO_MANY_SORT_KEYS_TO_SORT = 84
CANNOT_SORT_INCOMPATIBLE_RECORD_FORMATS = 86
UNSUPPORTED_SCHEMA_FOR_SORT = 87
UNSUPPORTED_PATH_FOR_SORT = 88
PATH_UNSUPPORTED_FOR_SCHEMA = 89
UNSUPPORTED_DIRECTION = 90
UNSUPPORTED_CASE = 91
UNSUPPORTED_MISSING_VALUE_ACTION = 92
SORT_ENDED_DUE_TO_MISSING_VALUE = 93
SORT_SPEC_INCLUDED_BOTH_IN_QUERY_AND_PROTOCOL_QUERY_PREVAILS = 94
SORT_SPEC_INCLUDED_BOTH_IN_QUERY_AND_PROTOCOL_PROTOCOL_PREVAILS = 95
SORT_SPEC_INCLUDED_BOTH_IN_QUERY_AND_PROTOCOL_ERROR = 96
# Diagnostics relating to stylesheets
STYLESHEETS_NOT_SUPPORTED = 110
UNSUPPORTED_STYLESHEET = 111
# Diagnostics relating to scan
RESPONSE_POSITION_OUT_OF_RANGE = 120
TOO_MANY_TERMS_REQUESTED = 121


defaultMessages = {
    GENERAL_SYSTEM_ERROR: "General system error",
    SYSTEM_TEMPORARILY_UNAVAILABLE: "System temporarily unavailable",
    AUTHENTICATION_ERROR: "Authentication error",
    UNSUPPORTED_OPERATION: "Unsupported operation",
    UNSUPPORTED_VERSION: "Unsupported version",
    UNSUPPORTED_PARAMETER_VALUE: "Unsupported parameter value",
    MANDATORY_PARAMETER_NOT_SUPPLIED: "Mandatory parameter not supplied",
    UNSUPPORTED_PARAMETER: "Unsupported parameter",
    QUERY_SYNTAX_ERROR: "Query syntax error",
    TOO_MANY_CHARACTERS_IN_QUERY: "Too many characters in query",
    INVALID_OR_UNSUPPORTED_USE_OF_PARENTHESES:
        "Invalid or unsupported use of parentheses",
    INVALID_OR_UNSUPPORTED_USE_OF_QUOTES:
        "Invalid or unsupported use of quotes",
    UNSUPPORTED_CONTEXT_SET: "Unsupported context set",
    UNSUPPORTED_INDEX: "Unsupported index",
    UNSUPPORTED_COMBINATION_OF_INDEXES: "Unsupported combination of indexes",
    UNSUPPORTED_RELATION: "Unsupported relation",
    UNSUPPORTED_RELATION_MODIFIER: "Unsupported relation modifier",
    UNSUPPORTED_COMBINATION_OF_RELATION_MODIFERS:
        "Unsupported combination of relation modifers",
    UNSUPPORTED_COMBINATION_OF_RELATION_AND_INDEX:
        "Unsupported combination of relation and index",
    TOO_MANY_CHARACTERS_IN_TERM: "Too many characters in term",
    UNSUPPORTED_COMBINATION_OF_RELATION_AND_TERM:
        "Unsupported combination of relation and term",
    NON_SPECIAL_CHARACTER_ESCAPED_IN_TERM:
        "Non special character escaped in term",
    EMPTY_TERM_UNSUPPORTED: "Empty term unsupported",
    MASKING_CHARACTER_NOT_SUPPORTED: "Masking character not supported",
    MASKED_WORDS_TOO_SHORT: "Masked words too short",
    TOO_MANY_MASKING_CHARACTERS_IN_TERM:
        "Too many masking characters in term",
    ANCHORING_CHARACTER_NOT_SUPPORTED: "Anchoring character not supported",
    ANCHORING_CHARACTER_IN_UNSUPPORTED_POSITION:
        "Anchoring character in unsupported position",
    COMBINATION_OF_PROXIMITY_ADJACENCY_AND_MASKING_CHARACTERS_NOT_SUPPORTED:
        "Combination of proximity adjacency and masking characters not "
        "supported",
    COMBINATION_OF_PROXIMITY_ADJACENCY_AND_ANCHORING_CHARACTERS_NOT_SUPPORTED:
        "Combination of proximity adjacency and anchoring characters not "
        "supported",
    TERM_CONTAINS_ONLY_STOPWORDS: "Term contains only stopwords",
    TERM_IN_INVALID_FORMAT_FOR_INDEX_OR_RELATION:
        "Term in invalid format for index or relation",
    UNSUPPORTED_BOOLEAN_OPERATOR: "Unsupported boolean operator",
    TOO_MANY_BOOLEAN_OPERATORS_IN_QUERY: "Too many boolean operators in query",
    PROXIMITY_NOT_SUPPORTED: "Proximity not supported",
    UNSUPPORTED_PROXIMITY_RELATION: "Unsupported proximity relation",
    UNSUPPORTED_PROXIMITY_DISTANCE: "Unsupported proximity distance",
    UNSUPPORTED_PROXIMITY_UNIT: "Unsupported proximity unit",
    UNSUPPORTED_PROXIMITY_ORDERING: "Unsupported proximity ordering",
    UNSUPPORTED_COMBINATION_OF_PROXIMITY_MODIFIERS:
        "Unsupported combination of proximity modifiers",
    UNSUPPORTED_BOOLEAN_MODIFIER: "Unsupported boolean modifier",
    CANNOT_PROCESS_QUERY_REASON_UNKNOWN:
        "Cannot process query; reason unknown",
    QUERY_FEATURE_UNSUPPORTED: "Query feature unsupported",
    MASKING_CHARACTER_IN_UNSUPPORTED_POSITION:
        "Masking character in unsupported position",
    RESULT_SETS_NOT_SUPPORTED: "Result sets not supported",
    RESULT_SET_DOES_NOT_EXIST: "Result set does not exist",
    RESULT_SET_TEMPORARILY_UNAVAILABLE: "Result set temporarily unavailable",
    RESULT_SETS_ONLY_SUPPORTED_FOR_RETRIEVAL:
        "Result sets only supported for retrieval",
    COMBINATION_OF_RESULT_SETS_WITH_SEARCH_TERMS_NOT_SUPPORTED:
        "Combination of result sets with search terms not supported",
    RESULT_SET_CREATED_WITH_UNPREDICTABLE_PARTIAL_RESULTS_AVAILABLE:
        "Result set created with unpredictable partial results available",
    RESULT_SET_CREATED_WITH_VALID_PARTIAL_RESULTS_AVAILABLE:
        "Result set created with valid partial results available",
    RESULT_SET_NOT_CREATED_TOO_MANY_MATCHING_RECORDS:
        "Result set not created: too many matching records",
    FIRST_RECORD_POSITION_OUT_OF_RANGE: "First record position out of range",
    RECORD_TEMPORARILY_UNAVAILABLE: "Record temporarily unavailable",
    RECORD_DOES_NOT_EXIST: "Record does not exist",
    UNKNOWN_SCHEMA_FOR_RETRIEVAL: "Unknown schema for retrieval",
    RECORD_NOT_AVAILABLE_IN_THIS_SCHEMA: "Record not available in this schema",
    NOT_AUTHORISED_TO_SEND_RECORD: "Not authorised to send record",
    NOT_AUTHORISED_TO_SEND_RECORD_IN_THIS_SCHEMA:
        "Not authorised to send record in this schema",
    RECORD_TOO_LARGE_TO_SEND: "Record too large to send",
    UNSUPPORTED_RECORD_PACKING: "Unsupported record packing",
    XPATH_RETRIEVAL_UNSUPPORTED: "XPath retrieval unsupported",
    XPATH_EXPRESSION_CONTAINS_UNSUPPORTED_FEATURE:
        "XPath expression contains unsupported feature",
    UNABLE_TO_EVALUATE_XPATH_EXPRESSION: "Unable to evaluate XPath expression",
    SORT_NOT_SUPPORTED: "Sort not supported",
    UNSUPPORTED_SORT_SEQUENCE: "Unsupported sort sequence",
    TOO_MANY_RECORDS_TO_SORT: "Too many records to sort",
    TOO_MANY_SORT_KEYS_TO_SORT: "Too many sort keys to sort",
    CANNOT_SORT_INCOMPATIBLE_RECORD_FORMATS:
        "Cannot sort incompatible record formats",
    UNSUPPORTED_SCHEMA_FOR_SORT: "Unsupported schema for sort",
    UNSUPPORTED_PATH_FOR_SORT: "Unsupported path for sort",
    PATH_UNSUPPORTED_FOR_SCHEMA: "Path unsupported for schema",
    UNSUPPORTED_DIRECTION: "Unsupported direction",
    UNSUPPORTED_CASE: "Unsupported case",
    UNSUPPORTED_MISSING_VALUE_ACTION: "Unsupported missing value action",
    SORT_ENDED_DUE_TO_MISSING_VALUE: "Sort ended due to missing value",
    SORT_SPEC_INCLUDED_BOTH_IN_QUERY_AND_PROTOCOL_QUERY_PREVAILS:
        "Sort spec included both in query and protocol: query prevails",
    SORT_SPEC_INCLUDED_BOTH_IN_QUERY_AND_PROTOCOL_PROTOCOL_PREVAILS:
        "Sort spec included both in query and protocol: protocol prevails",
    SORT_SPEC_INCLUDED_BOTH_IN_QUERY_AND_PROTOCOL_ERROR:
        "Sort spec included both in query and protocol: error",
    STYLESHEETS_NOT_SUPPORTED: "Stylesheets not supported",
    UNSUPPORTED_STYLESHEET: "Unsupported stylesheet",
    RESPONSE_POSITION_OUT_OF_RANGE: "Response position out of range",
    TOO_MANY_TERMS_REQUESTED: "Too many terms requested",
}


def diagnosticUri(code):
    """Return the standard SRU diagnostic URI for a diagnostic number."""
    return "%s%d" % (DIAGNOSTIC_URI_PREFIX, code)


class Diagnostic(object):
    """An immutable SRU Diagnostic.

    uri
        identifies the kind of problem, e.g. info:srw/diagnostic/1/7
    details
        supplementary information, in a format defined by the definition of
        the Diagnostic identified by uri
    message
        human readable message
    """

    __slots__ = ('uri', 'details', 'message')

    def __init__(self, uri, details=None, message=None):
        if not uri:
            raise ValueError("uri must not be empty")
        object.__setattr__(self, 'uri', uri)
        object.__setattr__(self, 'details', details)
        object.__setattr__(self, 'message', message)

    @classmethod
    def fromCode(cls, code, details=None, message=None):
        if message is None:
            message = defaultMessages.get(code)
        return cls(diagnosticUri(code), details, message)

    def __setattr__(self, name, value):
        raise AttributeError("Diagnostic is immutable")

    def __delattr__(self, name):
        raise AttributeError("Diagnostic is immutable")

    def __eq__(self, other):
        if not isinstance(other, Diagnostic):
            return NotImplemented
        return ((self.uri, self.details, self.message) ==
                (other.uri, other.details, other.message))

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __hash__(self):
        return hash((self.uri, self.details, self.message))

    def __repr__(self):
        return "Diagnostic(%r, %r, %r)" % (self.uri, self.details,
                                           self.message)

    def __str__(self):
        if self.details:
            return "%s [%s]: %s" % (self.uri, self.message, self.details)
        return "%s [%s]" % (self.uri, self.message)

    @property
    def code(self):
        """Diagnostic number for standard SRU URIs, otherwise None."""
        if self.uri.startswith(DIAGNOSTIC_URI_PREFIX):
            num = self.uri[len(DIAGNOSTIC_URI_PREFIX):]
            if num.isdigit():
                return int(num)
        return None


class DiagnosticList(object):
    """Ordered, append-only accumulator of Diagnostics.

    Exclusively owned by one request/response cycle.
    """

    def __init__(self):
        self._diagnostics = []

    def __len__(self):
        return len(self._diagnostics)

    def __iter__(self):
        return iter(self._diagnostics)

    def __getitem__(self, idx):
        return self._diagnostics[idx]

    def __bool__(self):
        return bool(self._diagnostics)

    def __repr__(self):
        return "DiagnosticList(%r)" % (self._diagnostics,)

    @property
    def diagnostics(self):
        return tuple(self._diagnostics)

    def add(self, uri, details=None, message=None):
        """Append a new Diagnostic, return it."""
        diag = Diagnostic(uri, details, message)
        self._diagnostics.append(diag)
        return diag

    def addDiagnostic(self, code, details=None, message=None):
        """Append a new Diagnostic for a standard SRU diagnostic number."""
        diag = Diagnostic.fromCode(code, details, message)
        self._diagnostics.append(diag)
        return diag

    def append(self, diagnostic):
        """Append an existing Diagnostic instance."""
        if not isinstance(diagnostic, Diagnostic):
            raise TypeError("Expected a Diagnostic, got %r" % (diagnostic,))
        self._diagnostics.append(diagnostic)
        return diagnostic
