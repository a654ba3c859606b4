"""Results of SRU operations.

A SearchEngine returns one of these for each operation. All of them share
the request cycle's DiagnosticList, may contribute extra response data, and
must be closed once the response has been written. ``close()`` may be called
any number of times and never raises; results are also context managers.
"""

from copy import deepcopy

from lxml import etree

from sruserver import diagnostic as diag
from sruserver.logger import defaultLogger


class ResultCountPrecision(object):
    """SRU 2.0 result count precision values."""
    EXACT = "info:srw/vocabulary/resultCountPrecision/1/exact"
    UNKNOWN = "info:srw/vocabulary/resultCountPrecision/1/unknown"
    ESTIMATE = "info:srw/vocabulary/resultCountPrecision/1/estimate"
    MAXIMUM = "info:srw/vocabulary/resultCountPrecision/1/maximum"
    MINIMUM = "info:srw/vocabulary/resultCountPrecision/1/minimum"
    CURRENT = "info:srw/vocabulary/resultCountPrecision/1/current"


class WhereInList(object):
    """Position of a term in a scan response."""
    FIRST = "first"
    LAST = "last"
    ONLY = "only"
    INNER = "inner"


class AbstractResult(object):
    """Base class for the results of all operations."""

    def __init__(self, diagnostics, logger=None):
        if diagnostics is None:
            raise ValueError("diagnostics must not be None")
        self.diagnostics = diagnostics
        self.logger = logger or defaultLogger
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, type_, value, traceback):
        self.close()

    @property
    def closed(self):
        return self._closed

    def addDiagnostic(self, code, details=None, message=None):
        """Add a non-fatal diagnostic to the response."""
        return self.diagnostics.addDiagnostic(code, details, message)

    def hasExtraResponseData(self):
        """Does this result contribute extra response data?"""
        return False

    def writeExtraResponseData(self, sink):
        """Append extra response data to sink, an lxml element."""
        pass

    def _close(self):
        # Release resources, subclasses override
        pass

    def close(self):
        """Release any resources held by the result.

        Only the first call does anything. Errors are logged, not raised.
        """
        if self._closed:
            return
        self._closed = True
        try:
            self._close()
        except Exception as e:
            self.logger.log_error("error while closing %s: %s",
                                  self.__class__.__name__, e)


class ExplainResult(AbstractResult):
    """Result of an explain operation.

    By default only adds extra response data, the explain record itself is
    produced from the server configuration.
    """
    pass


class SearchResultSet(AbstractResult):
    """Result of a searchRetrieve operation.

    Works like a cursor: ``nextRecord()`` advances to the next record, after
    which the record's details can be requested and the record written.
    """

    def getTotalRecordCount(self):
        """Total number of records matching the query, -1 if unknown."""
        raise NotImplementedError

    def getTotalRecordCountPrecision(self):
        """One of the ResultCountPrecision values, or None."""
        return None

    def getRecordCount(self):
        """Number of records in this response."""
        raise NotImplementedError

    def getResultSetId(self):
        return None

    def getResultSetIdleTime(self):
        return -1

    def getRecordSchemaIdentifier(self):
        raise NotImplementedError

    def nextRecord(self):
        """Move to the next record, return False if there is none."""
        raise NotImplementedError

    def getRecordIdentifier(self):
        return None

    def getSurrogateDiagnostic(self):
        """A Diagnostic to deliver instead of the current record, or None."""
        return None

    def writeRecord(self, sink):
        """Append the current record to sink, an lxml element."""
        raise NotImplementedError

    def hasExtraRecordData(self):
        return False

    def writeExtraRecordData(self, sink):
        pass

    def records(self):
        """Iterate over the records, yielding self at each position."""
        while self.nextRecord():
            yield self


class ScanResultSet(AbstractResult):
    """Result of a scan operation, a cursor over terms."""

    def nextTerm(self):
        """Move to the next term, return False if there is none."""
        raise NotImplementedError

    def getValue(self):
        raise NotImplementedError

    def getNumberOfRecords(self):
        """Number of records for the current term, -1 if unknown."""
        return -1

    def getDisplayTerm(self):
        return None

    def getWhereInList(self):
        """One of the WhereInList values, or None."""
        return None

    def hasExtraTermData(self):
        return False

    def writeExtraTermData(self, sink):
        pass

    def terms(self):
        """Iterate over the terms, yielding self at each position."""
        while self.nextTerm():
            yield self


class SimpleSearchResultSet(SearchResultSet):
    """SearchResultSet over an in-memory list of records.

    records is a sequence of (identifier, record) pairs, where record is an
    lxml element or an XML string. Records that are Diagnostic instances are
    delivered as surrogate diagnostics.
    """

    def __init__(self, diagnostics, records, recordSchemaIdentifier,
                 totalRecordCount=None, resultSetId=None,
                 resultSetIdleTime=-1, logger=None):
        SearchResultSet.__init__(self, diagnostics, logger)
        self._records = list(records)
        self._position = -1
        self.recordSchemaIdentifier = recordSchemaIdentifier
        if totalRecordCount is None:
            totalRecordCount = len(self._records)
        self.totalRecordCount = totalRecordCount
        self.resultSetId = resultSetId
        self.resultSetIdleTime = resultSetIdleTime

    def __len__(self):
        return len(self._records)

    def getTotalRecordCount(self):
        return self.totalRecordCount

    def getTotalRecordCountPrecision(self):
        return ResultCountPrecision.EXACT

    def getRecordCount(self):
        return len(self._records)

    def getResultSetId(self):
        return self.resultSetId

    def getResultSetIdleTime(self):
        return self.resultSetIdleTime

    def getRecordSchemaIdentifier(self):
        return self.recordSchemaIdentifier

    def nextRecord(self):
        if self._position + 1 >= len(self._records):
            return False
        self._position += 1
        return True

    def _current(self):
        if self._position < 0:
            raise IndexError("nextRecord() has not been called")
        return self._records[self._position]

    def getRecordIdentifier(self):
        return self._current()[0]

    def getSurrogateDiagnostic(self):
        record = self._current()[1]
        if isinstance(record, diag.Diagnostic):
            return record
        return None

    def writeRecord(self, sink):
        record = self._current()[1]
        if isinstance(record, str):
            record = etree.XML(record)
        else:
            record = deepcopy(record)
        sink.append(record)

    def _close(self):
        self._records = []
        self._position = -1


class SimpleScanResultSet(ScanResultSet):
    """ScanResultSet over an in-memory list of terms.

    terms is a sequence of (value, numberOfRecords, displayTerm) tuples.
    """

    def __init__(self, diagnostics, terms, logger=None):
        ScanResultSet.__init__(self, diagnostics, logger)
        self._terms = list(terms)
        self._position = -1

    def __len__(self):
        return len(self._terms)

    def nextTerm(self):
        if self._position + 1 >= len(self._terms):
            return False
        self._position += 1
        return True

    def getValue(self):
        return self._terms[self._position][0]

    def getNumberOfRecords(self):
        return self._terms[self._position][1]

    def getDisplayTerm(self):
        return self._terms[self._position][2]

    def getWhereInList(self):
        if len(self._terms) == 1:
            return WhereInList.ONLY
        elif self._position == 0:
            return WhereInList.FIRST
        elif self._position == len(self._terms) - 1:
            return WhereInList.LAST
        return WhereInList.INNER

    def _close(self):
        self._terms = []
        self._position = -1
