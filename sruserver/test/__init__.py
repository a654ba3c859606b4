"""Unittests for sruserver.

The request handling core is mostly concerned with turning untrusted client
parameters into either a validated request or a list of Diagnostics. Most
tests therefore feed raw parameter dictionaries in and check the request or
Diagnostics that come out.

No search backend is part of sruserver, so tests of the protocol handler use
a small in-memory SearchEngine defined in the test module.
"""

__all__ = ['testAll',
           'testConfigParser',
           'testCqlParser',
           'testDiagnostic',
           'testExceptions',
           'testHandler',
           'testLogger',
           'testProtocol',
           'testQueryFactory',
           'testRequest',
           'testResultSet',
           'testServerConfig']
