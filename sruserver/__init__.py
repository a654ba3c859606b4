"""sruserver

sruserver is the request handling core of an SRU_ (Search/Retrieve via URL)
server, written in Python_. It takes the raw parameters of a request,
resolves the protocol version and operation, validates every parameter that
applies to that operation in that version and hands a validated, immutable
request to a pluggable search engine. Problems with a request are collected
as SRU Diagnostics, which end up in the response.

All three operations (explain, searchRetrieve and scan) of SRU versions 1.1,
1.2 and 2.0 are supported. Queries are interpreted by query parsers
registered by query type; CQL_ and SRU 2.0 search terms are provided.


Requirements / Dependencies
---------------------------

sruserver requires Python_ 3 and lxml_.


Usage
-----

Provide a SearchEngine and an SRUServerConfig, then let an
SRUProtocolHandler process requests::

    from sruserver.handler import SRUProtocolHandler
    from sruserver.serverConfig import SRUServerConfig

    config = SRUServerConfig.fromFile('sru-config.xml')
    handler = SRUProtocolHandler(config, MySearchEngine())
    body = handler.handle({'operation': 'searchRetrieve',
                           'version': '1.2',
                           'query': 'dc.title any fish'})


.. Links
.. _Python: http://www.python.org/
.. _lxml: http://lxml.de/
.. _SRU: http://www.loc.gov/standards/sru/
.. _CQL: http://www.loc.gov/standards/sru/cql/
"""

import sruserver.internal

__name__ = "sruserver"
__package__ = "sruserver"
__version__ = "{0}.{1}.{2}".format(*sruserver.internal.sruserverVersion)
__all__ = ['baseObjects', 'configParser', 'cqlParser', 'diagnostic',
           'exceptions', 'handler', 'internal', 'logger', 'namespaces',
           'protocol', 'queryFactory', 'request', 'resultSet',
           'serverConfig'
           ]
