"""sruserver Server Configuration Unittests."""

import os
import sys
import unittest

from tempfile import mkstemp

from lxml import etree

from sruserver import serverConfig
from sruserver.diagnostic import DiagnosticList
from sruserver.exceptions import ConfigFileException
from sruserver.internal import CONFIG_NS
from sruserver.logger import defaultLogger, SimpleLogger, LoggingLogger
from sruserver.protocol import VERSION_1_1, VERSION_1_2, VERSION_2_0, \
                               SEARCH_RETRIEVE, SCAN
from sruserver.request import SRURequest
from sruserver.serverConfig import SRUServerConfig


CONFIG = '''\
<config id="testServer">
  <name>Test SRU endpoint</name>
  <options>
    <setting type="host">sru.example.org</setting>
    <setting type="port">8080</setting>
    <setting type="database">/books</setting>
    <setting type="defaultVersion">2.0</setting>
    <setting type="numberOfRecords">10</setting>
    <setting type="maximumRecords">50</setting>
    <setting type="echoRequests">1</setting>
  </options>
  <databaseInfo>
    <title lang="en" primary="true">Books</title>
    <title lang="de">Buecher</title>
    <description lang="en">All the books</description>
  </databaseInfo>
  <schemaInfo>
    <schema identifier="info:srw/schema/1/dc-v1.1" name="dc"
            location="http://www.loc.gov/standards/sru/dc-schema.xsd"
            sort="false" retrieve="true">
      <title lang="en">Dublin Core</title>
    </schema>
    <schema identifier="info:srw/schema/1/mods-v3.4" name="mods"
            sort="true"/>
  </schemaInfo>
</config>'''


class SRUServerConfigDefaultsTestCase(unittest.TestCase):

    def setUp(self):
        self.testObj = SRUServerConfig()

    def test_versions(self):
        self.assertIs(self.testObj.defaultVersion, VERSION_1_2)
        self.assertIs(self.testObj.minVersion, VERSION_1_1)
        self.assertIs(self.testObj.maxVersion, VERSION_2_0)

    def test_records(self):
        self.assertEqual(self.testObj.numberOfRecords, 100)
        self.assertEqual(self.testObj.maximumRecords, 250)
        self.assertEqual(self.testObj.numberOfTerms, 250)
        self.assertEqual(self.testObj.maximumTerms, 500)

    def test_escaping(self):
        self.assertEqual(self.testObj.defaultRecordXmlEscaping, 'xml')
        self.assertEqual(self.testObj.defaultRecordPacking, 'packed')

    def test_baseUrl(self):
        self.assertEqual(self.testObj.baseUrl, 'http://localhost/')

    def test_echoRequests(self):
        self.assertFalse(self.testObj.echoRequests)

    def test_noSchemas(self):
        self.assertEqual(self.testObj.schemaInfo, [])
        self.assertIsNone(self.testObj.findSchemaInfo('dc'))

    def test_logger(self):
        self.assertIs(self.testObj.logger, defaultLogger)


class SRUServerConfigTestCase(unittest.TestCase):

    def setUp(self):
        self.testObj = SRUServerConfig.fromString(CONFIG)

    def test_settings(self):
        self.assertEqual(self.testObj.id, 'testServer')
        self.assertEqual(self.testObj.name, 'Test SRU endpoint')
        self.assertIs(self.testObj.defaultVersion, VERSION_2_0)
        self.assertEqual(self.testObj.get_setting('port'), 8080)
        self.assertEqual(self.testObj.numberOfRecords, 10)
        self.assertEqual(self.testObj.maximumRecords, 50)
        self.assertTrue(self.testObj.echoRequests)

    def test_baseUrl(self):
        self.assertEqual(self.testObj.baseUrl,
                         'http://sru.example.org:8080/books')

    def test_databaseInfo(self):
        titles = self.testObj.databaseInfo.title
        self.assertEqual([t.value for t in titles], ['Books', 'Buecher'])
        self.assertTrue(titles[0].primary)
        self.assertFalse(titles[1].primary)
        self.assertEqual(titles[1].lang, 'de')
        self.assertEqual(len(self.testObj.databaseInfo.description), 1)
        self.assertEqual(self.testObj.databaseInfo.author, [])

    def test_schemaInfo(self):
        self.assertEqual(len(self.testObj.schemaInfo), 2)
        dc = self.testObj.schemaInfo[0]
        self.assertEqual(dc.name, 'dc')
        self.assertFalse(dc.sort)
        self.assertTrue(dc.retrieve)
        self.assertEqual(dc.title[0].value, 'Dublin Core')
        mods = self.testObj.schemaInfo[1]
        self.assertTrue(mods.sort)
        self.assertIsNone(mods.location)

    def test_findSchemaInfo(self):
        dc = self.testObj.findSchemaInfo('dc')
        self.assertIs(self.testObj.findSchemaInfo(
            'info:srw/schema/1/dc-v1.1'), dc)
        self.assertIsNone(self.testObj.findSchemaInfo('marcxml'))
        self.assertIsNone(self.testObj.findSchemaInfo(None))

    def test_schemaLookups(self):
        self.assertEqual(self.testObj.getRecordSchemaIdentifier('mods'),
                         'info:srw/schema/1/mods-v3.4')
        self.assertEqual(self.testObj.getRecordSchemaName(
            'info:srw/schema/1/dc-v1.1'), 'dc')
        self.assertIsNone(self.testObj.getRecordSchemaIdentifier('marcxml'))
        self.assertIsNone(self.testObj.getRecordSchemaName(None))

    def test_override(self):
        "Check keyword arguments override the configuration."
        config = SRUServerConfig(etree.XML(CONFIG), host='example.com',
                                 port=80)
        self.assertEqual(config.baseUrl, 'http://example.com/books')

    def test_namespace(self):
        config = etree.XML(CONFIG)
        for e in list(config.iter(tag=etree.Element)):
            e.tag = '{%s}%s' % (CONFIG_NS, e.tag)
        config = SRUServerConfig(config)
        self.assertEqual(config.maximumRecords, 50)
        self.assertEqual(len(config.schemaInfo), 2)
        self.assertEqual(config.databaseInfo.title[0].value, 'Books')

    def test_moduleExample(self):
        "Check the example in the module documentation is a valid config."
        text = serverConfig.__doc__.split('::', 1)[1].strip()
        config = SRUServerConfig.fromString(text)
        self.assertEqual(config.name, 'Example SRU endpoint')
        self.assertIs(config.defaultVersion, VERSION_2_0)
        self.assertEqual(config.numberOfRecords, 10)
        self.assertEqual(config.maximumRecords, 50)
        self.assertEqual(config.baseUrl, 'http://sru.example.org/books')
        self.assertEqual(config.findSchemaInfo('dc').title[0].value,
                         'Dublin Core')


class SRUServerConfigFileTestCase(unittest.TestCase):

    def setUp(self):
        fd, self.path = mkstemp(suffix=".xml", prefix="testServerConfig")
        with os.fdopen(fd, 'w') as fh:
            fh.write(CONFIG)

    def tearDown(self):
        os.remove(self.path)

    def test_fromFile(self):
        config = SRUServerConfig.fromFile(self.path)
        self.assertEqual(config.get_setting('host'), 'sru.example.org')

    def test_fromFileSettings(self):
        config = SRUServerConfig.fromFile(self.path, maximumRecords='20')
        self.assertEqual(config.maximumRecords, 20)

    def test_missingFile(self):
        self.assertRaises(ConfigFileException, SRUServerConfig.fromFile,
                          self.path + '.missing')


class InvalidConfigTestCase(unittest.TestCase):

    def _config(self, settings):
        return '<config id="bad"><options>%s</options></config>' % ''.join(
            ['<setting type="%s">%s</setting>' % (k, v)
             for k, v in settings])

    def _assertInvalid(self, *settings):
        self.assertRaises(ConfigFileException, SRUServerConfig.fromString,
                          self._config(settings))

    def test_malformed(self):
        self.assertRaises(ConfigFileException, SRUServerConfig.fromString,
                          '<config><options></config>')

    def test_unknownSetting(self):
        self._assertInvalid(('colour', 'red'))

    def test_unknownKeyword(self):
        self.assertRaises(ConfigFileException, SRUServerConfig, colour=1)
        self.assertRaises(ConfigFileException, SRUServerConfig,
                          colour='red')

    def test_invalidInteger(self):
        self._assertInvalid(('maximumRecords', 'many'))

    def test_invalidVersion(self):
        self._assertInvalid(('defaultVersion', '3.0'))

    def test_invalidOption(self):
        self._assertInvalid(('echoRequests', '2'))
        self._assertInvalid(('defaultRecordXmlEscaping', 'json'))

    def test_versionRange(self):
        self._assertInvalid(('minVersion', '2.0'), ('maxVersion', '1.2'))

    def test_defaultVersionOutOfRange(self):
        self._assertInvalid(('minVersion', '2.0'))
        self._assertInvalid(('maxVersion', '1.1'))

    def test_counts(self):
        self._assertInvalid(('maximumRecords', '0'))
        self._assertInvalid(('numberOfTerms', '-5'))

    def test_numberGreaterThanMaximum(self):
        self._assertInvalid(('numberOfRecords', '300'))
        self._assertInvalid(('maximumTerms', '10'))

    def test_unknownElement(self):
        self.assertRaises(ConfigFileException, SRUServerConfig.fromString,
                          '<config id="bad"><foo/></config>')

    def test_schemaWithoutName(self):
        self.assertRaises(ConfigFileException, SRUServerConfig.fromString,
                          '<config id="bad"><schemaInfo>'
                          '<schema identifier="info:x"/>'
                          '</schemaInfo></config>')

    def test_duplicateSchema(self):
        self.assertRaises(ConfigFileException, SRUServerConfig.fromString,
                          '<config id="bad"><schemaInfo>'
                          '<schema identifier="info:x" name="x"/>'
                          '<schema identifier="info:y" name="x"/>'
                          '</schemaInfo></config>')

    def test_validRange(self):
        config = SRUServerConfig.fromString(self._config([
            ('minVersion', '1.2'), ('maxVersion', '1.2')]))
        self.assertIs(config.minVersion, VERSION_1_2)


class EffectiveLimitsTestCase(unittest.TestCase):

    def setUp(self):
        self.testObj = SRUServerConfig(numberOfRecords=10,
                                       maximumRecords=50,
                                       numberOfTerms=5,
                                       maximumTerms=20)

    def _request(self, parameters=None, operation=SEARCH_RETRIEVE,
                 **fields):
        return SRURequest(operation, VERSION_1_2, DiagnosticList(),
                          parameters, **fields)

    def test_maximumRecordsUnspecified(self):
        self.assertEqual(self.testObj.effectiveMaximumRecords(
            self._request()), 10)

    def test_maximumRecordsRequested(self):
        self.assertEqual(self.testObj.effectiveMaximumRecords(
            self._request(maximumRecords=0)), 0)
        self.assertEqual(self.testObj.effectiveMaximumRecords(
            self._request(maximumRecords=30)), 30)
        self.assertEqual(self.testObj.effectiveMaximumRecords(
            self._request(maximumRecords=300)), 50)

    def test_unlimitedResultSet(self):
        request = self._request({'x-unlimited-resultset': 'true'},
                                maximumRecords=300)
        # Not allowed by default
        self.assertEqual(self.testObj.effectiveMaximumRecords(request), 50)
        config = SRUServerConfig(allowOverrideMaximumRecords='1')
        self.assertEqual(config.effectiveMaximumRecords(request), -1)

    def test_maximumTerms(self):
        self.assertEqual(self.testObj.effectiveMaximumTerms(
            self._request(operation=SCAN)), 5)
        self.assertEqual(self.testObj.effectiveMaximumTerms(
            self._request(operation=SCAN, maximumTerms=100)), 20)

    def test_unlimitedTermList(self):
        request = self._request({'x-unlimited-termlist': ''},
                                operation=SCAN)
        config = SRUServerConfig(allowOverrideMaximumTerms=1)
        self.assertEqual(config.effectiveMaximumTerms(request), -1)

    def test_indentResponse(self):
        self.assertEqual(self.testObj.effectiveIndentResponse(), -1)
        request = self._request({'x-indent-response': '2'})
        self.assertEqual(self.testObj.effectiveIndentResponse(request), -1)
        config = SRUServerConfig(indentResponse='1',
                                 allowOverrideIndentResponse='1')
        self.assertEqual(config.effectiveIndentResponse(), 1)
        self.assertEqual(config.effectiveIndentResponse(request), 2)
        request = self._request({'x-indent-response': 'lots'})
        self.assertEqual(config.effectiveIndentResponse(request), 1)


class ConfigLoggerTestCase(unittest.TestCase):

    def test_loggerName(self):
        config = SRUServerConfig(loggerName='sruserver.test')
        self.assertIsInstance(config.logger, LoggingLogger)
        self.assertIsNot(config.logger, defaultLogger)
        self.assertEqual(config.logger.logger.name, 'sruserver.test')

    def test_logLevel(self):
        config = SRUServerConfig(logLevel='30')
        self.assertEqual(config.logger.minLevel, 30)

    def test_logPath(self):
        config = SRUServerConfig(logPath='stderr')
        self.assertIsInstance(config.logger, SimpleLogger)
        self.assertIs(config.logger.fileh, sys.stderr)

    def test_setLogger(self):
        config = SRUServerConfig()
        logger = LoggingLogger()
        config.logger = logger
        self.assertIs(config.logger, logger)


def load_tests(loader, tests, pattern):
    ltc = loader.loadTestsFromTestCase
    suite = ltc(SRUServerConfigDefaultsTestCase)
    suite.addTests(ltc(SRUServerConfigTestCase))
    suite.addTests(ltc(SRUServerConfigFileTestCase))
    suite.addTests(ltc(InvalidConfigTestCase))
    suite.addTests(ltc(EffectiveLimitsTestCase))
    suite.addTests(ltc(ConfigLoggerTestCase))
    return suite


if __name__ == '__main__':
    tr = unittest.TextTestRunner(verbosity=2)
    tr.run(load_tests(unittest.defaultTestLoader, [], 'test*.py'))
