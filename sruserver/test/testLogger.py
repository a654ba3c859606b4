"""sruserver Logger Unittests.

Logger configurations may be customized by the user. For the purposes of
unittesting, Logger instances will be instantiated using configurations
defined within this testing module, and tests carried out on those instances
using data defined in this module.
"""

import os
import unittest

from tempfile import mktemp, mkdtemp

from lxml import etree

from sruserver.cqlParser import parse as cqlparse
from sruserver.exceptions import ConfigFileException
from sruserver.logger import SimpleLogger, LoggingLogger, buildLogger


class SimpleLoggerTestCase(unittest.TestCase):
    "Tests for file based Logger."

    def _get_config(self):
        return etree.XML('''\
        <config id="testLogger">
          <paths>
              <path type="filePath">{0}</path>
          </paths>
          <options>
            <!-- Do not cache lines -->
            <setting type="cacheLength">0</setting>
          </options>
        </config>'''.format(self.logPath))

    def _lastLine(self):
        line = None
        with open(self.logPath, 'r') as fh:
            for line in fh:
                pass
        return line

    def setUp(self):
        # Get a tempfile name
        self.logPath = mktemp(suffix=".log", prefix="testLogger")
        self.testObj = SimpleLogger(self._get_config())

    def tearDown(self):
        self.testObj._close()
        # Remove log file
        os.remove(self.logPath)

    def test_fileExists(self):
        "Check log file was created."
        self.assertTrue(os.path.exists(self.logPath))

    def test_logMessage(self):
        "Check a given message is written to the log file."
        self.testObj.log("This is my log message")
        # Logger's line cache should be empty
        self.assertListEqual(self.testObj.lineCache, [])
        line = self._lastLine()
        self.assertIn("This is my log message", line)
        # N.B. Logger should append a newline after each message
        self.assertTrue(line.endswith("\n"))

    def test_logNotSet(self):
        "Check NOTSET message is written to the log file."
        self.testObj.log_lvl(0, "This is my log message")
        line = self._lastLine()
        self.assertIn("NOTSET", line)
        self.assertIn("This is my log message", line)
        self.assertTrue(line.endswith("\n"))
        # Logger's line cache should now be empty
        self.assertListEqual(self.testObj.lineCache, [])

    def test_logLevels(self):
        "Check the level name is written for each level."
        for fn, name in [(self.testObj.log_debug, 'DEBUG'),
                         (self.testObj.log_info, 'INFO'),
                         (self.testObj.log_warning, 'WARNING'),
                         (self.testObj.log_error, 'ERROR'),
                         (self.testObj.log_critical, 'CRITICAL')]:
            fn("Message at level %s", name)
            line = self._lastLine()
            self.assertIn("] %s: Message at level %s" % (name, name), line)

    def test_logArguments(self):
        self.testObj.log_lvl(20, "%d records in %s", 5, "books")
        self.assertIn("INFO: 5 records in books", self._lastLine())

    def test_logFormat(self):
        self.testObj.log_info("Formatted")
        line = self._lastLine()
        # [YYYY-mm-dd HH:MM:SS] LEVEL: message
        self.assertEqual(line[0], '[')
        self.assertEqual(line[20:], "] INFO: Formatted\n")

    def test_logFunction(self):
        self.testObj.log_fn(self.testObj, "search", cqlparse('fish'),
                            maximum=10)
        line = self._lastLine()
        self.assertIn('testLogger.search(', line)
        self.assertIn("cql.serverchoice = \"fish\"", line)
        self.assertIn('maximum=10', line)


class SimpleLoggerMinLevelTestCase(SimpleLoggerTestCase):
    "Tests for file based Logger with a minimum level and a line cache."

    def _get_config(self):
        return etree.XML('''\
        <config id="testLogger">
          <paths>
              <path type="filePath">{0}</path>
          </paths>
          <options>
            <setting type="cacheLength">2</setting>
            <setting type="minLevel">30</setting>
          </options>
        </config>'''.format(self.logPath))

    def test_logMessage(self):
        "Check messages are cached until the cache is full."
        self.testObj.log_warning("first")
        self.assertEqual(len(self.testObj.lineCache), 1)
        self.assertIsNone(self._lastLine())
        self.testObj.log_warning("second")
        self.testObj.log_warning("third")
        self.assertListEqual(self.testObj.lineCache, [])
        self.assertIn("third", self._lastLine())

    def test_logNotSet(self):
        "Check messages without level are not logged below minLevel."
        self.testObj.log_lvl(0, "This is my log message")
        self.assertListEqual(self.testObj.lineCache, [])

    def test_minLevel(self):
        self.testObj.log_debug("debug")
        self.testObj.log_info("info")
        self.assertListEqual(self.testObj.lineCache, [])
        self.testObj.log_error("error")
        self.assertEqual(len(self.testObj.lineCache), 1)

    def test_flush(self):
        with self.testObj as logger:
            logger.log_critical("critical")
        self.assertListEqual(self.testObj.lineCache, [])
        self.assertIn("CRITICAL: critical", self._lastLine())

    def test_logLevels(self):
        self.testObj.log_error("Message at level %s", "ERROR")
        self.testObj._flush()
        self.assertIn("] ERROR: Message at level ERROR", self._lastLine())

    def test_logArguments(self):
        self.testObj.log_lvl(40, "%d records in %s", 5, "books")
        self.testObj._flush()
        self.assertIn("ERROR: 5 records in books", self._lastLine())

    def test_logFormat(self):
        self.testObj.log_warning("Formatted")
        self.testObj._flush()
        self.assertEqual(self._lastLine()[20:], "] WARNING: Formatted\n")

    def test_logFunction(self):
        self.testObj.log_fn(self.testObj, "search")
        # Default level is below minLevel
        self.assertListEqual(self.testObj.lineCache, [])


class SimpleLoggerPathTestCase(unittest.TestCase):

    def setUp(self):
        self.dirPath = mkdtemp(prefix="testLogger")

    def tearDown(self):
        logPath = os.path.join(self.dirPath, 'sru.log')
        if os.path.exists(logPath):
            os.remove(logPath)
        os.rmdir(self.dirPath)

    def test_relativePath(self):
        "Check relative paths are relative to defaultPath."
        logger = SimpleLogger(etree.XML('''\
        <config id="relativeLogger">
          <paths>
              <path type="defaultPath">{0}</path>
              <path type="filePath">sru.log</path>
          </paths>
        </config>'''.format(self.dirPath)))
        logger.log_info("relative")
        logger._close()
        self.assertTrue(os.path.exists(os.path.join(self.dirPath,
                                                    'sru.log')))

    def test_missingPath(self):
        self.assertRaises(ConfigFileException, SimpleLogger,
                          etree.XML('<config id="noPath"/>'))

    def test_buildLogger(self):
        logPath = os.path.join(self.dirPath, 'sru.log')
        logger = buildLogger(logPath, logLevel=20)
        self.assertIsInstance(logger, SimpleLogger)
        self.assertEqual(logger.minLevel, 20)
        logger._close()


class LoggingLoggerTestCase(unittest.TestCase):
    "Tests for Logger passing messages to the logging module."

    def setUp(self):
        self.testObj = buildLogger(loggerName='sruserver.test.logger')

    def test_type(self):
        self.assertIsInstance(self.testObj, LoggingLogger)

    def test_logMessage(self):
        with self.assertLogs('sruserver.test.logger', level='DEBUG') as cm:
            self.testObj.log("This is my log message")
        self.assertEqual(cm.output,
                         ['INFO:sruserver.test.logger:This is my log '
                          'message'])

    def test_logArguments(self):
        with self.assertLogs('sruserver.test.logger', level='DEBUG') as cm:
            self.testObj.log_warning("%d records in %s", 5, "books")
            self.testObj.log_debug("debugging")
        self.assertEqual(cm.output,
                         ['WARNING:sruserver.test.logger:5 records in books',
                          'DEBUG:sruserver.test.logger:debugging'])

    def test_minLevel(self):
        logger = buildLogger(loggerName='sruserver.test.logger', logLevel=30)
        with self.assertLogs('sruserver.test.logger', level='DEBUG') as cm:
            logger.log_info("info")
            logger.log_error("error")
        self.assertEqual(cm.output, ['ERROR:sruserver.test.logger:error'])

    def test_rootLogger(self):
        logger = LoggingLogger(etree.XML('<config id="rootLogger"/>'))
        self.assertEqual(logger.logger.name, 'root')


def load_tests(loader, tests, pattern):
    ltc = loader.loadTestsFromTestCase
    suite = ltc(SimpleLoggerTestCase)
    suite.addTests(ltc(SimpleLoggerMinLevelTestCase))
    suite.addTests(ltc(SimpleLoggerPathTestCase))
    suite.addTests(ltc(LoggingLoggerTestCase))
    return suite


if __name__ == '__main__':
    tr = unittest.TextTestRunner(verbosity=2)
    tr.run(load_tests(unittest.defaultTestLoader, [], 'test*.py'))
