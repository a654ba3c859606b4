"""sruserver Exceptions Unittests."""

import unittest

from sruserver import diagnostic as diag
from sruserver.diagnostic import Diagnostic
from sruserver.exceptions import SRUServerException, ConfigFileException, \
                                 ObjectAlreadyExistsException, SRUException


class SRUServerExceptionTestCase(unittest.TestCase):

    def test_reason(self):
        e = SRUServerException("Something went wrong")
        self.assertEqual(e.reason, "Something went wrong")
        self.assertEqual(str(e), "SRUServerException: Something went wrong")

    def test_subclassStr(self):
        e = ConfigFileException("Unknown Setting")
        self.assertEqual(str(e), "ConfigFileException: Unknown Setting")

    def test_hierarchy(self):
        self.assertTrue(issubclass(ObjectAlreadyExistsException,
                                   ConfigFileException))
        self.assertTrue(issubclass(ConfigFileException, SRUServerException))
        self.assertTrue(issubclass(SRUException, SRUServerException))


class SRUExceptionTestCase(unittest.TestCase):

    def test_toDiagnostic(self):
        e = SRUException("info:srv/diagnostic/1/1", "x", "bad")
        d = e.toDiagnostic()
        self.assertIsInstance(d, Diagnostic)
        self.assertEqual(d.uri, "info:srv/diagnostic/1/1")
        self.assertEqual(d.details, "x")
        self.assertEqual(d.message, "bad")

    def test_uriRequired(self):
        self.assertRaises(TypeError, SRUException, None)
        self.assertRaises(ValueError, SRUException, "")
        self.assertRaises(ValueError, SRUException, "   ")

    def test_uriTrimmed(self):
        e = SRUException("  info:srw/diagnostic/1/1 \n")
        self.assertEqual(e.uri, "info:srw/diagnostic/1/1")
        self.assertIsNone(e.details)
        self.assertIsNone(e.message)

    def test_fromCode(self):
        e = SRUException.fromCode(diag.UNSUPPORTED_VERSION, details="2.0")
        self.assertEqual(e.uri, "info:srw/diagnostic/1/5")
        self.assertEqual(e.details, "2.0")
        self.assertEqual(e.message, "Unsupported version")

    def test_cause(self):
        cause = ValueError("not a number")
        e = SRUException.fromCode(diag.UNSUPPORTED_PARAMETER_VALUE,
                                  cause=cause)
        self.assertIs(e.cause, cause)
        self.assertIs(e.__cause__, cause)

    def test_raiseAndCatch(self):
        with self.assertRaises(SRUServerException) as cm:
            raise SRUException.fromCode(diag.GENERAL_SYSTEM_ERROR)
        self.assertEqual(cm.exception.toDiagnostic().code, 1)


def load_tests(loader, tests, pattern):
    ltc = loader.loadTestsFromTestCase
    suite = ltc(SRUServerExceptionTestCase)
    suite.addTests(ltc(SRUExceptionTestCase))
    return suite


if __name__ == '__main__':
    tr = unittest.TextTestRunner(verbosity=2)
    tr.run(load_tests(unittest.defaultTestLoader, [], 'test*.py'))
