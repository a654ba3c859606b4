"""sruserver protocol Unittests.

Tests for SRU versions, operations, resolving raw operation and version
parameters and the namespaces used for each version.
"""

import unittest

from sruserver import protocol
from sruserver.exceptions import SRUException
from sruserver.namespaces import getNamespaces, LEGACY_NAMESPACES, \
                                 OASIS_NAMESPACES
from sruserver.protocol import VERSION_1_1, VERSION_1_2, VERSION_2_0, \
                               EXPLAIN, SEARCH_RETRIEVE, SCAN


class SRUVersionTestCase(unittest.TestCase):

    def test_order(self):
        self.assertTrue(VERSION_1_1 < VERSION_1_2 < VERSION_2_0)
        self.assertTrue(VERSION_2_0 >= VERSION_1_2)
        self.assertEqual(sorted([VERSION_2_0, VERSION_1_1, VERSION_1_2]),
                         [VERSION_1_1, VERSION_1_2, VERSION_2_0])

    def test_str(self):
        self.assertEqual(str(VERSION_1_2), "1.2")
        self.assertEqual(VERSION_2_0.versionString, "2.0")

    def test_isIn(self):
        self.assertTrue(VERSION_1_2.isIn(VERSION_1_1, VERSION_2_0))
        self.assertTrue(VERSION_1_1.isIn(VERSION_1_1, VERSION_1_1))
        self.assertFalse(VERSION_2_0.isIn(VERSION_1_1, VERSION_1_2))

    def test_isInNone(self):
        self.assertRaises(TypeError, VERSION_1_2.isIn, None, VERSION_2_0)
        self.assertRaises(TypeError, VERSION_1_2.isIn, VERSION_1_1, None)

    def test_isInBadRange(self):
        self.assertRaises(ValueError, VERSION_1_2.isIn,
                          VERSION_2_0, VERSION_1_1)

    def test_parseVersion(self):
        self.assertIs(protocol.parseVersion("1.1"), VERSION_1_1)
        self.assertIs(protocol.parseVersion("2.0"), VERSION_2_0)
        self.assertIsNone(protocol.parseVersion("3.0"))


class ResolveTestCase(unittest.TestCase):

    def _assertDiagnostic(self, code, *args, **kwargs):
        with self.assertRaises(SRUException) as cm:
            protocol.resolve(*args, **kwargs)
        self.assertEqual(cm.exception.toDiagnostic().code, code)
        return cm.exception

    def test_explicit(self):
        self.assertEqual(protocol.resolve("scan", "1.1"),
                         (SCAN, VERSION_1_1))
        self.assertEqual(protocol.resolve("searchRetrieve", "2.0"),
                         (SEARCH_RETRIEVE, VERSION_2_0))

    def test_defaultVersion(self):
        self.assertEqual(protocol.resolve("explain", None),
                         (EXPLAIN, VERSION_1_2))
        self.assertEqual(protocol.resolve("explain", None, VERSION_2_0),
                         (EXPLAIN, VERSION_2_0))

    def test_unsupportedVersion(self):
        e = self._assertDiagnostic(5, "explain", "3.0")
        # Details give the highest supported version
        self.assertEqual(e.details, "2.0")

    def test_emptyVersion(self):
        self._assertDiagnostic(5, "explain", "")

    def test_unsupportedOperation(self):
        e = self._assertDiagnostic(4, "update", "1.2")
        self.assertEqual(e.details, "update")

    def test_emptyOperation(self):
        self._assertDiagnostic(4, " ", "1.2")

    def test_noOperation1x(self):
        # 1.x defaults to explain, even if there is a query
        self.assertEqual(protocol.resolve(None, "1.2", parameters={
            'query': 'fish'}), (EXPLAIN, VERSION_1_2))

    def test_noOperation20(self):
        self.assertEqual(protocol.resolve(None, "2.0", parameters={
            'query': 'fish'}), (SEARCH_RETRIEVE, VERSION_2_0))
        self.assertEqual(protocol.resolve(None, "2.0", parameters={
            'queryType': 'cql'}), (SEARCH_RETRIEVE, VERSION_2_0))
        self.assertEqual(protocol.resolve(None, "2.0", parameters={
            'scanClause': 'dc.title=fish'}), (SCAN, VERSION_2_0))
        self.assertEqual(protocol.resolve(None, "2.0"),
                         (EXPLAIN, VERSION_2_0))


class NamespacesTestCase(unittest.TestCase):

    def test_legacy(self):
        self.assertIs(getNamespaces(VERSION_1_1), LEGACY_NAMESPACES)
        self.assertIs(getNamespaces(VERSION_1_2), LEGACY_NAMESPACES)
        self.assertEqual(LEGACY_NAMESPACES.responseNS,
                         "http://www.loc.gov/zing/srw/")

    def test_oasis(self):
        ns = getNamespaces(VERSION_2_0)
        self.assertIs(ns, OASIS_NAMESPACES)
        self.assertNotEqual(ns.responseNS, ns.scanNS)
        self.assertEqual(ns.scanNsmap[ns.scanPrefix], ns.scanNS)

    def test_unknown(self):
        self.assertRaises(ValueError, getNamespaces, None)


def load_tests(loader, tests, pattern):
    ltc = loader.loadTestsFromTestCase
    suite = ltc(SRUVersionTestCase)
    suite.addTests(ltc(ResolveTestCase))
    suite.addTests(ltc(NamespacesTestCase))
    return suite


if __name__ == '__main__':
    tr = unittest.TextTestRunner(verbosity=2)
    tr.run(load_tests(unittest.defaultTestLoader, [], 'test*.py'))
