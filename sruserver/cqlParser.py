"""CQL (Contextual Query Language) parser.

Parses a CQL query string into a tree of Triple (boolean combination) and
SearchClause objects. Implements CQL 1.1 and CQL 1.2 (which adds ``sortby``).

Usage::

    >>> from sruserver.cqlParser import parse
    >>> q = parse('dc.title any "fish" and dc.creator = sanderson')
    >>> q.toCQL()
    '(dc.title any "fish") and (dc.creator = "sanderson")'
"""

import re

from xml.sax.saxutils import escape

from sruserver import diagnostic as diag
from sruserver.exceptions import SRUException


serverChoiceRelation = "="
serverChoiceIndex = "cql.serverchoice"

order = ['==', '=', '>', '>=', '<', '<=', '<>']
modifierSeparator = "/"
booleans = ['and', 'or', 'not', 'prox']
namedRelations = ['all', 'any', 'adj', 'exact', 'within', 'encloses', 'scr']
sortWord = "sortby"

reservedPrefixes = {"srw": "http://www.loc.gov/zing/cql/srw-indexes/v1.0/",
                    "cql": "info:srw/cql-context-set/1/cql-v1.2"}

XCQLNamespace = "http://www.loc.gov/zing/cql/xcql/"

errorOnEmptyTerm = False

# Parser compatibility levels
V1_1 = 1
V1_2 = 2


class Diagnostic(SRUException):
    """A CQL parsing problem."""

    def __init__(self, code=diag.QUERY_SYNTAX_ERROR,
                 message="Malformed Query", details=None):
        SRUException.__init__(self, diag.diagnosticUri(code), details, message)
        self.code = code


class PrefixableObject(object):
    "Root object for triple and searchClause"

    def __init__(self):
        self.prefixes = {}
        self.parent = None
        self.sortKeys = []

    def toXCQL(self, depth=0):
        # Just generate our prefixes
        if not self.prefixes:
            return ""
        space = "  " * depth
        xml = ['%s<prefixes>\n' % (space)]
        for p in sorted(self.prefixes):
            xml.append("%s  <prefix>\n" % space)
            xml.append("%s    <name>%s</name>\n" % (space, escape(p)))
            xml.append("%s    <identifier>%s</identifier>\n" %
                       (space, escape(self.prefixes[p])))
            xml.append("%s  </prefix>\n" % space)
        xml.append("%s</prefixes>\n" % (space))
        return ''.join(xml)

    def _sortKeysToXCQL(self, depth):
        if not self.sortKeys:
            return ""
        space = "  " * depth
        xml = ["%s<sortKeys>\n" % space]
        for key in self.sortKeys:
            xml.append(key.toXCQL(depth + 1))
        xml.append("%s</sortKeys>\n" % space)
        return ''.join(xml)

    def _sortKeysToCQL(self):
        if not self.sortKeys:
            return ""
        return " %s %s" % (sortWord, " ".join([k.toCQL()
                                                for k in self.sortKeys]))

    def addPrefix(self, name, identifier):
        # Prefix names are case insensitive
        name = name.lower()
        if name in self.prefixes:
            raise Diagnostic(
                diag.QUERY_FEATURE_UNSUPPORTED,
                "Prefix redefined",
                name
            )
        self.prefixes[name] = identifier

    def resolvePrefix(self, name):
        # Climb tree
        name = name.lower()
        if name in self.prefixes:
            return self.prefixes[name]
        elif self.parent is not None:
            return self.parent.resolvePrefix(name)
        elif name in reservedPrefixes:
            return reservedPrefixes[name]
        return None

    def _prefixesToCQL(self):
        bits = []
        for p in sorted(self.prefixes):
            if p:
                bits.append('> %s = "%s" ' % (p, self.prefixes[p]))
            else:
                bits.append('> "%s" ' % self.prefixes[p])
        return ''.join(bits)


class PrefixedObject(object):
    "Root object for relation, relationModifier and index"

    def __init__(self, val):
        self.prefix = ""
        self.prefixURI = ""
        self.parent = None
        if val and val[0] == '"' and val[-1] == '"':
            raise Diagnostic(diag.INVALID_OR_UNSUPPORTED_USE_OF_QUOTES,
                             "Invalid or unsupported use of quotes",
                             val)
        if val.find('.') > -1:
            (self.prefix, self.value) = val.split('.', 1)
        else:
            self.value = val

    def __str__(self):
        return self.toCQL()

    def __repr__(self):
        return "<%s %s>" % (self.__class__.__name__, self.toCQL())

    def toCQL(self):
        if self.prefix:
            return "%s.%s" % (self.prefix, self.value)
        return self.value

    def toXCQL(self, depth=0):
        space = "  " * depth
        return "%s<%s>%s</%s>\n" % (space, self.__class__.__name__.lower(),
                                    escape(self.toCQL()),
                                    self.__class__.__name__.lower())

    def resolvePrefix(self):
        if not self.prefixURI and self.prefix and self.parent is not None:
            self.prefixURI = self.parent.resolvePrefix(self.prefix)
        return self.prefixURI


class ModifiableObject(object):

    def __getitem__(self, k):
        if isinstance(k, int):
            try:
                return self.modifiers[k]
            except IndexError:
                return None
        for m in self.modifiers:
            if str(m.type) == k or m.type.value == k:
                return m
        return None

    def _modifiersToCQL(self):
        return ''.join(["/%s" % m.toCQL() for m in self.modifiers])

    def _modifiersToXCQL(self, depth):
        if not self.modifiers:
            return ""
        space = "  " * depth
        xml = ["%s<modifiers>\n" % space]
        for m in self.modifiers:
            xml.append(m.toXCQL(depth + 1))
        xml.append("%s</modifiers>\n" % space)
        return ''.join(xml)


class Triple(PrefixableObject):
    "Object to represent a CQL triple"

    def __init__(self, leftOperand=None, boolean=None, rightOperand=None):
        PrefixableObject.__init__(self)
        self.leftOperand = leftOperand
        self.boolean = boolean
        self.rightOperand = rightOperand

    def __repr__(self):
        return "<Triple %s>" % self.toCQL()

    def toXCQL(self, depth=0, namespace=XCQLNamespace):
        "Create the XCQL representation of the object"
        space = "  " * depth
        if depth == 0:
            xml = ['<triple xmlns="%s">\n' % (namespace)]
        else:
            xml = ['%s<triple>\n' % (space)]
        xml.append(PrefixableObject.toXCQL(self, depth + 1))
        xml.append(self.boolean.toXCQL(depth + 1))
        xml.append("%s  <leftOperand>\n" % (space))
        xml.append(self.leftOperand.toXCQL(depth + 2))
        xml.append("%s  </leftOperand>\n" % (space))
        xml.append("%s  <rightOperand>\n" % (space))
        xml.append(self.rightOperand.toXCQL(depth + 2))
        xml.append("%s  </rightOperand>\n" % (space))
        xml.append(self._sortKeysToXCQL(depth + 1))
        xml.append("%s</triple>\n" % (space))
        return ''.join(xml)

    def toCQL(self):
        txt = [self._prefixesToCQL()]
        txt.append("(%s) %s (%s)" % (self.leftOperand.toCQL(),
                                     self.boolean.toCQL(),
                                     self.rightOperand.toCQL()))
        txt.append(self._sortKeysToCQL())
        return ''.join(txt)


class SearchClause(PrefixableObject):
    "Object to represent a CQL searchClause"

    def __init__(self, ind, rel, t):
        PrefixableObject.__init__(self)
        self.index = ind
        self.relation = rel
        self.term = t
        ind.parent = self
        rel.parent = self
        t.parent = self

    def __repr__(self):
        return "<SearchClause %s>" % self.toCQL()

    def toXCQL(self, depth=0, namespace=XCQLNamespace):
        "Produce XCQL version of the object"
        space = "  " * depth
        if depth == 0:
            xml = ['<searchClause xmlns="%s">\n' % (namespace)]
        else:
            xml = ['%s<searchClause>\n' % (space)]
        xml.append(PrefixableObject.toXCQL(self, depth + 1))
        xml.append(self.index.toXCQL(depth + 1))
        xml.append(self.relation.toXCQL(depth + 1))
        xml.append(self.term.toXCQL(depth + 1))
        xml.append(self._sortKeysToXCQL(depth + 1))
        xml.append("%s</searchClause>\n" % (space))
        return ''.join(xml)

    def toCQL(self):
        text = [self._prefixesToCQL()]
        text.append('%s %s %s' % (self.index.toCQL(), self.relation.toCQL(),
                                  self.term.toCQL()))
        text.append(self._sortKeysToCQL())
        return ''.join(text)


class Index(PrefixedObject):
    "Object to represent a CQL index"


class Relation(PrefixedObject, ModifiableObject):
    "Object to represent a CQL relation"

    def __init__(self, rel, mods=None):
        PrefixedObject.__init__(self, rel.lower())
        self.modifiers = mods or []
        for m in self.modifiers:
            m.parent = self

    def toXCQL(self, depth=0):
        "Create XCQL representation of object"
        space = "  " * depth
        xml = ["%s<relation>\n" % space]
        xml.append("%s  <value>%s</value>\n" % (space,
                                                escape(PrefixedObject.toCQL(
                                                    self))))
        xml.append(self._modifiersToXCQL(depth + 1))
        xml.append("%s</relation>\n" % space)
        return ''.join(xml)

    def toCQL(self):
        return PrefixedObject.toCQL(self) + self._modifiersToCQL()


class Term(object):
    "Object to represent a CQL term"

    def __init__(self, v):
        self.parent = None
        if v in order or v == modifierSeparator:
            raise Diagnostic(diag.QUERY_SYNTAX_ERROR,
                             "Expected term, got relation symbol",
                             v)
        if v and v[0] == '"' and v[-1] == '"' and len(v) > 1:
            v = v[1:-1]
            v = v.replace('\\"', '"')
        if not v and errorOnEmptyTerm:
            raise Diagnostic(diag.EMPTY_TERM_UNSUPPORTED,
                             "Empty term unsupported")
        self.value = v

    def __str__(self):
        return self.value

    def __repr__(self):
        return "<Term %s>" % self.toCQL()

    def toCQL(self):
        return '"%s"' % self.value.replace('"', '\\"')

    def toXCQL(self, depth=0):
        return "%s<term>%s</term>\n" % ("  " * depth, escape(self.value))


class Boolean(ModifiableObject):
    "Object to represent a CQL boolean"

    def __init__(self, bool, mods=None):
        self.value = bool.lower()
        self.modifiers = mods or []
        self.parent = None

    def __str__(self):
        return self.toCQL()

    def toXCQL(self, depth=0):
        "Create XCQL representation of object"
        space = "  " * depth
        xml = ["%s<boolean>\n" % space]
        xml.append("%s  <value>%s</value>\n" % (space, escape(self.value)))
        xml.append(self._modifiersToXCQL(depth + 1))
        xml.append("%s</boolean>\n" % space)
        return ''.join(xml)

    def toCQL(self):
        return self.value + self._modifiersToCQL()


class ModifierType(PrefixedObject):
    "Object to represent a relation or boolean modifier's type"


class ModifierClause(object):
    "Object to represent a relation or boolean modifier"

    def __init__(self, type, comp="", val=""):
        self.type = ModifierType(type)
        self.type.parent = self
        self.comparison = comp
        self.value = val
        self.parent = None

    def __str__(self):
        return self.toCQL()

    def resolvePrefix(self, name):
        # parent is the modified relation, boolean or sort key
        if self.parent is not None and self.parent.parent is not None:
            return self.parent.parent.resolvePrefix(name)
        return reservedPrefixes.get(name.lower())

    def toXCQL(self, depth=0):
        space = "  " * depth
        xml = ["%s<modifier>\n" % space]
        xml.append("%s  <type>%s</type>\n" % (space, escape(str(self.type))))
        if self.value:
            xml.append("%s  <comparison>%s</comparison>\n" %
                       (space, escape(self.comparison)))
            xml.append("%s  <value>%s</value>\n" %
                       (space, escape(self.value)))
        xml.append("%s</modifier>\n" % space)
        return ''.join(xml)

    def toCQL(self):
        if self.value:
            return "%s%s%s" % (self.type, self.comparison, self.value)
        return str(self.type)


class SortKey(ModifiableObject):
    "Object to represent a CQL 1.2 sort key"

    def __init__(self, index, mods=None):
        self.index = index
        index.parent = self
        self.modifiers = mods or []
        for m in self.modifiers:
            m.parent = self
        self.parent = None

    def resolvePrefix(self, name):
        if self.parent is not None:
            return self.parent.resolvePrefix(name)
        return reservedPrefixes.get(name.lower())

    def toCQL(self):
        return self.index.toCQL() + self._modifiersToCQL()

    def toXCQL(self, depth=0):
        space = "  " * depth
        xml = ["%s<key>\n" % space]
        xml.append(self.index.toXCQL(depth + 1))
        xml.append(self._modifiersToXCQL(depth + 1))
        xml.append("%s</key>\n" % space)
        return ''.join(xml)


class CQLLexer(object):
    """Split a CQL query string into tokens.

    Quoted strings are returned with their surrounding quotes, so that the
    parser can tell ``"and"`` (a term) from ``and`` (a boolean).
    """

    tokenRe = re.compile(r'''
        (?P<space>\s+)
      | (?P<quoted>"(?:[^"\\]|\\.)*")
      | (?P<symbol>==|<>|<=|>=|[<>=/()])
      | (?P<word>[^\s()=<>"/]+)
    ''', re.VERBOSE | re.DOTALL)

    def __init__(self, query):
        self.query = query

    def tokens(self):
        pos = 0
        tokens = []
        while pos < len(self.query):
            m = self.tokenRe.match(self.query, pos)
            if m is None:
                # Only an unterminated quote can fail to match
                raise Diagnostic(diag.INVALID_OR_UNSUPPORTED_USE_OF_QUOTES,
                                 "Unterminated quoted string",
                                 self.query[pos:])
            pos = m.end()
            if m.lastgroup != 'space':
                tokens.append(m.group(m.lastgroup))
        return tokens


class CQLParser(object):
    "Token parser to create object structure for CQL"

    # Limits keeping recursion over the query tree bounded
    maxDepth = 64
    maxBooleans = 128

    def __init__(self, tokens, compat=V1_2):
        self.tokens = tokens
        self.position = 0
        self.compat = compat
        self.depth = 0
        self.booleanCount = 0
        self.currentToken = ""
        self.nextToken = ""
        self.fetch_token()

    def fetch_token(self):
        "Read ahead one token"
        tokens = self.tokens
        self.currentToken = tokens[self.position] \
            if self.position < len(tokens) else ""
        self.nextToken = tokens[self.position + 1] \
            if self.position + 1 < len(tokens) else ""
        self.position += 1

    def is_boolean(self, token):
        return token.lower() in booleans

    def is_sort(self, token):
        return self.compat >= V1_2 and token.lower() == sortWord

    def is_relation(self, token):
        if token in order:
            return True
        tok = token.lower()
        if tok in namedRelations:
            return True
        # Prefixed relation, e.g. cql.within
        return '.' in tok and not tok.startswith('"')

    def prefixes(self):
        "Create prefixes dictionary"
        prefs = {}
        while self.currentToken == ">":
            # Strip off maps
            self.fetch_token()
            if self.nextToken == "=":
                # Named map
                name = self.currentToken
                self.fetch_token()  # = is current
                self.fetch_token()  # id is current
                identifier = self.currentToken
                self.fetch_token()
            else:
                name = ""
                identifier = self.currentToken
                self.fetch_token()
            if not identifier:
                raise Diagnostic(diag.QUERY_SYNTAX_ERROR,
                                 "Expected prefix identifier, got end of "
                                 "query")
            if identifier[0] == '"' and identifier[-1] == '"':
                identifier = identifier[1:-1]
            if name.lower() in prefs:
                raise Diagnostic(diag.QUERY_FEATURE_UNSUPPORTED,
                                 "Prefix redefined",
                                 name)
            prefs[name.lower()] = identifier
        return prefs

    def query(self):
        "Parse query"
        prefs = self.prefixes()
        left = self.subQuery()
        while True:
            if not self.currentToken:
                break
            if self.is_boolean(self.currentToken):
                boolobject = self.boolean()
                right = self.subQuery()
                # Setup Left Object
                trip = Triple(left, boolobject, right)
                left.parent = trip
                right.parent = trip
                boolobject.parent = trip
                left = trip
            else:
                break
        for p in prefs:
            left.addPrefix(p, prefs[p])
        return left

    def sortKeys(self):
        "Parse CQL 1.2 sort specification"
        # Skip sortby
        self.fetch_token()
        keys = []
        while self.currentToken and self.currentToken != ')':
            if self.currentToken in order or \
                    self.currentToken in ['(', modifierSeparator]:
                raise Diagnostic(diag.QUERY_SYNTAX_ERROR,
                                 "Expected sort index",
                                 self.currentToken)
            index = Index(self.currentToken)
            self.fetch_token()
            mods = self.modifiers()
            keys.append(SortKey(index, mods))
        if not keys:
            raise Diagnostic(diag.QUERY_SYNTAX_ERROR,
                             "Expected sort index, got end of query")
        return keys

    def nestedQuery(self):
        "Parse a query nested in parentheses or prefix assignments"
        self.depth += 1
        if self.depth > self.maxDepth:
            raise Diagnostic(diag.QUERY_SYNTAX_ERROR,
                             "Query nested too deeply",
                             "More than %d levels of nesting" % self.maxDepth)
        object = self.query()
        self.depth -= 1
        return object

    def subQuery(self):
        "Find either query or clause"
        if self.currentToken == "(":
            self.fetch_token()  # Skip (
            object = self.nestedQuery()
            if self.currentToken == ")":
                self.fetch_token()  # Skip )
            else:
                raise Diagnostic(
                    diag.INVALID_OR_UNSUPPORTED_USE_OF_PARENTHESES,
                    "Invalid or unsupported use of parentheses",
                    self.currentToken or "end of query"
                )
        else:
            prefs = self.prefixes()
            if prefs:
                object = self.nestedQuery()
                for p in prefs:
                    object.addPrefix(p, prefs[p])
            else:
                object = self.clause()
        return object

    def clause(self):
        "Find searchClause"
        bool = self.is_boolean(self.nextToken)
        sort = self.is_sort(self.nextToken)
        if (not bool and not sort and
                self.currentToken not in ['', '(', ')'] + order and
                self.nextToken not in [')', '(', '']):
            index = Index(self.currentToken)
            self.fetch_token()  # Skip Index
            rel = self.relation()
            if self.currentToken == '':
                raise Diagnostic(diag.QUERY_SYNTAX_ERROR,
                                 "Expected Term, got end of query.")
            term = Term(self.currentToken)
            self.fetch_token()  # Skip Term
            irt = SearchClause(index, rel, term)
        elif (self.currentToken and
              self.currentToken not in ['(', ')'] + order and
              (bool or sort or self.nextToken in [')', ''])):
            irt = SearchClause(Index(serverChoiceIndex),
                               Relation(serverChoiceRelation),
                               Term(self.currentToken))
            self.fetch_token()
        else:
            if self.currentToken:
                details = "Expected Boolean or Relation but got: " + \
                          self.currentToken
            else:
                details = "Expected search clause, got end of query."
            raise Diagnostic(diag.QUERY_SYNTAX_ERROR, "Query syntax error",
                             details)
        if self.is_sort(self.currentToken):
            irt.sortKeys = self.sortKeys()
            for key in irt.sortKeys:
                key.parent = irt
        return irt

    def modifiers(self):
        mods = []
        while self.currentToken == modifierSeparator:
            self.fetch_token()
            mod = self.currentToken
            if not mod or mod in order or mod in ['(', ')']:
                raise Diagnostic(diag.QUERY_SYNTAX_ERROR,
                                 "Expected modifier name",
                                 mod or "end of query")
            self.fetch_token()
            if self.currentToken in order:
                comp = self.currentToken
                self.fetch_token()
                value = self.currentToken
                if not value:
                    raise Diagnostic(diag.QUERY_SYNTAX_ERROR,
                                     "Expected modifier value, got end of "
                                     "query")
                self.fetch_token()
                mods.append(ModifierClause(mod, comp, value))
            else:
                mods.append(ModifierClause(mod))
        return mods

    def boolean(self):
        "Find boolean"
        self.currentToken = self.currentToken.lower()
        self.booleanCount += 1
        if self.booleanCount > self.maxBooleans:
            raise Diagnostic(diag.TOO_MANY_BOOLEAN_OPERATORS_IN_QUERY,
                             "Too many boolean operators in query",
                             "More than %d boolean operators" %
                             self.maxBooleans)
        if self.currentToken in booleans:
            bool = Boolean(self.currentToken)
            self.fetch_token()
            bool.modifiers = self.modifiers()
            for b in bool.modifiers:
                b.parent = bool
        else:
            raise Diagnostic(diag.UNSUPPORTED_BOOLEAN_OPERATOR,
                             "Unsupported boolean operator",
                             self.currentToken)
        return bool

    def relation(self):
        "Find relation"
        if not self.is_relation(self.currentToken):
            raise Diagnostic(diag.UNSUPPORTED_RELATION,
                             "Unsupported relation",
                             self.currentToken)
        rel = Relation(self.currentToken)
        self.fetch_token()
        rel.modifiers = self.modifiers()
        for r in rel.modifiers:
            r.parent = rel
        return rel


def parse(query, compat=V1_2):
    """Parse a CQL query string, return the root of the query tree.

    Raises a Diagnostic if the string cannot be parsed.
    """
    if query is None or not query.strip():
        raise Diagnostic(diag.QUERY_SYNTAX_ERROR, "Query syntax error",
                         "Empty query")
    tokens = CQLLexer(query).tokens()
    parser = CQLParser(tokens, compat)
    object = parser.query()
    if parser.currentToken != '':
        raise Diagnostic(diag.QUERY_SYNTAX_ERROR, "Query syntax error",
                         "Unprocessed tokens remain: " +
                         repr(parser.currentToken))
    return object
