"""Base class for configurable sruserver objects.

Configuration is an lxml element of the form::

    <config id="...">
      <name>...</name>
      <docs>...</docs>
      <paths>
        <path type="...">...</path>
      </paths>
      <options>
        <setting type="...">...</setting>
        <default type="...">...</default>
      </options>
    </config>

Elements may optionally be in the sruserver configuration namespace.
"""

import os
import sys

from string import Template

from lxml import etree

from sruserver.exceptions import ConfigFileException
from sruserver.internal import CONFIG_NS


def _tagIn(elem, *names):
    return elem.tag in names or \
        elem.tag in ['{%s}%s' % (CONFIG_NS, n) for n in names]


class SRUObject(object):
    """Abstract Base Class for configurable sruserver objects."""

    id = ""
    name = ""
    parent = None
    paths = {}
    settings = {}
    defaults = {}

    _possiblePaths = {
        'defaultPath': {
            'docs': ('Default path for this object. Relative paths below '
                     'this object will have this prepended.')
        }
    }

    _possibleSettings = {
        'debug': {
            'docs': "Set this object to debugging. Object specific results.",
            'type': int,
            'options': "0|1"
        }
    }

    _possibleDefaults = {}

    @classmethod
    def _findParams(cls):
        # Merge possible paths, settings and defaults up the class hierarchy
        paths, settings, defaults = {}, {}, {}
        for klass in reversed(cls.__mro__):
            paths.update(klass.__dict__.get('_possiblePaths', {}))
            settings.update(klass.__dict__.get('_possibleSettings', {}))
            defaults.update(klass.__dict__.get('_possibleDefaults', {}))
        return paths, settings, defaults

    def _handleLxmlConfigNode(self, node):
        """Handle config node parsed by lxml.etree."""
        pass

    def _verifyValue(self, kind, info, typ, value):
        if not info:
            msg = "Unknown %s on '%s': %s" % (kind, self.id, typ)
            raise ConfigFileException(msg)
        t = info.get('type', 0)
        if t:
            try:
                value = t(value)
            except (TypeError, ValueError):
                msg = "Invalid value for %s '%s' on '%s': %r" % (
                    kind.lower(), typ, self.id, value)
                raise ConfigFileException(msg)
        options = info.get('options', '')
        if options and str(value) not in options.split('|'):
            msg = "Value for %s '%s' on '%s' must be one of %s: %r" % (
                kind.lower(), typ, self.id, options, value)
            raise ConfigFileException(msg)
        return value

    def _verifySetting(self, type, value):
        info = self._findParams()[1].get(type, {})
        return self._verifyValue("Setting", info, type, value)

    def _verifyDefault(self, type, value):
        info = self._findParams()[2].get(type, {})
        return self._verifyValue("Default", info, type, value)

    def __init__(self, config=None, parent=None):
        """Constructor inherited by all configured sruserver objects.

        config:  The <config> or <subConfig> lxml element, or None
        parent:  The object that provides the scope for this object.
        """
        self.docstring = ""
        self.parent = parent
        self.paths = {}
        self.settings = {}
        self.defaults = {}
        self.logger = None
        if config is None:
            return
        if not hasattr(config, 'attrib'):
            raise ConfigFileException("Configuration must be an lxml element")
        self.id = config.attrib.get('id', '')
        for e in config.iterchildren(tag=etree.Element):
            if _tagIn(e, 'name'):
                self.name = e.text
            elif _tagIn(e, 'paths'):
                for e2 in e.iterchildren(tag=etree.Element):
                    try:
                        typ = e2.attrib['type']
                    except KeyError:
                        raise ConfigFileException("path must have type")
                    # Allow environment variables in paths e.g. ${HOME}/logs
                    self.paths[typ] = Template(e2.text or '').safe_substitute(
                        os.environ)
            elif _tagIn(e, 'options'):
                for e2 in e.iterchildren(tag=etree.Element):
                    try:
                        typ = e2.attrib['type']
                    except KeyError:
                        msg = "option (setting/default) must have type"
                        raise ConfigFileException(msg)
                    value = (e2.text or '').strip()
                    if _tagIn(e2, 'setting'):
                        self.settings[typ] = self._verifySetting(typ, value)
                    elif _tagIn(e2, 'default'):
                        self.defaults[typ] = self._verifyDefault(typ, value)
            elif _tagIn(e, 'docs'):
                self.docstring = e.text
            else:
                self._handleLxmlConfigNode(e)
        self.debug = self.get_setting("debug", 0)

    def get_setting(self, id, default=None):
        """Return the value for a setting on this object."""
        return self.settings.get(id, default)

    def get_default(self, id, default=None):
        """Return the default value for an option on this object"""
        return self.defaults.get(id, default)

    def get_path(self, id, default=None):
        """Return the path of the given type, or default if not configured.

        Falls back to the parent object's path of the same type.
        """
        if id in self.paths:
            return self.paths[id]
        elif self.parent is not None:
            return self.parent.get_path(id, default)
        return default

    def log_lvl(self, lvl, msg, *args, **kw):
        if self.logger is not None:
            self.logger.log_lvl(lvl, msg, *args, **kw)
        elif self.parent is not None:
            self.parent.log_lvl(lvl, msg, *args, **kw)
        else:
            sys.stderr.write(msg % args if args else msg)
            sys.stderr.write("\n")
            sys.stderr.flush()

    def log(self, msg, *args, **kw):
        self.log_lvl(0, msg, *args, **kw)

    def log_debug(self, msg, *args, **kw):
        self.log_lvl(10, msg, *args, **kw)

    def log_info(self, msg, *args, **kw):
        self.log_lvl(20, msg, *args, **kw)

    def log_warning(self, msg, *args, **kw):
        self.log_lvl(30, msg, *args, **kw)

    def log_error(self, msg, *args, **kw):
        self.log_lvl(40, msg, *args, **kw)

    def log_critical(self, msg, *args, **kw):
        self.log_lvl(50, msg, *args, **kw)
