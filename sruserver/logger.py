
import sys
import os
import time
import logging

from lxml.builder import E

from sruserver.baseObjects import Logger
from sruserver.cqlParser import PrefixableObject
from sruserver.configParser import SRUObject
from sruserver.exceptions import ConfigFileException


levelNames = ['NOTSET', 'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


class SimpleLogger(Logger):
    """Logger to write lines to a file (or stdout / stderr)."""

    fileh = None
    lineCache = []
    cacheLen = 0

    _possiblePaths = {
        'filePath': {
            'docs': "Path to the where the logger will store its logs"
        }
    }

    _possibleSettings = {
        'cacheLength': {
            'docs': ("The number of log entries to cache in memory before "
                     "writing to disk"),
            'type': int
        },
        'minLevel': {
            'docs': ('The minimum level that this logger will record, if a '
                     'level is given.'),
            'type': int
        }
    }

    _possibleDefaults = {
        'level': {
            'docs': ("The default level to assign to logged messages if one "
                     "isn't provided"),
            'type': int
        }
    }

    def __init__(self, config=None, parent=None):
        Logger.__init__(self, config, parent)
        self.lineCache = []
        fp = self.get_path('filePath')
        if fp is None:
            raise ConfigFileException("Missing path 'filePath' for "
                                      "{0}.".format(self.id or 'logger'))
        elif fp in ["stdout", 'sys.stdout']:
            self.fileh = sys.stdout
        elif fp in ["stderr", 'sys.stderr']:
            self.fileh = sys.stderr
        else:
            if not os.path.isabs(fp):
                dfp = self.get_path('defaultPath', os.getcwd())
                fp = os.path.join(dfp, fp)
                # Absolutize path
                fp = os.path.abspath(fp)
            self.fileh = open(fp, 'a')
        self.cacheLen = self.get_setting('cacheLength', 0)
        self.minLevel = self.get_setting('minLevel', 0)
        self.defaultLevel = self.get_default('level', 0)

    def __del__(self):
        self._close()

    def __enter__(self):
        return self

    def __exit__(self, type_, value, traceback):
        self._flush()

    def _close(self):
        # Flush any remaining log lines
        try:
            self._flush()
        finally:
            if self.fileh not in (None, sys.stdout, sys.stderr):
                self.fileh.close()
            self.fileh = None

    def _myRepr(self, a):
        # Create a representation for an object to use in log messages
        if isinstance(a, SRUObject):
            return a.id
        elif isinstance(a, PrefixableObject):
            return repr(a.toCQL())
        else:
            return repr(a)

    def _flush(self):
        if self.fileh is None:
            self.lineCache = []
            return
        for l in self.lineCache:
            self.fileh.write(l + "\n")
        if hasattr(self.fileh, 'flush'):
            self.fileh.flush()
        self.lineCache = []

    def _logLine(self, lvl, line, *args, **kw):
        # Templating for individual log entries
        if args:
            line = line % args
        now = time.strftime("%Y-%m-%d %H:%M:%S")
        lvlstr = levelNames[min(int(lvl / 10), 5)]
        line = "[%s] %s: %s" % (now, lvlstr, line)
        self.lineCache.append(line)
        if (len(self.lineCache) > self.cacheLen):
            # Flush messages to disk
            self._flush()

    def log_fn(self, object, fn, *args, **kw):
        """Log a function call."""
        # Just construct message, then hand off to self.log_lvl()
        line = ["%s.%s(" % (self._myRepr(object), fn)]
        ln = []
        for a in args:
            ln.append(self._myRepr(a))
        for k in kw:
            ln.append("%s=%s" % (k, self._myRepr(kw[k])))
        line.append(','.join(ln))
        line.append(")")
        self.log_lvl(self.defaultLevel, ''.join(line))

    def log(self, msg, *args, **kw):
        """Log a message at the default log level."""
        self.log_lvl(self.defaultLevel, msg, *args, **kw)

    def log_lvl(self, lvl, msg, *args, **kw):
        """Log a message at the specified log level."""
        if not lvl:
            lvl = self.defaultLevel
        if lvl >= self.minLevel:
            self._logLine(lvl, msg, *args, **kw)


class LoggingLogger(SimpleLogger):
    """Logger to use Python built-in logging module."""

    _possibleSettings = {
        'name': {
            'docs': ("The name to call the logger in logging module. Defaults "
                     "to root logger if not supplied.")
        }
    }

    def __init__(self, config=None, parent=None):
        # No file of our own, logging module handlers do the writing
        Logger.__init__(self, config, parent)
        self.lineCache = []
        self.cacheLen = 0
        self.minLevel = self.get_setting('minLevel', 0)
        self.defaultLevel = self.get_default('level', logging.INFO)
        name = self.get_setting('name', '')
        if name:
            # Use named Logger object
            self.logger = logging.getLogger(name)
        else:
            # Default to root logger
            self.logger = logging.getLogger()

    def _close(self):
        pass

    def _logLine(self, lvl, msg, *args, **kw):
        # Pass through to logging module logger
        self.logger.log(lvl, msg, *args, **kw)


def buildLogger(logPath=None, loggerName=None, logLevel=None):
    """Return a new Logger for the given settings.

    A SimpleLogger writing to logPath if one is given, otherwise a
    LoggingLogger passing messages to the named logging module logger.
    """
    options = E.options()
    if logLevel is not None:
        options.append(E.setting(str(logLevel), type="minLevel"))
    if logPath:
        config = E.config(E.paths(E.path(logPath, type="filePath")),
                          options,
                          id="sruLogger")
        return SimpleLogger(config)
    if loggerName:
        options.append(E.setting(loggerName, type="name"))
    config = E.config(options, id="sruLogger")
    return LoggingLogger(config)


defaultLogger = buildLogger(loggerName="sruserver")
