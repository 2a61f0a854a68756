import codecs
import configparser
from dataclasses import dataclass
import os
import shlex
from typing import Optional, Tuple

ORDER_INPUT = "input"
ORDER_COMPLETION = "completion"

RC_FILE_HELP = """\
Sample rcfile:
    [run]
    threads = 4
    ordering = input|completion  # default=input
    fail fast = true|false  # default=false
    strict = true|false  # default=false
    kill grace = 5  # seconds before a cancelled job is killed
    separator = " "  # separator for ranged fields
    [output]
    format = plain|json|robot  # default=plain
    max capture = 0  # keep only the last N bytes of job output, 0=all
"""

DEFAULT_KILL_GRACE = 5.0
DEFAULT_SEPARATOR = " "
DEFAULT_ENCODING = "utf-8"


class ConfigEnum(object):
    __slots__ = (
        'defaultName',
        '_enumVals',
    )

    def __init__(self, default, **enumVals):
        self._enumVals = enumVals
        assert default in enumVals
        self.defaultName = default
        for enumName in enumVals:
            assert enumName not in self.__slots__

    def names(self):
        return iter(self._enumVals.keys())

    def values(self):
        return iter(self._enumVals.values())

    @property
    def defaultVal(self):
        return self._enumVals[self.defaultName]

    def __getattr__(self, attr):
        assert attr != '_enumVals'
        if attr in self._enumVals:
            return self._enumVals[attr]
        else:
            return object.__getattribute__(self, attr)


ORDERING = ConfigEnum(
    'INPUT',  # default
    INPUT=ORDER_INPUT,
    COMPLETION=ORDER_COMPLETION,
)

OUTPUT_FORMAT = ConfigEnum(
    'PLAIN',  # default
    PLAIN='plain',
    JSON='json',
    ROBOT='robot',
)


def _getConfig(cfgParser, section, option, defaultValue=None):
    if not cfgParser.has_section(section):
        return defaultValue
    if not cfgParser.has_option(section, option):
        return defaultValue
    return cfgParser.get(section, option)


def _getEnumConfig(cfgParser, section, option, enum):
    optionVal = _getConfig(
        cfgParser, section, option, enum.defaultVal)
    if optionVal not in list(enum.values()):
        raise ConfigError(
            "RC file has invalid \"{section}.{option}\" setting {optionVal}.  Valid "
            "options: {allowedVals}".format(
                section=section,
                option=option,
                optionVal=optionVal,
                allowedVals=", ".join(list(enum.values()))))

    return optionVal


def _getBoolConfig(cfgParser, section, option, default):
    val = _getConfig(cfgParser, section, option, None)
    if val is None:
        return default
    if val.lower() == 'true':
        return True
    elif val.lower() == 'false':
        return False
    else:
        raise ConfigError(
            "RC file has invalid \"{section}.{option}\" setting {optionVal}.  Valid "
            "options: true, false".format(
                section=section,
                option=option,
                optionVal=val))


def _getNumberConfig(cfgParser, section, option, default, conv=int):
    val = _getConfig(cfgParser, section, option, None)
    if val is None:
        return default
    try:
        return conv(val)
    except ValueError as error:
        raise ConfigError(
            "RC file has invalid \"{section}.{option}\" setting {optionVal}.  "
            "Expected a number".format(
                section=section,
                option=option,
                optionVal=val)) from error


def _getStringConfig(cfgParser, section, option, default):
    val = _getConfig(cfgParser, section, option, None)
    if val is None:
        return default
    # Allow quoting so that whitespace-only values survive the INI parser.
    if len(val) >= 2 and val[0] == val[-1] and val[0] in "\"'":
        return val[1:-1]
    return val


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class RunConfig:  # pylint: disable=too-many-instance-attributes
    """
    Structured configuration consumed by the execution core.

    Built by Config.runConfig() from the command line and rc-file; the core
    never looks at argparse or configparser objects directly.
    """

    template: Tuple[str, ...]
    pattern: Optional[str] = None
    fieldDelimiter: Optional[str] = None
    maxWorkers: int = 1
    recordDelimiter: str = "\n"
    stripTrailingNewline: bool = True
    emitUnterminated: bool = True
    ordering: str = ORDER_INPUT
    failFast: bool = False
    strictExtraction: bool = False
    dryRun: bool = False
    separator: str = DEFAULT_SEPARATOR
    startNum: int = 1
    killGrace: float = DEFAULT_KILL_GRACE
    maxCapture: Optional[int] = None
    encoding: str = DEFAULT_ENCODING

    def __post_init__(self):
        if not self.template:
            raise ConfigError("No command template given")
        if self.maxWorkers < 1:
            raise ConfigError(
                "Number of workers must be at least 1, got {}".format(self.maxWorkers))
        if self.killGrace <= 0:
            raise ConfigError(
                "Kill grace period must be positive, got {}".format(self.killGrace))
        if self.ordering not in list(ORDERING.values()):
            raise ConfigError("Invalid ordering mode {!r}".format(self.ordering))
        if self.pattern is not None and self.fieldDelimiter is not None:
            raise ConfigError("--pattern and --delimiter are mutually exclusive")
        if not self.recordDelimiter:
            raise ConfigError("Record delimiter must not be empty")
        try:
            codecs.lookup(self.encoding)
        except LookupError as error:
            raise ConfigError(
                "Unknown input encoding {!r}".format(self.encoding)) from error

    @property
    def keepOrder(self):
        return self.ordering == ORDER_INPUT


def templateFromString(text):
    """Split a template string using shell quoting rules."""
    try:
        return tuple(shlex.split(text))
    except ValueError as error:
        raise ConfigError("Invalid template {!r}: {}".format(text, error)) from error


def _option(options, name, default=None):
    val = getattr(options, name, None)
    return default if val is None else val


class Config(object):
    # pylint: disable=too-many-instance-attributes
    validConfig = {
        'run': {'threads', 'ordering', 'fail fast', 'strict', 'kill grace',
                'separator'},
        'output': {'format', 'max capture'},
    }

    def _validateConfigParser(self, cfgParser):
        cfgSections = set(cfgParser.sections())
        unknownSections = cfgSections - set(self.validConfig.keys())
        if unknownSections:
            raise ConfigError(
                "RC file has unknown configuration sections: {}".format(
                    ", ".join(sorted(unknownSections))))
        for section in cfgSections:
            cfgValues = set(cfgParser.options(section))
            validSectionConfig = self.validConfig[section]
            unknownOptions = cfgValues - validSectionConfig
            if unknownOptions:
                raise ConfigError(
                    "RC file has unknown configuration options in "
                    "section \"{}\": {}".format(
                        section, ", ".join(sorted(unknownOptions))))

    def __init__(self, options):
        stateDir = _option(options, 'stateDir', "~/.local/share/rargs")
        self.options = options
        self._logDir = os.path.expanduser(stateDir) + "/log/"

        rcFile = os.path.expanduser(_option(options, 'rcFile', "~/.config/rargsrc"))
        cfgParser = configparser.RawConfigParser()
        try:
            cfgParser.read(rcFile)
        except configparser.Error as error:
            raise ConfigError("RC file {} is malformed: {}".format(rcFile, error)) from error
        self._validateConfigParser(cfgParser)

        self._threads = _getNumberConfig(cfgParser, 'run', 'threads', 1)
        self._ordering = _getEnumConfig(cfgParser, 'run', 'ordering', ORDERING)
        self._failFast = _getBoolConfig(cfgParser, 'run', 'fail fast', False)
        self._strict = _getBoolConfig(cfgParser, 'run', 'strict', False)
        self._killGrace = _getNumberConfig(
            cfgParser, 'run', 'kill grace', DEFAULT_KILL_GRACE, conv=float)
        self._separator = _getStringConfig(
            cfgParser, 'run', 'separator', DEFAULT_SEPARATOR)
        self._outputFormat = _getEnumConfig(
            cfgParser, 'output', 'format', OUTPUT_FORMAT)
        self._maxCapture = _getNumberConfig(cfgParser, 'output', 'max capture', 0)

    @property
    def verbose(self):
        return len(self.options.verbose) if getattr(self.options, 'verbose', None) else 0

    @staticmethod
    def checkDir(dirName):
        if not os.access(dirName, os.W_OK | os.X_OK | os.R_OK):
            os.makedirs(dirName)
        return dirName

    @property
    def logDir(self):
        return self.checkDir(self._logDir)

    @property
    def threads(self):
        threads = _option(self.options, 'threads', self._threads)
        if threads == 0:
            threads = os.cpu_count() or 1
        return threads

    @property
    def ordering(self):
        return _option(self.options, 'ordering', self._ordering)

    @property
    def failFast(self):
        return bool(_option(self.options, 'failFast', self._failFast))

    @property
    def strict(self):
        return bool(_option(self.options, 'strict', self._strict))

    @property
    def killGrace(self):
        return _option(self.options, 'killGrace', self._killGrace)

    @property
    def separator(self):
        return _option(self.options, 'separator', self._separator)

    @property
    def outputFormat(self):
        return _option(self.options, 'outputFormat', self._outputFormat)

    @property
    def maxCapture(self):
        maxCapture = _option(self.options, 'maxCapture', self._maxCapture)
        return maxCapture or None

    @property
    def recordDelimiter(self):
        if _option(self.options, 'read0', False):
            return "\0"
        return _option(self.options, 'recordDelimiter', "\n")

    def template(self):
        templateStr = _option(self.options, 'template')
        program = _option(self.options, 'program')
        if templateStr is not None:
            if program is not None:
                raise ConfigError("--template cannot be combined with a command")
            return templateFromString(templateStr)
        if program is None:
            return ()
        return tuple([program] + list(_option(self.options, 'args', [])))

    def runConfig(self):
        return RunConfig(
            template=self.template(),
            pattern=_option(self.options, 'pattern'),
            fieldDelimiter=_option(self.options, 'delimiter'),
            maxWorkers=self.threads,
            recordDelimiter=self.recordDelimiter,
            stripTrailingNewline=not _option(self.options, 'keepNewline', False),
            emitUnterminated=not _option(self.options, 'skipUnterminated', False),
            ordering=self.ordering,
            failFast=self.failFast,
            strictExtraction=self.strict,
            dryRun=bool(_option(self.options, 'dryRun', False)),
            separator=self.separator,
            startNum=_option(self.options, 'startnum', 1),
            killGrace=self.killGrace,
            maxCapture=self.maxCapture,
            encoding=_option(self.options, 'encoding', DEFAULT_ENCODING),
        )
