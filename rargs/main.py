#!/usr/bin/env python
import argparse
import os
import sys

import rargs.logging

from .argparse import addArgumentParserBaseFlags
from .binutils import binDescriptionWithStandardFooter
from .compat import packageVersion
from .config import ORDER_COMPLETION, ORDER_INPUT, Config, ConfigError
from .controller import ExecutionController
from .domain import EXIT_INTERRUPTED, EXIT_SUCCESS, EXIT_USAGE
from .output import makePrinter
from .utils import sprint

_DEBUG_LOG_FILE_NAME = "rargs-debug.log"
LOG = rargs.logging.getLogger(__name__)


DESC = binDescriptionWithStandardFooter("""
rargs - xargs with pattern matching

Reads records from standard input, extracts fields from each one with a
regular expression, and runs the command with the fields substituted.

Placeholders:
    {} {0}          the whole record
    {N} {-N}        N-th field, negative counts from the end
    {name}          named group, or LINENUM / LN for the line number
    {L..R} {L..R:S} fields L to R joined by --separator (or S)
    {L...R}         fields L to R, each as a separate argument

Exit status:
    0 all jobs succeeded, 1 some jobs failed, 2 usage error,
    3 aborted by --fail-fast or --strict, 4 error reading input

Examples:
    # Rename *.jpeg to *.jpg
    $ ls *.jpeg | rargs -p '(.*)\\.jpeg' mv {0} {1}.jpg

    # Date parts by name, 4 jobs at a time
    $ cat dates | rargs -j4 -p '^(?P<year>\\d{4})-(\\d{2})-(\\d{2})$' echo {year} {2}

    # Split fields on commas, pass the first two as separate arguments
    $ cat csv | rargs -d, echo {1...2}

    # Show what would run
    $ ls | rargs -e rm {}
""")


def parseArgs(args=None):
    if args is None:
        prog = sys.argv[0]
        args = sys.argv[1:]
    else:
        prog = None

    op = argparse.ArgumentParser(
        prog=os.path.basename(prog) if prog else "rargs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description=DESC)
    op.add_argument("program", nargs="?")
    op.add_argument("args", nargs=argparse.REMAINDER)

    addArgumentParserBaseFlags(op, _DEBUG_LOG_FILE_NAME)

    op.add_argument("--version", action="store_true", help="Show version and exit")
    out = op.add_mutually_exclusive_group()
    out.add_argument("--json", dest="outputFormat", action="store_const",
                     const="json", help="Print one JSON object per job")
    out.add_argument("--robot-format", dest="outputFormat", action="store_const",
                     const="robot", help="Output job results formatted for robots")
    op.add_argument("-q", "--quiet", action="store_true",
                    help="Do not print per-job diagnostics")
    op.add_argument("--summary", action="store_true",
                    help="Print job counts when the run finishes")

    inp = op.add_argument_group("input")
    inp.add_argument("-0", "--read0", action="store_true",
                     help="Read input delimited by ASCII NUL(\\0) characters")
    inp.add_argument("--record-delimiter", dest="recordDelimiter", metavar="STR",
                     help="Read input delimited by STR instead of newlines")
    inp.add_argument("--keep-newline", dest="keepNewline", action="store_true",
                     help="Do not strip the delimiter from each record")
    inp.add_argument("--skip-unterminated", dest="skipUnterminated",
                     action="store_true",
                     help="Ignore a final record without a trailing delimiter")
    inp.add_argument("--encoding", metavar="CODEC",
                     help="Decode input records with CODEC (default=utf-8)")

    fields = op.add_argument_group("fields")
    match = fields.add_mutually_exclusive_group()
    match.add_argument("-p", "--pattern", metavar="REGEX",
                       help="regex pattern that captures the input")
    match.add_argument("-d", "--delimiter", metavar="REGEX",
                       help="regex pattern used as delimiter (conflicts with "
                       "--pattern)")
    fields.add_argument("-s", "--separator", metavar="SEP",
                        help="separator for ranged fields (default=' ')")
    fields.add_argument("-n", "--startnum", type=int, default=1, metavar="NUM",
                        help="start value for line number (default=%(default)s)")
    fields.add_argument("-T", "--template", metavar="CMD",
                        help="Command template as a single shell-quoted string")

    execMode = op.add_argument_group("execution")
    execMode.add_argument("-j", "--threads", type=int, metavar="N",
                          help="Number of jobs to run at once, 0 for one per CPU "
                          "(default=1)")
    execMode.add_argument("-w", "--worker", dest="threads", type=int, metavar="N",
                          help="Deprecated. Same as --threads")
    execMode.add_argument("--ordering", choices=[ORDER_INPUT, ORDER_COMPLETION],
                          help="Print results in input order or as jobs "
                          "finish (default=input)")
    execMode.add_argument("--fail-fast", dest="failFast", action="store_true",
                          default=None,
                          help="Stop starting jobs after the first failure and "
                          "terminate running ones")
    execMode.add_argument("--strict", action="store_true", default=None,
                          help="Abort the run when a record does not match the "
                          "pattern or template")
    execMode.add_argument("--kill-grace", dest="killGrace", type=float,
                          metavar="SECONDS",
                          help="Time between SIGTERM and SIGKILL when cancelling "
                          "jobs (default=5)")
    execMode.add_argument("--max-capture", dest="maxCapture", type=int,
                          metavar="BYTES",
                          help="Keep only the last BYTES of each job's output")
    execMode.add_argument("-e", "--dry-run", dest="dryRun", action="store_true",
                          help="Print the commands to be executed without "
                          "actually executing them")

    options = op.parse_args(args)
    return options


def impl_main(args=None, stdin=None):
    options = parseArgs(args)
    if options.version:
        sprint("Version {}".format(packageVersion()))
        return EXIT_SUCCESS

    config = Config(options)
    debug = options.debugFile or options.debug
    rargs.logging.setup(
        config.logDir if debug is True else "",
        _DEBUG_LOG_FILE_NAME,
        debug=debug,
        verbose=config.verbose)
    LOG.debug("starting with args %s", options)
    LOG.debug("python: %s", sys.version)

    runConfig = config.runConfig()
    printer = makePrinter(
        config.outputFormat,
        startNum=runConfig.startNum,
        verbose=config.verbose,
        quiet=options.quiet)
    try:
        controller = ExecutionController(runConfig, emit=printer)
    except ValueError as error:
        raise ConfigError("bad pattern: {}".format(error)) from error

    summary = controller.run(stdin if stdin is not None else sys.stdin.buffer)

    if summary.inputError is not None:
        sprint("rargs:", summary.inputError, file=sys.stderr)
    if summary.aborted and not options.quiet:
        sprint("rargs: aborted:", controller.context.reason, file=sys.stderr)
    if options.summary or config.verbose:
        printer.printSummary(summary)
    LOG.debug("exit rc=%d", summary.exitCode)
    return summary.exitCode


def main(args=None):
    try:
        rc = impl_main(args=args)
    except ConfigError as error:
        print("rargs: error:", error, file=sys.stderr)
        sys.exit(EXIT_USAGE)
    except KeyboardInterrupt:
        LOG.debug("KeyboardInterrupt", exc_info=True)
        sprint("\ninterrupted", file=sys.stderr)
        sys.exit(EXIT_INTERRUPTED)
    sys.exit(rc)


if __name__ == "__main__":
    main()
