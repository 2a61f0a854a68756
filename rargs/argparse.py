import os


def addArgumentParserBaseFlags(parser, logfileName):
    '''
    Adds the flags shared by every rargs entry point: verbosity, the state
    directory used for debug logs, the rc-file override and debug logging
    (to the state directory, or to a file of your choosing).

    Provides ALL flags required by the Config class.
    '''
    parser.add_argument(
        "-v",
        dest="verbose",
        help="Increase verbosity (multiple times for more verbose)",
        action="append_const",
        const=1)
    parser.add_argument(
        "--state-dir",
        dest='stateDir',
        metavar="DIR",
        help="Specify state directory (default='%(default)s')",
        default=os.getenv('RARGS_STATE_DIR', "~/.local/share/rargs"))
    parser.add_argument("--rc-file", dest="rcFile",
                        help="Specify path to rc-file (default=\"%(default)s\")",
                        default="~/.config/rargsrc")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="enable debug output to <state-dir>/log/%s" % logfileName)
    parser.add_argument(
        "--debug-file",
        dest="debugFile",
        metavar="FILE",
        help="enable debug output to FILE")
