from rargs.config import RC_FILE_HELP


def binDescriptionWithStandardFooter(desc):
    return """{desc}


Configuration:
    The default configuration file location is `~/.config/rargsrc`, but can be
    overwritten using the --rc-file option.  Command line flags take
    precedence over the rc-file.

{rcfile}
""".format(desc=desc.strip(), rcfile=RC_FILE_HELP)
