#!/usr/bin/env python

from importlib import metadata

DIST_NAME = "shell-rargs"


def packageVersion() -> str:
    try:
        return metadata.version(DIST_NAME)
    except metadata.PackageNotFoundError:
        return "unknown"
