# stowage/install/shebang.py
from __future__ import annotations
import os
import re
from pathlib import Path

__all__ = ["resolveDirective", "readFirstLine", "directiveArgs", "ENV_PROGRAM"]



# Group "args" holds whatever follows the interpreter word, e.g. " -ws"
_DIRECTIVE_RE = re.compile(r"^#!.*?python\S*(?P<args>(?:[ \t]+\S+)+)?[ \t]*$")

ENV_PROGRAM = "/usr/bin/env"



def readFirstLine(path: Path | str) -> str:
    """First line of `path` without its line ending; empty if the file is missing or empty."""
    try:
        with open(path, "rb") as fh:
            line = fh.readline()
    except (FileNotFoundError, IsADirectoryError):
        return ""
    return line.decode("utf-8", errors="replace").rstrip("\r\n")



def directiveArgs(firstLine: str | None) -> str:
    """Returns the trailing interpreter arguments of a python directive, or ''."""
    if not firstLine:
        return ""
    match = _DIRECTIVE_RE.match(firstLine.rstrip("\r\n"))
    if not match or not match.group("args"):
        return ""
    return match.group("args").strip()



def resolveDirective(
    firstLine: str | None,
    interpreterPath: str,
    *,
    envShebang: bool = False,
    interpreterName: str | None = None,
) -> str:
    """
    Rewrites an executable's first line to run under `interpreterPath`.

        "#!/usr/bin/python"           -> "#!<interpreterPath>"
        "#!/usr/bin/env python3 -ws"  -> "#!<interpreterPath> -ws"
        "" or no directive            -> "#!<interpreterPath>"

    With `envShebang` the interpreter is found through PATH instead. Most
    kernels pass everything after the program as one argument, so when there
    are arguments a /bin/sh trampoline re-executes the interpreter instead.
    """
    args = directiveArgs(firstLine)

    if not envShebang:
        return f"#!{interpreterPath} {args}" if args else f"#!{interpreterPath}"

    name = interpreterName or os.path.basename(interpreterPath) or "python3"
    if os.name == "nt":
        return f"#!{name} {args}" if args else f"#!{name}"
    if not args:
        return f"#!{ENV_PROGRAM} {name}"
    return "\n".join([
        "#!/bin/sh",
        f"'''exec' \"{name}\" {args} \"$0\" \"$@\"",
        "' '''",
    ])
