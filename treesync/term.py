# Copyright Red Hat
#
# treesync/term.py - Directory tree synchronizer terminal output
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Terminal color control for report output.
"""
from typing import List, Optional, TextIO
import curses
import sys
import os
import re

#: Escape sequences used when color is forced on a terminal without terminfo.
_ANSI_CODES = {
    "BLACK": "\033[0;30m",
    "RED": "\033[0;31m",
    "GREEN": "\033[0;32m",
    "YELLOW": "\033[0;33m",
    "BLUE": "\033[0;34m",
    "MAGENTA": "\033[0;35m",
    "CYAN": "\033[0;36m",
    "WHITE": "\033[0;37m",
    "BOLD": "\033[1m",
    "NORMAL": "\033[0m",
}


class TermControl:
    """
    Terminal control strings for colored report output.

    Uses the curses terminfo database to look up the sequences needed by
    the current terminal. Each attribute holds the sequence for one action
    and is the empty string if the terminal does not support it, so output
    built from these attributes degrades to plain text:

        >>> term = TermControl()
        >>> print(term.render("${RED}MISSING FILE:${NORMAL} a/b"))

    Adapted from Edward Loper's terminfo recipe (PSF license):

      https://code.activestate.com/recipes/475116-using-terminfo-for-portable-color-output-cursor-co/
    """

    # Output modes:
    BOLD: str = ""  #: Turn on bold mode
    NORMAL: str = ""  #: Turn off all modes

    # Foreground colors:
    BLACK: str = ""  #: Black foreground color
    BLUE: str = ""  #: Blue foreground color
    GREEN: str = ""  #: Green foreground color
    CYAN: str = ""  #: Cyan foreground color
    RED: str = ""  #: Red foreground color
    MAGENTA: str = ""  #: Magenta foreground color
    YELLOW: str = ""  #: Yellow foreground color
    WHITE: str = ""  #: White foreground color

    # Terminal size:
    columns: Optional[int] = None  #: Terminal width

    _ANSI_COLORS: List[str] = "BLACK RED GREEN YELLOW BLUE MAGENTA CYAN WHITE".split()

    def __init__(self, term_stream: Optional[TextIO] = None, color: str = "auto"):
        """
        Initialise terminal capabilities for ``term_stream``.

        With ``color="auto"`` colors are only used if the stream is a tty
        and the terminal type is known. ``color="always"`` falls back to
        plain ANSI sequences if terminfo setup fails, and ``color="never"``
        leaves all color attributes empty.

        :param term_stream: Output stream to probe for capabilities.
        :type term_stream: ``Optional[TextIO]``
        :param color: A string to control color rendering: "auto", "always",
                      or "never".
        :type color: ``str``
        """
        if term_stream is None:
            term_stream = sys.stdout

        self.term_stream = term_stream
        self.color = color

        if color == "never":
            return

        if color != "always":
            if not hasattr(term_stream, "isatty") or not term_stream.isatty():
                return

        # curses.error cannot be named in an except clause before
        # setupterm() has been called successfully.
        try:
            curses.setupterm()
        except BaseException as err:  # pylint: disable=broad-exception-caught
            if isinstance(err, (KeyboardInterrupt, SystemExit)):  # pragma: no cover
                raise
            if color == "always":
                self._force_ansi()
            return

        self.columns = curses.tigetnum("cols")
        self.BOLD = self._tigetstr("bold")
        self.NORMAL = self._tigetstr("sgr0")

        set_fg = self._tigetstr("setaf")
        if set_fg:
            set_fg = set_fg.encode("utf8")
            for i, name in enumerate(self._ANSI_COLORS):
                setattr(self, name, curses.tparm(set_fg, i).decode("utf8") or "")
        elif color == "always":
            self._force_ansi()

    def _force_ansi(self):
        for name, code in _ANSI_CODES.items():
            setattr(self, name, code)

    def _tigetstr(self, cap_name: str) -> str:
        # Strip terminfo padding delays of the form "$<2>".
        cap = curses.tigetstr(cap_name)
        cap = cap.decode(encoding="utf8") if cap else ""
        return cap.split("$", maxsplit=1)[0]

    def render(self, template: str) -> str:
        """
        Replace each ``${NAME}`` substitution in ``template`` with the
        corresponding control string, or with the empty string if the
        terminal does not support it. ``$$`` renders a literal ``$``.

        :param template: Template string containing ${NAME} patterns.
        :type template: ``str``
        :returns: Rendered string with substitutions applied.
        :rtype: ``str``
        """
        return re.sub(r"\$\$|\${\w+}", self._render_sub, template)

    def _render_sub(self, match):
        s = match.group()
        if s == "$$":
            return "$"
        return getattr(self, s[2:-1], "")


def flush_with_broken_pipe_guard(stream: Optional[TextIO]) -> None:
    """
    Flush ``stream``, exiting quietly if the reader has gone away.

    :param stream: The stream to flush.
    :type stream: ``Optional[TextIO]``
    """
    if stream is None or not hasattr(stream, "flush"):
        return
    try:
        stream.flush()
    except BrokenPipeError as err:
        devnull = os.open(os.devnull, os.O_WRONLY)
        try:
            if hasattr(stream, "fileno"):
                os.dup2(devnull, stream.fileno())
        finally:
            os.close(devnull)
        raise SystemExit() from err


__all__ = [
    "TermControl",
    "flush_with_broken_pipe_guard",
]
