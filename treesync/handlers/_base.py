# Copyright Red Hat
#
# treesync/handlers/_base.py - Directory tree synchronizer report output
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Common report output for command line change handlers.
"""
from typing import Optional, TextIO
from datetime import datetime
from pathlib import Path
import logging
import os

from treesync import TREESYNC_SUBSYSTEM_HANDLERS
from treesync.compare import ChangesHandler
from treesync.term import TermControl, flush_with_broken_pipe_guard

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_handlers(msg, *args, **kwargs):
    """A wrapper for handlers subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREESYNC_SUBSYSTEM_HANDLERS}, **kwargs)


#: Format used for last modified times in file information blocks.
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

#: Placeholder for values that could not be read.
NOT_AVAILABLE = "N/A"


class ReportHandler(ChangesHandler):
    """
    Base class for handlers that report changes to an output stream.

    Subclasses decide what happens after a missing path or a pair of
    different files has been reported.
    """

    def __init__(
        self,
        verbose: int,
        out: TextIO,
        dir1: Path,
        dir2: Path,
        term_control: Optional[TermControl] = None,
        file_types: bool = False,
    ):
        """
        Initialise a new ``ReportHandler``.

        :param verbose: Report every comparison and print file information
                        blocks for each difference.
        :type verbose: ``int``
        :param out: The stream to write reports to.
        :type out: ``TextIO``
        :param dir1: The first root directory.
        :type dir1: ``Path``
        :param dir2: The second root directory.
        :type dir2: ``Path``
        :param term_control: Terminal control for colored labels.
        :type term_control: ``Optional[TermControl]``
        :param file_types: Include a file type line in file information
                           blocks.
        :type file_types: ``bool``
        """
        self.verbose = verbose
        self.out = out
        self.dir1 = Path(os.path.abspath(dir1))
        self.dir2 = Path(os.path.abspath(dir2))
        self.term = term_control or TermControl(term_stream=out, color="never")
        self.detector = None
        if file_types:
            # pylint: disable=import-outside-toplevel
            from treesync.filetypes import FileTypeDetector

            self.detector = FileTypeDetector()

        self.nr_compared = 0
        self.nr_missing = 0
        self.nr_different = 0
        self.nr_errors = 0

    def _print(self, msg: str = ""):
        print(msg, file=self.out)
        flush_with_broken_pipe_guard(self.out)

    def _label(self, color: str, label: str) -> str:
        return self.term.render(f"${{{color}}}{label}${{NORMAL}}")

    def _root_of(self, path: Path) -> Path:
        """
        Return the root directory containing ``path``: the deeper of the
        two roots if they are nested.
        """
        in_dir1 = path.is_relative_to(self.dir1)
        in_dir2 = path.is_relative_to(self.dir2)
        if in_dir1 and in_dir2:
            return self.dir1 if self.dir1.is_relative_to(self.dir2) else self.dir2
        return self.dir1 if in_dir1 else self.dir2

    def relative_path(self, path: Path) -> Path:
        """
        Return ``path`` relative to the root directory that contains it.

        :param path: A path below either root.
        :type path: ``Path``
        :returns: The path relative to its root.
        :rtype: ``Path``
        """
        return path.relative_to(self._root_of(path))

    def comparing(self, path1: Path, path2: Path):
        self.nr_compared += 1
        if self.verbose:
            self._print(
                f"{self._label('BOLD', 'COMPARING:')}     {self.relative_path(path1)}"
            )

    def error_fixing_last_modified(self, path: Path, err: Exception):
        self.nr_errors += 1
        _log_debug_handlers("Error fixing last modified time of '%s': %s", path, err)
        self._print(
            f"{self._label('RED', 'ERROR fixing last modified time:')} {err}"
        )

    def error_comparing_files(self, path1: Path, path2: Path, err: Exception):
        self.nr_errors += 1
        _log_debug_handlers("Error comparing '%s' and '%s': %s", path1, path2, err)
        self._print(f"{self._label('RED', 'ERROR comparing files:')} {err}")

    def _report_missing(self, existing_path: Path, missing_path: Path, verbose):
        """
        Report that ``missing_path`` does not exist in its root.
        """
        self.nr_missing += 1
        root = self._root_of(missing_path)
        self._print(
            f"{self._label('YELLOW', 'MISSING FILE:')}  "
            f"{missing_path.relative_to(root)}    (missing in {root})"
        )
        if verbose:
            self._print()
            self._print("    Existing:")
            self._print_file_info(existing_path)
            self._print()

    def _report_different(self, path1: Path, path2: Path, verbose):
        """
        Report that ``path1`` and ``path2`` need to be synchronized.
        """
        self.nr_different += 1
        self._print(
            f"{self._label('CYAN', 'SYNC REQUIRED:')} {self.relative_path(path1)}"
        )
        if verbose:
            self._print()
            self._print("    FILE 1:")
            self._print_file_info(path1)
            self._print()
            self._print("    FILE 2:")
            self._print_file_info(path2)
            self._print()

    def _print_file_info(self, path: Path):
        try:
            st = os.stat(path)
            last_modified = datetime.fromtimestamp(st.st_mtime).strftime(DATE_FORMAT)
            size = f"{st.st_size} b"
        except OSError as err:
            _log_debug_handlers("Could not stat '%s': %s", path, err)
            last_modified = size = NOT_AVAILABLE

        self._print(f"    File:          {path}")
        self._print(f"    Last modified: {last_modified}")
        self._print(f"    Size:          {size}")
        if self.detector:
            self._print(f"    Type:          {self.detector.detect_file_type(path)}")

    def summary(self) -> str:
        """
        Return a one-line summary of the events seen by this handler.

        :returns: A human readable summary string.
        :rtype: ``str``
        """
        return (
            f"compared: {self.nr_compared}, missing: {self.nr_missing}, "
            f"different: {self.nr_different}, errors: {self.nr_errors}"
        )
