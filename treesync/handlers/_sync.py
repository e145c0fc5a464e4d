# Copyright Red Hat
#
# treesync/handlers/_sync.py - Directory tree synchronizer interactive handler
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Interactive change handler that asks how to resolve each difference.
"""
from typing import Callable, Optional, TextIO
from pathlib import Path
import logging
import shutil
import sys
import os

from treesync import (
    TREESYNC_SUBSYSTEM_HANDLERS,
    TreesyncAbortError,
    TreesyncCancelledError,
)
from treesync.term import TermControl

from ._base import ReportHandler

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_handlers(msg, *args, **kwargs):
    """A wrapper for handlers subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREESYNC_SUBSYSTEM_HANDLERS}, **kwargs)


_MISSING_PROMPT = (
    "Possible options:\n"
    "    [C/c] copy to missing path,\n"
    "    [R/r] delete existing file,\n"
    "    [I/i] ignore,\n"
    "    [A/a] abort\n"
    "    "
)

_DIFFERENT_PROMPT = (
    "Possible options:\n"
    "    [1] preserve file in path1 ({path1}),\n"
    "    [2] preserve file in path2 ({path2}),\n"
    "    [I/i] ignore, [A/a] abort\n"
    "    "
)

_ERROR_PROMPT = "[I/i] ignore, [A/a] abort "

#: Message printed when the user chooses to abort.
STOPPED_BY_USER = "Stopped by the user"


def delete_path(path: Path):
    """
    Delete ``path``, removing directory trees recursively.

    :param path: The file or directory to delete.
    :type path: ``Path``
    :raises: ``OSError`` if the path could not be removed.
    """
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def copy_path(origin: Path, destination: Path):
    """
    Copy ``origin`` to ``destination``, replacing anything already at
    ``destination``. Directories are copied recursively and file metadata
    is preserved.

    :param origin: The file or directory to copy.
    :type origin: ``Path``
    :param destination: The path to copy to.
    :type destination: ``Path``
    :raises: ``OSError`` if the copy failed.
    """
    if os.path.lexists(destination):
        delete_path(destination)
    if origin.is_dir():
        shutil.copytree(origin, destination, copy_function=shutil.copy2)
    else:
        shutil.copy2(origin, destination)


class SyncHandler(ReportHandler):
    """
    Report each difference and ask the user how to resolve it.
    """

    def __init__(
        self,
        verbose: int,
        out: TextIO,
        dir1: Path,
        dir2: Path,
        term_control: Optional[TermControl] = None,
        file_types: bool = False,
        input_stream: Optional[TextIO] = None,
        cancelled: Optional[Callable[[], bool]] = None,
    ):
        """
        Initialise a new ``SyncHandler``.

        Takes the same arguments as ``ReportHandler`` plus
        ``input_stream``: the stream answers are read from, by default
        ``sys.stdin``, and ``cancelled``: a callable returning ``True``
        once the comparison has been cancelled. A pending answer is
        discarded instead of acted on after cancellation.
        """
        super().__init__(
            verbose,
            out,
            dir1,
            dir2,
            term_control=term_control,
            file_types=file_types,
        )
        self.input = input_stream if input_stream is not None else sys.stdin
        self.cancelled = cancelled

    def _check_cancelled(self):
        """
        Raise ``TreesyncCancelledError`` if the comparison was cancelled.
        """
        if self.cancelled is not None and self.cancelled():
            _log_debug_handlers("Comparison cancelled, not acting on answer")
            raise TreesyncCancelledError("Comparison interrupted")

    def _read_option(self, prompt: str, options: str) -> str:
        """
        Prompt until the user enters one of ``options``.

        Only ASCII letters and digits of each answer are kept. End of
        input is treated as a request to abort.

        :param prompt: The text shown before the ``-->`` marker.
        :type prompt: ``str``
        :param options: The accepted single character answers.
        :type options: ``str``
        :returns: The chosen option.
        :rtype: ``str``
        :raises: ``TreesyncCancelledError`` if the comparison was cancelled
                 before or while waiting for the answer.
        """
        while True:
            self._check_cancelled()
            self.out.write(f"{prompt}--> ")
            self.out.flush()
            line = self.input.readline()
            # Signal handlers only set the flag: readline() is retried.
            self._check_cancelled()
            if not line:
                _log_debug_handlers("End of input while reading option")
                return "A"
            answer = "".join(c for c in line if c.isascii() and c.isalnum())
            if len(answer) == 1 and answer in options:
                return answer
            self._print()
            self._print(f"Unknown option: '{answer}' please try again")
            self._print()

    def _abort(self):
        self._print(STOPPED_BY_USER)
        raise TreesyncAbortError(STOPPED_BY_USER)

    def _copy(self, origin: Path, destination: Path):
        self._check_cancelled()
        _log_debug_handlers("Copying '%s' to '%s'", origin, destination)
        try:
            copy_path(origin, destination)
        except OSError as err:
            _log_debug_handlers(
                "Error copying '%s' to '%s': %s", origin, destination, err
            )
            self._print(f"ERROR: {err}")
            return
        self._print(f"COPIED {origin} to {destination}")

    def _delete(self, path: Path):
        self._check_cancelled()
        _log_debug_handlers("Deleting '%s'", path)
        try:
            delete_path(path)
        except OSError as err:
            _log_debug_handlers("Error deleting '%s': %s", path, err)
            self._print(f"ERROR: {err}")
            return
        self._print(f"DELETED {path}")

    def missing_path(self, existing_path: Path, missing_path: Path):
        self._report_missing(existing_path, missing_path, True)

        option = self._read_option(_MISSING_PROMPT, "CcRrIiAa")
        if option in "Cc":
            self._copy(existing_path, missing_path)
        elif option in "Rr":
            self._delete(existing_path)
        elif option in "Ii":
            self._print(f"IGNORED {self.relative_path(missing_path)}")
        else:
            self._abort()

    def different_files(self, path1: Path, path2: Path):
        self._report_different(path1, path2, True)

        prompt = _DIFFERENT_PROMPT.format(path1=path1, path2=path2)
        option = self._read_option(prompt, "12IiAa")
        if option == "1":
            self._copy(path1, path2)
        elif option == "2":
            self._copy(path2, path1)
        elif option in "Ii":
            self._print(f"IGNORED {self.relative_path(path1)}")
        else:
            self._abort()

    def _ignore_or_abort(self):
        if self._read_option(_ERROR_PROMPT, "IiAa") in "Ii":
            self._print("IGNORED")
        else:
            self._abort()

    def error_fixing_last_modified(self, path: Path, err: Exception):
        super().error_fixing_last_modified(path, err)
        self._ignore_or_abort()

    def error_comparing_files(self, path1: Path, path2: Path, err: Exception):
        super().error_comparing_files(path1, path2, err)
        self._ignore_or_abort()
