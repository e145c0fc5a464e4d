# Copyright Red Hat
#
# treesync/compare/searcher.py - Directory tree synchronizer change search
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Recursive comparison of two directory trees.

``ChangesSearcher`` walks two trees in lockstep, one directory level at a
time. The children of each pair of directories are listed, sorted by name
and merged: entries with the same name are compared, and entries present on
only one side are reported as missing from the other. Every result is
delivered to a ``ChangesHandler``.
"""
from typing import Collection, List, Optional, Set, Union
from pathlib import Path
import threading
import logging
import stat
import os

from treesync import (
    TREESYNC_SUBSYSTEM_COMPARE,
    TreesyncArgumentError,
    TreesyncCancelledError,
    TreesyncSystemError,
)

from .handler import ChangesHandler
from .level import EqualityLevel

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_compare(msg, *args, **kwargs):
    """A wrapper for compare subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREESYNC_SUBSYSTEM_COMPARE}, **kwargs)


#: Size of the blocks read from each file when comparing content.
_CHUNK_SIZE = 2**16

#: Nanoseconds per millisecond: modification times are compared in ms.
_NSECS_PER_MSEC = 1000000

PathLike = Union[str, os.PathLike]


def _validate_dir(dir_path: Optional[PathLike]) -> Path:
    """
    Check that ``dir_path`` names an existing directory and return it as an
    absolute ``Path``.

    :param dir_path: The directory path to check.
    :type dir_path: ``Optional[PathLike]``
    :returns: The absolute path to the directory.
    :rtype: ``Path``
    :raises: ``TreesyncArgumentError`` if ``dir_path`` is ``None`` or is not
             a directory.
    """
    if dir_path is None:
        raise TreesyncArgumentError("directory path value can't be None")
    path = Path(os.path.abspath(dir_path))
    if not path.is_dir():
        raise TreesyncArgumentError(
            f"directory path should be an actual directory: {path}"
        )
    return path


def _validate_exclusion_if_contains(
    outer: Path, inner: Path, exclusions: Collection[Path]
):
    """
    Check that ``inner`` is covered by an exclusion if it is located below
    ``outer``.

    Only the relative path from ``outer`` to ``inner`` is checked: it must
    be equal to, or below, one of the exclusion paths.

    :param outer: The candidate ancestor root.
    :type outer: ``Path``
    :param inner: The candidate descendant root.
    :type inner: ``Path``
    :param exclusions: The relative paths excluded from the comparison.
    :type exclusions: ``Collection[Path]``
    :raises: ``TreesyncArgumentError`` if ``inner`` is below ``outer`` and
             not excluded.
    """
    if not inner.is_relative_to(outer):
        return
    relative = inner.relative_to(outer)
    for exclusion in exclusions:
        if relative.is_relative_to(exclusion):
            _log_debug_compare(
                "Nested root '%s' below '%s' is covered by exclusion '%s'",
                inner,
                outer,
                exclusion,
            )
            return
    raise TreesyncArgumentError(
        f"one dir contains the other and is not in the list of skip paths: "
        f"'{inner}' is below '{outer}'"
    )


class ChangesSearcher:
    """
    Search two directory trees for missing and different files.
    """

    #: The equality level used unless another is set.
    DEFAULT_LEVEL = EqualityLevel.CONTENT

    def __init__(
        self,
        handler: ChangesHandler,
        dir1: PathLike,
        dir2: PathLike,
        paths_to_skip: Optional[Collection[PathLike]] = None,
    ):
        """
        Initialise a new ``ChangesSearcher`` for the roots ``dir1`` and
        ``dir2``.

        :param handler: The handler receiving change events.
        :type handler: ``ChangesHandler``
        :param dir1: The first root directory.
        :type dir1: ``PathLike``
        :param dir2: The second root directory.
        :type dir2: ``PathLike``
        :param paths_to_skip: Paths, relative to either root, to exclude
                              from the comparison. Each exclusion applies
                              once per root: the entry is dropped from the
                              listing of its parent directory.
        :type paths_to_skip: ``Optional[Collection[PathLike]]``
        :raises: ``TreesyncArgumentError`` if a root is not a directory, if
                 one root contains the other without an exclusion covering
                 it, or if ``handler`` is ``None``.
        """
        dir1 = _validate_dir(dir1)
        dir2 = _validate_dir(dir2)
        exclusions = [Path(path) for path in paths_to_skip or ()]
        _validate_exclusion_if_contains(dir1, dir2, exclusions)
        _validate_exclusion_if_contains(dir2, dir1, exclusions)
        if handler is None:
            raise TreesyncArgumentError("handler can't be None")

        self.handler: ChangesHandler = handler
        self.dir1: Path = dir1
        self.dir2: Path = dir2
        self.paths_to_skip_dir1: frozenset = frozenset(dir1 / p for p in exclusions)
        self.paths_to_skip_dir2: frozenset = frozenset(dir2 / p for p in exclusions)

        #: Whether to copy the modification time of files in ``dir1`` to
        #: files in ``dir2`` whose content was found to be equal.
        self.fix_last_modified: bool = False

        self._level: EqualityLevel = self.DEFAULT_LEVEL
        self._interrupted: threading.Event = threading.Event()

        # Consumed by _list_dir() during a search.
        self._skip1: Set[Path] = set()
        self._skip2: Set[Path] = set()

    def __repr__(self):
        return (
            f"ChangesSearcher(handler={self.handler!r}, dir1='{self.dir1}', "
            f"dir2='{self.dir2}', level={self._level.name}, "
            f"fix_last_modified={self.fix_last_modified})"
        )

    @property
    def level(self) -> EqualityLevel:
        """
        The ``EqualityLevel`` used to decide whether two files are equal.
        """
        return self._level

    @level.setter
    def level(self, level: Union[EqualityLevel, str]):
        if isinstance(level, str):
            try:
                level = EqualityLevel.from_str(level)
            except ValueError as err:
                raise TreesyncArgumentError(str(err)) from err
        if not isinstance(level, EqualityLevel):
            raise TreesyncArgumentError(f"Invalid equality level: {level!r}")
        self._level = level

    @property
    def interrupted(self) -> bool:
        """
        ``True`` if the search has been asked to stop.

        May be set from another thread or from a signal handler while
        ``search()`` is running: the search stops at the next directory
        entry or content block and raises ``TreesyncCancelledError``.
        """
        return self._interrupted.is_set()

    @interrupted.setter
    def interrupted(self, interrupted: bool):
        if interrupted:
            self._interrupted.set()
        else:
            self._interrupted.clear()

    def cancel(self):
        """
        Ask a running (or the next) search to stop.
        """
        _log_debug_compare("Cancellation requested for %s", repr(self))
        self._interrupted.set()

    def search(self):
        """
        Compare the two root directories and report each difference to the
        handler.

        :raises: ``TreesyncCancelledError`` if the search was interrupted,
                 or ``TreesyncSystemError`` if a directory could not be
                 listed.
        """
        _log_info(
            "Comparing '%s' with '%s' (level=%s)",
            self.dir1,
            self.dir2,
            self._level.value,
        )
        self._skip1 = set(self.paths_to_skip_dir1)
        self._skip2 = set(self.paths_to_skip_dir2)
        self._compare_dirs(self.dir1, self.dir2)

        for unused in sorted(self._skip1 | self._skip2):
            _log_debug_compare("Exclusion '%s' did not match any entry", unused)

    def _check_interrupted(self):
        if self._interrupted.is_set():
            _log_info("Comparison interrupted")
            raise TreesyncCancelledError("Comparison interrupted")

    def _compare_dirs(self, dir1: Path, dir2: Path):
        """
        Merge the sorted listings of ``dir1`` and ``dir2``.

        :param dir1: A directory below the first root.
        :type dir1: ``Path``
        :param dir2: The directory with the same relative path below the
                     second root.
        :type dir2: ``Path``
        """
        _log_debug_compare("Comparing directories '%s' and '%s'", dir1, dir2)
        paths1 = self._list_dir(dir1, self._skip1)
        paths2 = self._list_dir(dir2, self._skip2)

        index1 = index2 = 0
        while index1 < len(paths1) and index2 < len(paths2):
            self._check_interrupted()
            path1 = paths1[index1]
            path2 = paths2[index2]

            if path1.name == path2.name:
                self.handler.comparing(path1, path2)
                self._compare_entries(path1, path2)
                index1 += 1
                index2 += 1
            elif path1.name < path2.name:
                self.handler.missing_path(path1, dir2 / path1.name)
                index1 += 1
            else:
                self.handler.missing_path(path2, dir1 / path2.name)
                index2 += 1

        for path1 in paths1[index1:]:
            self._check_interrupted()
            self.handler.missing_path(path1, dir2 / path1.name)

        for path2 in paths2[index2:]:
            self._check_interrupted()
            self.handler.missing_path(path2, dir1 / path2.name)

        self._check_interrupted()

    def _compare_entries(self, path1: Path, path2: Path):
        """
        Classify a pair of entries with the same name.
        """
        path1_is_dir = path1.is_dir()
        path2_is_dir = path2.is_dir()

        if path1_is_dir and path2_is_dir:
            self._compare_dirs(path1, path2)
        elif path1_is_dir or path2_is_dir:
            _log_debug_compare("Type mismatch for '%s' and '%s'", path1, path2)
            self.handler.different_files(path1, path2)
        elif not self._files_are_equal(path1, path2):
            self.handler.different_files(path1, path2)

    def _list_dir(self, dir_path: Path, paths_to_skip: Set[Path]) -> List[Path]:
        """
        Return the children of ``dir_path`` sorted by name.

        Children found in ``paths_to_skip`` are left out of the listing and
        removed from the set.

        :param dir_path: The directory to list.
        :type dir_path: ``Path``
        :param paths_to_skip: The absolute paths still to be excluded below
                              this root.
        :type paths_to_skip: ``Set[Path]``
        :returns: The sorted list of child paths.
        :rtype: ``List[Path]``
        :raises: ``TreesyncSystemError`` if the directory cannot be read.
        """
        paths = []
        try:
            with os.scandir(dir_path) as entries:
                for entry in entries:
                    path = dir_path / entry.name
                    if path in paths_to_skip:
                        _log_debug_compare("Skipping excluded path '%s'", path)
                        paths_to_skip.remove(path)
                        continue
                    paths.append(path)
        except (FileNotFoundError, NotADirectoryError):
            _log_debug_compare("Directory '%s' vanished before listing", dir_path)
            return []
        except OSError as err:
            raise TreesyncSystemError(
                f"Failed to list directory '{dir_path}': {err}"
            ) from err

        paths.sort(key=lambda path: path.name)
        return paths

    def _files_are_equal(self, path1: Path, path2: Path) -> bool:
        """
        Test whether two regular files are equal at the current level.

        :param path1: The file below the first root.
        :type path1: ``Path``
        :param path2: The file below the second root.
        :type path2: ``Path``
        :returns: ``False`` if the files differ, or ``True`` if they are
                  equal or could not be compared.
        :rtype: ``bool``
        """
        try:
            stat1 = path1.stat()
            stat2 = path2.stat()
        except OSError as err:
            self.handler.error_comparing_files(path1, path2, err)
            return True

        if stat1.st_size != stat2.st_size:
            return False
        # FIFOs and devices can block or stream forever: never read them.
        if not stat.S_ISREG(stat1.st_mode) or not stat.S_ISREG(stat2.st_mode):
            _log_debug_compare(
                "Not comparing content of special files '%s' and '%s'", path1, path2
            )
            return stat.S_IFMT(stat1.st_mode) == stat.S_IFMT(stat2.st_mode)
        if self._level == EqualityLevel.SIZE:
            return True

        last_modified = stat1.st_mtime_ns // _NSECS_PER_MSEC
        same_last_modified = last_modified == stat2.st_mtime_ns // _NSECS_PER_MSEC
        if same_last_modified and self._level == EqualityLevel.LAST_MODIFIED:
            return True

        try:
            if not self._content_is_equal(path1, path2):
                return False
        except OSError as err:
            _log_debug_compare("Error comparing '%s' and '%s': %s", path1, path2, err)
            self.handler.error_comparing_files(path1, path2, err)
            return True

        if not same_last_modified and self.fix_last_modified:
            self._fix_last_modified(path2, stat1, stat2)
        return True

    def _content_is_equal(self, path1: Path, path2: Path) -> bool:
        """
        Compare the content of two files of equal size block by block.

        :raises: ``OSError`` if either file cannot be read, or
                 ``TreesyncCancelledError`` if the search was interrupted.
        """
        with open(path1, "rb") as file1, open(path2, "rb") as file2:
            while True:
                self._check_interrupted()
                chunk1 = file1.read(_CHUNK_SIZE)
                chunk2 = file2.read(_CHUNK_SIZE)
                if chunk1 != chunk2:
                    return False
                if not chunk1:
                    return True

    def _fix_last_modified(
        self, path: Path, source_stat: os.stat_result, path_stat: os.stat_result
    ):
        """
        Set the modification time of ``path`` to that of its counterpart,
        keeping its access time.
        """
        _log_debug_compare("Fixing last modified time of '%s'", path)
        try:
            os.utime(path, ns=(path_stat.st_atime_ns, source_stat.st_mtime_ns))
        except OSError as err:
            self.handler.error_fixing_last_modified(path, err)
