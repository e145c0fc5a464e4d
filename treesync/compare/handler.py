# Copyright Red Hat
#
# treesync/compare/handler.py - Directory tree synchronizer change events
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Change event handler interface.
"""
from abc import ABC, abstractmethod
from pathlib import Path


class ChangesHandler(ABC):
    """
    Receiver for the events generated by ``ChangesSearcher``.

    Each matched or unmatched entry found during a search results in
    exactly one call to ``comparing()`` or ``missing_path()``. Handlers
    decide what to do with the events: print them, prompt the user, copy
    or delete files, or stop the search by raising an exception.
    """

    @abstractmethod
    def comparing(self, path1: Path, path2: Path):
        """
        Called once for each pair of entries with the same name, before
        they are classified.

        :param path1: The entry below the first root.
        :type path1: ``Path``
        :param path2: The entry below the second root.
        :type path2: ``Path``
        """

    @abstractmethod
    def missing_path(self, existing_path: Path, missing_path: Path):
        """
        Called once for each entry that has no counterpart in the other
        tree.

        :param existing_path: The entry that exists.
        :type existing_path: ``Path``
        :param missing_path: The location the entry would have in the tree
                             that lacks it. This path does not exist.
        :type missing_path: ``Path``
        """

    @abstractmethod
    def different_files(self, path1: Path, path2: Path):
        """
        Called once for each pair of entries with the same name that are
        not equal, including a directory paired with a file.

        :param path1: The entry below the first root.
        :type path1: ``Path``
        :param path2: The entry below the second root.
        :type path2: ``Path``
        """

    @abstractmethod
    def error_fixing_last_modified(self, path: Path, err: Exception):
        """
        Called when the modification time of ``path`` could not be set
        after its content was found to be equal to its counterpart. The
        files are still considered equal.

        :param path: The file that could not be updated.
        :type path: ``Path``
        :param err: The error raised when setting the time.
        :type err: ``Exception``
        """

    @abstractmethod
    def error_comparing_files(self, path1: Path, path2: Path, err: Exception):
        """
        Called when two files could not be read for comparison. The pair is
        treated as equal and the search continues.

        :param path1: The file below the first root.
        :type path1: ``Path``
        :param path2: The file below the second root.
        :type path2: ``Path``
        :param err: The error raised while reading.
        :type err: ``Exception``
        """
