# Copyright Red Hat
#
# treesync/compare/level.py - Directory tree synchronizer equality levels
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File equality levels
"""
from enum import Enum


class EqualityLevel(Enum):
    """
    Enum for the criteria used to decide whether two files are equal.
    """

    #: Files of equal size are equal.
    SIZE = "size"
    #: Files of equal size and modification time are equal; content decides
    #: when the modification times differ.
    LAST_MODIFIED = "last_modified"
    #: Files of equal size and identical content are equal.
    CONTENT = "content"

    @classmethod
    def from_str(cls, value: str) -> "EqualityLevel":
        """
        Return the ``EqualityLevel`` named by ``value``.

        Both the member name ("LAST_MODIFIED") and its value
        ("last_modified") are accepted, ignoring case.

        :param value: The level name or value.
        :type value: ``str``
        :returns: The matching ``EqualityLevel`` member.
        :rtype: ``EqualityLevel``
        :raises: ``ValueError`` if ``value`` does not name a level.
        """
        norm = value.strip().lower()
        for level in cls:
            if norm in (level.value, level.name.lower()):
                return level
        raise ValueError(f"Unknown equality level: {value}")
