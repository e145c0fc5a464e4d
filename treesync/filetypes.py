# Copyright Red Hat
#
# treesync/filetypes.py - Directory tree synchronizer file types
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
File type information for verbose reports.
"""
from typing import ClassVar, Dict, Optional
from pathlib import Path
from enum import Enum
import logging
import magic

from treesync import TREESYNC_SUBSYSTEM_HANDLERS

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_handlers(msg, *args, **kwargs):
    """A wrapper for handlers subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREESYNC_SUBSYSTEM_HANDLERS}, **kwargs)


class FileTypeCategory(Enum):
    """
    Enum for file type categories.
    """

    TEXT = "text"
    BINARY = "binary"
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    ARCHIVE = "archive"
    EXECUTABLE = "executable"
    CONFIG = "config"
    DOCUMENT = "document"
    SOURCE_CODE = "source_code"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    UNKNOWN = "unknown"


class FileTypeInfo:
    """
    File type information for one path.
    """

    def __init__(
        self,
        mime_type: str,
        description: str,
        category: FileTypeCategory,
        encoding: Optional[str] = None,
    ):
        """
        Initialise a new ``FileTypeInfo`` object.

        :param mime_type: The detected MIME type.
        :type mime_type: ``str``
        :param description: Type description returned by magic.
        :type description: ``str``
        :param category: File type category.
        :type category: ``FileTypeCategory``
        :param encoding: Optional file encoding.
        :type encoding: ``Optional[str]``
        """
        self.mime_type = mime_type
        self.description = description
        self.category = category
        self.encoding = encoding

    def __str__(self):
        return f"{self.description} ({self.mime_type}, {self.category.value})"


#: Returned when magic cannot identify a path.
UNKNOWN_FILE_TYPE = FileTypeInfo(
    "application/octet-stream", "unknown", FileTypeCategory.UNKNOWN
)


class FileTypeDetector:
    """
    Detect file types using ``magic`` from file-magic.
    """

    # fmt: off
    category_rules: ClassVar[Dict[str, FileTypeCategory]] = {
        "application/zip": FileTypeCategory.ARCHIVE,
        "application/x-tar": FileTypeCategory.ARCHIVE,
        "application/gzip": FileTypeCategory.ARCHIVE,
        "application/x-gzip": FileTypeCategory.ARCHIVE,
        "application/x-bzip2": FileTypeCategory.ARCHIVE,
        "application/x-xz": FileTypeCategory.ARCHIVE,
        "application/zstd": FileTypeCategory.ARCHIVE,
        "application/x-7z-compressed": FileTypeCategory.ARCHIVE,
        "application/x-executable": FileTypeCategory.EXECUTABLE,
        "application/x-sharedlib": FileTypeCategory.EXECUTABLE,
        "application/x-pie-executable": FileTypeCategory.EXECUTABLE,
        "application/x-dosexec": FileTypeCategory.EXECUTABLE,
        "application/pdf": FileTypeCategory.DOCUMENT,
        "application/msword": FileTypeCategory.DOCUMENT,
        "application/vnd.oasis.opendocument.text": FileTypeCategory.DOCUMENT,
        "text/markdown": FileTypeCategory.DOCUMENT,
        "application/json": FileTypeCategory.CONFIG,
        "application/xml": FileTypeCategory.CONFIG,
        "text/xml": FileTypeCategory.CONFIG,
        "application/yaml": FileTypeCategory.CONFIG,
        "application/toml": FileTypeCategory.CONFIG,
        "text/x-python": FileTypeCategory.SOURCE_CODE,
        "text/x-script.python": FileTypeCategory.SOURCE_CODE,
        "text/x-shellscript": FileTypeCategory.SOURCE_CODE,
        "text/x-c": FileTypeCategory.SOURCE_CODE,
        "text/x-java": FileTypeCategory.SOURCE_CODE,
        "text/html": FileTypeCategory.SOURCE_CODE,
        "inode/directory": FileTypeCategory.DIRECTORY,
        "inode/symlink": FileTypeCategory.SYMLINK,
        # Prefix fallbacks
        "text/": FileTypeCategory.TEXT,
        "image/": FileTypeCategory.IMAGE,
        "audio/": FileTypeCategory.AUDIO,
        "video/": FileTypeCategory.VIDEO,
    }
    # fmt: on

    def detect_file_type(self, file_path: Path) -> FileTypeInfo:
        """
        Detect file type information for ``file_path`` using magic.

        :param file_path: The path to the file to inspect.
        :type file_path: ``Path``.
        :returns: File type information for ``file_path``, or
                  ``UNKNOWN_FILE_TYPE`` if detection fails.
        :rtype: ``FileTypeInfo``
        """
        # Some magic builds do not define magic.error
        if hasattr(magic, "error"):
            magic_errors = (magic.error, OSError, ValueError)
        else:
            magic_errors = (OSError, ValueError)

        try:
            fm = magic.detect_from_filename(str(file_path))
        except magic_errors as err:
            _log_warn("Error detecting file type for %s: %s", str(file_path), err)
            return UNKNOWN_FILE_TYPE

        category = self._categorize_file(fm.mime_type)
        _log_debug_handlers(
            "Detected type of '%s': %s (%s)", file_path, fm.mime_type, category.value
        )
        return FileTypeInfo(fm.mime_type, fm.name, category, fm.encoding)

    def _categorize_file(self, mime_type: str) -> FileTypeCategory:
        mime_type = mime_type.lower()
        for pattern, category in self.category_rules.items():
            if mime_type.startswith(pattern):
                return category
        return FileTypeCategory.BINARY
