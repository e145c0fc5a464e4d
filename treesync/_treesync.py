# Copyright Red Hat
#
# treesync/_treesync.py - Directory tree synchronizer global definitions
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Global definitions for the top-level treesync package.
"""
import logging

_log = logging.getLogger("treesync")

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

# Treesync debugging subsystem mask
TREESYNC_DEBUG_COMPARE = 1
TREESYNC_DEBUG_HANDLERS = 2
TREESYNC_DEBUG_COMMAND = 4
TREESYNC_DEBUG_ALL = (
    TREESYNC_DEBUG_COMPARE | TREESYNC_DEBUG_HANDLERS | TREESYNC_DEBUG_COMMAND
)

# Treesync debugging subsystem names
TREESYNC_SUBSYSTEM_COMPARE = "treesync.compare"
TREESYNC_SUBSYSTEM_HANDLERS = "treesync.handlers"
TREESYNC_SUBSYSTEM_COMMAND = "treesync.command"

_DEBUG_MASK_TO_SUBSYSTEM = {
    TREESYNC_DEBUG_COMPARE: TREESYNC_SUBSYSTEM_COMPARE,
    TREESYNC_DEBUG_HANDLERS: TREESYNC_SUBSYSTEM_HANDLERS,
    TREESYNC_DEBUG_COMMAND: TREESYNC_SUBSYSTEM_COMMAND,
}

_debug_subsystems = set()


class SubsystemFilter(logging.Filter):
    """
    Filters DEBUG records based on a set of enabled subsystem names.
    Non-DEBUG records or DEBUG records without a 'subsystem' attribute
    are always passed through.
    """

    def __init__(self, name=""):
        super().__init__(name)
        self.enabled_subsystems = set(_debug_subsystems)

    def filter(self, record):
        if record.levelno != logging.DEBUG:
            return True

        if not hasattr(record, "subsystem"):
            return True

        return record.subsystem in self.enabled_subsystems

    def set_debug_subsystems(self, subsystems):
        """Sets the collection of subsystems to allow."""
        self.enabled_subsystems = set(subsystems)


def get_debug_mask():
    """
    Return the current debug mask for the ``treesync`` package.

    :returns: The current debug mask value
    :rtype: int
    """
    enabled_subsystems = set(_debug_subsystems)
    treesync_log = logging.getLogger("treesync")

    for handler in treesync_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                enabled_subsystems.update(f.enabled_subsystems)

    mask_map = {v: k for k, v in _DEBUG_MASK_TO_SUBSYSTEM.items()}
    mask = 0
    for subsystem_name in enabled_subsystems:
        mask |= mask_map.get(subsystem_name, 0)
    return mask


def set_debug_mask(mask):
    """
    Set the debug mask for the ``treesync`` package.

    :param mask: the logical OR of the ``TREESYNC_DEBUG_*``
                 values to log.
    :rtype: None
    """
    # pylint: disable=global-statement
    global _debug_subsystems

    if mask < 0 or mask > TREESYNC_DEBUG_ALL:
        raise ValueError(f"Invalid treesync debug mask: {mask}")

    enabled_subsystems = []
    for flag, subsystem_name in _DEBUG_MASK_TO_SUBSYSTEM.items():
        if mask & flag:
            enabled_subsystems.append(subsystem_name)

    treesync_log = logging.getLogger("treesync")
    for handler in treesync_log.handlers:
        for f in handler.filters:
            if isinstance(f, SubsystemFilter):
                f.set_debug_subsystems(enabled_subsystems)

    _debug_subsystems = set(enabled_subsystems)


#
# Treesync exception types
#


class TreesyncError(Exception):
    """
    Base class for treesync errors.
    """


class TreesyncArgumentError(TreesyncError):
    """
    An invalid argument was passed to a treesync API call: for e.g. a root
    path that is not a directory, or two roots that contain one another
    without an exclusion covering the nested root.
    """


class TreesyncSystemError(TreesyncError):
    """
    An error when calling the operating system that prevents the
    comparison from continuing.
    """


class TreesyncConfigError(TreesyncError):
    """
    An error reading or parsing a configuration file.
    """


class TreesyncCancelledError(TreesyncError):
    """
    A comparison was stopped by request before it completed.
    """


class TreesyncAbortError(TreesyncError):
    """
    The user chose to abort the comparison from an interactive handler.
    """


__all__ = [
    # Debug logging subsystems
    "TREESYNC_DEBUG_COMPARE",
    "TREESYNC_DEBUG_HANDLERS",
    "TREESYNC_DEBUG_COMMAND",
    "TREESYNC_DEBUG_ALL",
    # Debug subsystem names
    "TREESYNC_SUBSYSTEM_COMPARE",
    "TREESYNC_SUBSYSTEM_HANDLERS",
    "TREESYNC_SUBSYSTEM_COMMAND",
    # Logging helpers
    "SubsystemFilter",
    "get_debug_mask",
    "set_debug_mask",
    # Exception classes
    "TreesyncError",
    "TreesyncArgumentError",
    "TreesyncSystemError",
    "TreesyncConfigError",
    "TreesyncCancelledError",
    "TreesyncAbortError",
]
