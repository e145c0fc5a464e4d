# Copyright Red Hat
#
# treesync/compare/options.py - Directory tree synchronizer options
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Comparison options and configuration file support.
"""
from configparser import ConfigParser, Error as ConfigParserError
from dataclasses import dataclass, field
from typing import Optional, Tuple
from argparse import Namespace
from os.path import exists, expanduser, join
import logging

from treesync import TreesyncConfigError

from .level import EqualityLevel

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error

#: Base directory for treesync configuration
TREESYNC_CFG_DIR = join(expanduser("~"), ".config", "treesync")

#: Main configuration file path
TREESYNC_CFG_PATH = join(TREESYNC_CFG_DIR, "treesync.conf")

#: Main configuration file section
_TREESYNC_CFG_GLOBAL = "Global"

#: Level configuration key
_TREESYNC_CFG_LEVEL = "Level"

#: FixLastModified configuration key
_TREESYNC_CFG_FIX_LAST_MODIFIED = "FixLastModified"

#: Exclude configuration key
_TREESYNC_CFG_EXCLUDE = "Exclude"

#: Color configuration key
_TREESYNC_CFG_COLOR = "Color"

#: Accepted values for the color setting
COLOR_MODES = ("auto", "never", "always")


@dataclass(frozen=True)
class TreesyncConfig:
    """
    Settings read from the treesync configuration file.
    """

    #: Default equality level
    level: EqualityLevel = EqualityLevel.CONTENT
    #: Fix last modified times of equal files by default
    fix_last_modified: bool = False
    #: Paths always excluded from comparisons
    exclude: Tuple[str, ...] = field(default_factory=tuple)
    #: Default color mode
    color: str = "auto"

    @classmethod
    def from_file(
        cls, config_file: str = TREESYNC_CFG_PATH, required: bool = False
    ) -> "TreesyncConfig":
        """
        Load ``TreesyncConfig`` from an INI-style configuration file located
        at ``config_file``.

        :param config_file: path to treesync.conf
        :type config_file: ``str``.
        :param required: Fail if ``config_file`` does not exist.
        :type required: ``bool``
        :returns: A ``TreesyncConfig`` instance initialised from
                  ``config_file``.
        :rtype: ``TreesyncConfig``
        :raises: ``TreesyncConfigError`` if the file cannot be read or
                 contains an invalid value.
        """
        if not exists(config_file):
            if required:
                raise TreesyncConfigError(
                    f"Configuration file not found: {config_file}"
                )
            return TreesyncConfig()

        _log_debug("Loading configuration from '%s'", config_file)
        cfg = ConfigParser()
        try:
            if not cfg.read([config_file]):
                raise TreesyncConfigError(
                    f"Could not read configuration file: {config_file}"
                )
        except ConfigParserError as err:
            raise TreesyncConfigError(
                f"Error parsing configuration file {config_file}: {err}"
            ) from err

        if not cfg.has_section(_TREESYNC_CFG_GLOBAL):
            return TreesyncConfig()

        section = cfg[_TREESYNC_CFG_GLOBAL]
        kwargs = {}
        try:
            if _TREESYNC_CFG_LEVEL in section:
                kwargs["level"] = EqualityLevel.from_str(section[_TREESYNC_CFG_LEVEL])
            if _TREESYNC_CFG_FIX_LAST_MODIFIED in section:
                kwargs["fix_last_modified"] = section.getboolean(
                    _TREESYNC_CFG_FIX_LAST_MODIFIED
                )
        except ValueError as err:
            raise TreesyncConfigError(
                f"Invalid value in configuration file {config_file}: {err}"
            ) from err

        if _TREESYNC_CFG_EXCLUDE in section:
            kwargs["exclude"] = tuple(
                path.strip()
                for path in section[_TREESYNC_CFG_EXCLUDE].split(",")
                if path.strip()
            )

        if _TREESYNC_CFG_COLOR in section:
            color = section[_TREESYNC_CFG_COLOR].strip().lower()
            if color not in COLOR_MODES:
                raise TreesyncConfigError(
                    f"Invalid value in configuration file {config_file}: "
                    f"unknown color mode '{color}'"
                )
            kwargs["color"] = color

        config = TreesyncConfig(**kwargs)
        _log_debug("Loaded configuration: %s", repr(config))
        return config


@dataclass(frozen=True)
class CompareOptions:
    """
    Effective options for one comparison run.
    """

    #: The equality level used to compare files
    level: EqualityLevel = EqualityLevel.CONTENT
    #: Copy modification times to the second tree for equal files
    fix_last_modified: bool = False
    #: Paths excluded from the comparison, relative to either root
    exclude: Tuple[str, ...] = field(default_factory=tuple)
    #: Report differences without prompting for actions
    info: bool = False
    #: Verbosity of reporter output
    verbose: int = 0
    #: Show file type information in verbose reports
    file_types: bool = False
    #: Color mode: "auto", "never" or "always"
    color: str = "auto"

    def __str__(self):
        """
        Return a human readable string representation of this
        ``CompareOptions`` instance.

        :returns: A human readable string.
        :rtype: ``str``
        """

        def _value_str(val) -> str:
            if isinstance(val, tuple):
                return " ".join(val)
            if isinstance(val, EqualityLevel):
                return val.value
            return str(val)

        return "\n".join(
            f"{key}={_value_str(val)}" for key, val in self.__dict__.items()
        )

    @classmethod
    def from_cmd_args(
        cls, cmd_args: Namespace, config: Optional[TreesyncConfig] = None
    ) -> "CompareOptions":
        """
        Initialise CompareOptions from command line arguments.

        Values not given on the command line are taken from ``config``.
        Exclusions from ``config`` and the command line are combined.

        :param cmd_args: The command line arguments.
        :type cmd_args: ``Namespace``
        :param config: Optional configuration file settings.
        :type config: ``Optional[TreesyncConfig]``
        :returns: A new ``CompareOptions`` instance
        :rtype: ``CompareOptions``
        """
        config = config or TreesyncConfig()

        level = getattr(cmd_args, "level", None)
        if level is None:
            level = config.level
        elif not isinstance(level, EqualityLevel):
            level = EqualityLevel.from_str(level)

        exclude = config.exclude + tuple(getattr(cmd_args, "exclude", None) or ())

        options = cls(
            level=level,
            fix_last_modified=bool(
                getattr(cmd_args, "fix_last_modified", False)
                or config.fix_last_modified
            ),
            exclude=exclude,
            info=bool(getattr(cmd_args, "info", False)),
            verbose=getattr(cmd_args, "verbose", None) or 0,
            file_types=bool(getattr(cmd_args, "file_types", False)),
            color=getattr(cmd_args, "color", None) or config.color,
        )
        _log_debug("Initialised CompareOptions from arguments: %s", repr(options))
        return options
