# Copyright Red Hat
#
# treesync/command.py - Directory tree synchronizer command interface
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""The ``treesync.command`` module provides both the treesync command line
interface, and a simple procedural interface to the ``treesync`` library
modules.

The procedural interface is used by the ``treesync`` command line tool,
and may be used by application programs that want to compare two trees
with one of the standard command line handlers.
"""
from argparse import ArgumentParser
from os.path import basename
import logging
import sys

from treesync import (
    TREESYNC_DEBUG_COMPARE,
    TREESYNC_DEBUG_HANDLERS,
    TREESYNC_DEBUG_COMMAND,
    TREESYNC_DEBUG_ALL,
    TREESYNC_SUBSYSTEM_COMMAND,
    TreesyncAbortError,
    TreesyncCancelledError,
    TreesyncError,
    SubsystemFilter,
    set_debug_mask,
    __version__,
)
from treesync.compare import (
    ChangesHandler,
    ChangesSearcher,
    CompareOptions,
    EqualityLevel,
    TreesyncConfig,
)
from treesync.compare.options import COLOR_MODES, TREESYNC_CFG_PATH
from treesync.handlers import InfoHandler, ReportHandler, SyncHandler
from treesync.term import TermControl
from treesync._signals import cancel_on_signals

_log = logging.getLogger(__name__)

_log_debug = _log.debug
_log_info = _log.info
_log_warn = _log.warning
_log_error = _log.error


def _log_debug_command(msg, *args, **kwargs):
    """A wrapper for command subsystem debug logs."""
    _log.debug(msg, *args, extra={"subsystem": TREESYNC_SUBSYSTEM_COMMAND}, **kwargs)


_DEFAULT_LOG_LEVEL = logging.WARNING
_CONSOLE_HANDLER = None

#: Exit status for a completed comparison.
STATUS_OK = 0
#: Exit status for invalid arguments, configuration or system errors and
#: for a comparison aborted by the user.
STATUS_ERROR = 1
#: Exit status for a comparison cancelled by a signal.
STATUS_CANCELLED = 2

LEVEL_CHOICES = [level.value for level in EqualityLevel]


def compare_trees(dir1, dir2, handler: ChangesHandler, options: CompareOptions):
    """
    Compare the directory trees ``dir1`` and ``dir2``, delivering changes
    to ``handler``.

    SIGINT and SIGTERM cancel the comparison while it is running.

    :param dir1: The first root directory.
    :param dir2: The second root directory.
    :param handler: The handler receiving change events.
    :type handler: ``ChangesHandler``
    :param options: The options for this comparison.
    :type options: ``CompareOptions``
    :returns: The ``ChangesSearcher`` used for the comparison.
    :rtype: ``ChangesSearcher``
    :raises: ``TreesyncArgumentError`` for invalid roots or exclusions,
             ``TreesyncCancelledError`` if cancelled, or
             ``TreesyncSystemError`` if a directory cannot be listed.
    """
    searcher = ChangesSearcher(handler, dir1, dir2, options.exclude)
    searcher.level = options.level
    searcher.fix_last_modified = options.fix_last_modified
    if isinstance(handler, SyncHandler) and handler.cancelled is None:
        handler.cancelled = lambda: searcher.interrupted
    _log_debug_command("Created %s", repr(searcher))

    with cancel_on_signals(searcher):
        searcher.search()
    return searcher


def create_handler(dir1, dir2, options: CompareOptions, out=None) -> ReportHandler:
    """
    Create the command line handler selected by ``options``.

    :param dir1: The first root directory.
    :param dir2: The second root directory.
    :param options: The options for this comparison.
    :type options: ``CompareOptions``
    :param out: The output stream, by default ``sys.stdout``.
    :returns: An ``InfoHandler`` if ``options.info`` is set, otherwise a
              ``SyncHandler``.
    :rtype: ``ReportHandler``
    """
    out = out if out is not None else sys.stdout
    term_control = TermControl(term_stream=out, color=options.color)
    handler_class = InfoHandler if options.info else SyncHandler
    return handler_class(
        options.verbose,
        out,
        dir1,
        dir2,
        term_control=term_control,
        file_types=options.file_types,
    )


def _load_config(cmd_args) -> TreesyncConfig:
    if cmd_args.config:
        return TreesyncConfig.from_file(cmd_args.config, required=True)
    return TreesyncConfig.from_file(TREESYNC_CFG_PATH)


def _compare_cmd(cmd_args):
    """
    Compare command handler.

    Compare the two trees named on the command line and report or resolve
    each difference.

    :param cmd_args: Command line arguments for the command
    :returns: integer status code returned from ``main()``
    """
    try:
        config = _load_config(cmd_args)
        options = CompareOptions.from_cmd_args(cmd_args, config)
    except (TreesyncError, ValueError) as err:
        _log_error("Invalid options: %s", err)
        return STATUS_ERROR

    _log_debug_command("Compare options:\n%s", str(options))

    handler = create_handler(cmd_args.path1, cmd_args.path2, options)
    try:
        compare_trees(cmd_args.path1, cmd_args.path2, handler, options)
    except TreesyncCancelledError:
        _log_info("Comparison cancelled")
        return STATUS_CANCELLED
    except TreesyncAbortError:
        _log_info("Comparison aborted by the user")
        return STATUS_ERROR
    except TreesyncError as err:
        _log_error("Comparison failed: %s", err)
        return STATUS_ERROR

    if cmd_args.summary:
        print(handler.summary())
    return STATUS_OK


def setup_logging(cmd_args):
    """
    Set up treesync logging.
    """
    # pylint: disable=global-statement
    global _CONSOLE_HANDLER
    level = _DEFAULT_LOG_LEVEL
    if cmd_args.verbose and cmd_args.verbose > 1:
        level = logging.DEBUG
    elif cmd_args.verbose and cmd_args.verbose > 0:
        level = logging.INFO

    treesync_log = logging.getLogger("treesync")
    formatter = logging.Formatter("%(levelname)s - %(message)s")
    treesync_log.setLevel(level)
    if treesync_log.hasHandlers():
        treesync_log.handlers.clear()

    # Subsystem log filtering
    _treesync_subsystem_filter = SubsystemFilter("treesync")

    # Main console handler
    _CONSOLE_HANDLER = logging.StreamHandler()

    _CONSOLE_HANDLER.setLevel(level)
    _CONSOLE_HANDLER.setFormatter(formatter)
    _CONSOLE_HANDLER.addFilter(_treesync_subsystem_filter)

    treesync_log.addHandler(_CONSOLE_HANDLER)


def shutdown_logging():
    """
    Shut down treesync logging.
    """
    logging.shutdown()


def set_debug(debug_arg):
    """
    Set debugging mask from command line argument.
    """
    if not debug_arg:
        return

    mask_map = {
        "compare": TREESYNC_DEBUG_COMPARE,
        "handlers": TREESYNC_DEBUG_HANDLERS,
        "command": TREESYNC_DEBUG_COMMAND,
        "all": TREESYNC_DEBUG_ALL,
    }

    mask = 0
    for name in debug_arg.split(","):
        if name not in mask_map:
            raise ValueError(f"Unknown debug option: {name}")
        mask |= mask_map[name]
    set_debug_mask(mask)


def _add_compare_args(parser):
    parser.add_argument(
        "-c",
        "--config",
        metavar="CONFIG",
        type=str,
        help="Read settings from CONFIG instead of the default file",
    )
    parser.add_argument(
        "-i",
        "--info",
        action="store_true",
        help="Only report differences, do not ask for actions",
    )
    parser.add_argument(
        "-f",
        "--fix-last-modified",
        action="store_true",
        help="Copy the last modified time to the second file of equal pairs",
    )
    parser.add_argument(
        "-l",
        "--level",
        type=str,
        choices=LEVEL_CHOICES,
        help="Equality level used to compare files (default: content)",
    )
    parser.add_argument(
        "-x",
        "--exclude",
        metavar="PATH",
        action="append",
        help="Exclude PATH, relative to either root, from the comparison",
    )
    parser.add_argument(
        "-t",
        "--summary",
        action="store_true",
        help="Print a summary of the comparison when finished",
    )
    parser.add_argument(
        "--file-types",
        action="store_true",
        help="Show file type information using libmagic in verbose reports",
    )
    parser.add_argument(
        "--color",
        type=str,
        choices=list(COLOR_MODES),
        help="Control use of color in reports",
    )
    parser.add_argument("path1", metavar="PATH1", help="The first directory")
    parser.add_argument("path2", metavar="PATH2", help="The second directory")


def main(args):
    """
    Main entry point for treesync.
    """
    parser = ArgumentParser(
        description="Directory tree synchronizer", prog=basename(args[0])
    )

    # Global arguments
    parser.add_argument(
        "-d",
        "--debug",
        metavar="DEBUGOPTS",
        type=str,
        help="A list of debug options to enable",
    )
    parser.add_argument("-v", "--verbose", help="Enable verbose output", action="count")
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        help="Report the version number of treesync",
        version=__version__,
    )
    _add_compare_args(parser)

    cmd_args = parser.parse_args(args[1:])

    status = STATUS_ERROR

    try:
        set_debug(cmd_args.debug)
    except ValueError as err:
        print(err)
        parser.print_help()
        return status

    setup_logging(cmd_args)

    _log_debug_command("Parsed %s", " ".join(args[1:]))

    if cmd_args.debug:
        status = _compare_cmd(cmd_args)
    else:
        try:
            status = _compare_cmd(cmd_args)
        # pylint: disable=broad-except
        except KeyboardInterrupt:  # pragma: no cover
            _log_info("Exiting on user cancel")
        except Exception as err:
            _log_error("Command failed: %s", err)

    shutdown_logging()
    return status


# vim: set et ts=4 sw=4 :
