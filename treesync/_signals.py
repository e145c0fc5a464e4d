# Copyright Red Hat
#
# treesync/_signals.py - Directory tree synchronizer signal handling
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Helpers for turning termination signals into search cancellation.
"""
from signal import SIG_DFL, SIGINT, SIGTERM, getsignal, signal
from contextlib import contextmanager
import logging

_log = logging.getLogger(__name__)
_log_debug = _log.debug

_to_cancel = (SIGINT, SIGTERM)


@contextmanager
def cancel_on_signals(searcher):
    """
    Cancel ``searcher`` when a termination signal is received while the
    context is active. The previous signal handlers are restored on exit.

    Must be entered from the main thread.

    :param searcher: An object with a ``cancel()`` method.
    """
    # pylint: disable=unused-argument
    def _handler(signum, frame):
        searcher.cancel()

    _log_debug("Installing cancellation handlers for signals %s", _to_cancel)
    previous = {signum: getsignal(signum) for signum in _to_cancel}
    for signum in _to_cancel:
        signal(signum, _handler)
    try:
        yield searcher
    finally:
        _log_debug("Restoring signal handlers for signals %s", _to_cancel)
        for signum, old_handler in previous.items():
            signal(signum, old_handler if old_handler is not None else SIG_DFL)
