# Copyright Red Hat
#
# treesync/handlers/__init__.py - Directory tree synchronizer handlers
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Command line change handlers.
"""

from ._base import ReportHandler
from ._info import InfoHandler
from ._sync import SyncHandler, copy_path, delete_path

__all__ = [
    "ReportHandler",
    "InfoHandler",
    "SyncHandler",
    "copy_path",
    "delete_path",
]
