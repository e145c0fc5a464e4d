# Copyright Red Hat
#
# treesync/compare/__init__.py - Directory tree synchronizer compare package
#
# This file is part of the treesync project.
#
# SPDX-License-Identifier: Apache-2.0
"""
Directory tree comparison package.

Provides the recursive comparison of two directory trees and the handler
interface that receives its results. The main entry points are
``ChangesSearcher``, ``ChangesHandler`` and ``CompareOptions``.
"""
from .handler import ChangesHandler
from .level import EqualityLevel
from .options import CompareOptions, TreesyncConfig
from .searcher import ChangesSearcher

__all__ = [
    "ChangesHandler",
    "ChangesSearcher",
    "CompareOptions",
    "EqualityLevel",
    "TreesyncConfig",
]
