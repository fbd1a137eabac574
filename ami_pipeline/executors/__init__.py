#!/usr/bin/env python3
"""
Executor package exports.
"""

from .base import BaseExecutor
from .local import LocalExecutor


__all__ = ['BaseExecutor', 'LocalExecutor']
