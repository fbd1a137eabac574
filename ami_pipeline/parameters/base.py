#!/usr/bin/env python3
"""
Base parameter store interface for build inputs and outputs.
"""


class ParameterStore:
    """Base interface for parameter store backends."""

    def get(self, name):
        """Return the string value of a parameter. Raises ParameterError."""
        raise NotImplementedError

    def put(self, name, value):
        """Overwrite a parameter (last write wins). Returns the superseded value or None."""
        raise NotImplementedError
