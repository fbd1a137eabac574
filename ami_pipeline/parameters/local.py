#!/usr/bin/env python3
"""
Local parameter store backend for mock/development mode.
"""

from pathlib import Path

import yaml

from .base import ParameterStore
from ..build.utils import ParameterError, ParameterNotFoundError, load_yaml


class LocalParameterStore(ParameterStore):
    """YAML file of name: value pairs standing in for the remote store."""

    def __init__(self, config):
        self.path = Path(config.get('local_file', 'config/parameters.local.yaml'))

    def _load(self):
        if not self.path.exists():
            return {}
        try:
            return load_yaml(self.path) or {}
        except yaml.YAMLError as e:
            raise ParameterError(f"Local parameter file is not valid YAML: {self.path}: {e}") from e

    def get(self, name):
        values = self._load()
        if name not in values or values[name] is None:
            raise ParameterNotFoundError(f"Parameter not found: {name} (local file {self.path})")
        return str(values[name])

    def put(self, name, value):
        values = self._load()
        previous = values.get(name)
        values[name] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            yaml.safe_dump(values, f, default_flow_style=False, sort_keys=False)
        return None if previous is None else str(previous)
