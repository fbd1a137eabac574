"""
Parameter store backend package.

This package provides abstraction for the key/value store that holds build
inputs (credentials, tokens, version) and the published image id.
"""

from .base import ParameterStore
from .local import LocalParameterStore
from .ssm import SSMParameterStore
from ..build.utils import ConfigError


def get_parameter_store(config):
    """Factory function to get appropriate parameter store backend."""
    params_config = config.get('parameters', {})
    backend = params_config.get('backend', 'local')

    if backend == 'local':
        return LocalParameterStore(params_config)
    elif backend == 'ssm':
        return SSMParameterStore(params_config)
    else:
        raise ConfigError(f"Unknown parameter store backend: {backend}")


__all__ = ['ParameterStore', 'LocalParameterStore', 'SSMParameterStore', 'get_parameter_store']
