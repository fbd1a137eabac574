#!/usr/bin/env python3
"""AWS Systems Manager Parameter Store backend for production mode."""

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .base import ParameterStore
from ..build.utils import ParameterError, ParameterNotFoundError


class SSMParameterStore(ParameterStore):
    """SSM Parameter Store backend for production mode."""

    def __init__(self, config):
        self.region = config.get('region', 'us-east-1')
        self.endpoint_url = config.get('endpoint_url')
        self.parameter_type = config.get('output_type', 'String')
        self._client = None

    def _get_client(self):
        """Lazy initialization of boto3 client."""
        if self._client is None:
            self._client = boto3.client(
                'ssm',
                endpoint_url=self.endpoint_url,
                region_name=self.region
            )
        return self._client

    def _handle_error(self, operation, name, error):
        """Unified error handling."""
        if isinstance(error, ClientError):
            code = error.response.get('Error', {}).get('Code', 'Unknown')
            if code == 'ParameterNotFound':
                raise ParameterNotFoundError(f"Parameter not found: {name}") from error
            raise ParameterError(f"SSM {operation} failed for {name} ({code}): {error}") from error
        raise ParameterError(f"SSM {operation} failed for {name}: {error}") from error

    def get(self, name):
        client = self._get_client()
        try:
            response = client.get_parameter(Name=name, WithDecryption=True)
        except (ClientError, BotoCoreError) as e:
            self._handle_error("get", name, e)
        return response['Parameter']['Value']

    def put(self, name, value):
        try:
            previous = self.get(name)
        except ParameterNotFoundError:
            previous = None

        client = self._get_client()
        print(f"Writing SSM parameter: {name}")
        try:
            client.put_parameter(
                Name=name, Value=value, Type=self.parameter_type, Overwrite=True
            )
        except (ClientError, BotoCoreError) as e:
            self._handle_error("put", name, e)
        print("[OK] Written")
        return previous
