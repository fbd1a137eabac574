#!/usr/bin/env python3
"""
Build utilities - shared helper functions and errors.
"""

import os
from pathlib import Path

import yaml


ROOT = Path(__file__).parent.parent.parent
DEFAULT_CONFIG = ROOT / "config" / "pipeline-config.yaml"
DEFAULT_METADATA = "build/pipeline-metadata.yaml"


class PipelineError(Exception):
    """Raised when a pipeline step fails."""


class ConfigError(PipelineError):
    """Raised when the pipeline configuration is missing or invalid."""


class ParameterError(PipelineError):
    """Raised when a parameter cannot be read from or written to the store."""


class ParameterNotFoundError(ParameterError):
    """Raised when a parameter does not exist in the store."""


class CommandError(PipelineError):
    """Raised when an external command exits nonzero."""


class SourceError(PipelineError):
    """Raised when the application source cannot be checked out."""


class VariablesError(PipelineError):
    """Raised when the variables file cannot be rewritten as requested."""


class BuildError(PipelineError):
    """Raised when the image build fails or yields no image id."""


def load_yaml(file_path):
    with open(file_path, 'r') as f:
        return yaml.safe_load(f)


def deep_merge(base, override):
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_config(config_path=None):
    """
    Load configuration with optional local overrides.
    - Default: config/pipeline-config.yaml (production mode)
    - PIPELINE_ENV=local: merges pipeline-config.local.yaml from the same directory
    """
    base_path = Path(config_path) if config_path else DEFAULT_CONFIG
    if not base_path.exists():
        raise ConfigError(f"Config file not found: {base_path}")

    try:
        base_config = load_yaml(base_path) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML syntax error in {base_path}: {e}") from e

    env = os.environ.get('PIPELINE_ENV', '').strip()
    if env == 'local':
        override_path = base_path.with_name(base_path.stem + ".local" + base_path.suffix)
        if override_path.exists():
            try:
                override_config = load_yaml(override_path) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"YAML syntax error in {override_path}: {e}") from e
            print(f"Applying local overrides: {override_path}")
            return deep_merge(base_config, override_config)

    return base_config


def save_metadata(metadata, output_path=DEFAULT_METADATA):
    """Save pipeline state for passing between CI stages."""
    Path(output_path).parent.mkdir(exist_ok=True, parents=True)
    with open(output_path, 'w') as f:
        yaml.safe_dump(metadata, f, default_flow_style=False, sort_keys=False)
    print(f"Saved metadata: {output_path}")


def load_metadata(metadata_path=DEFAULT_METADATA):
    """Load pipeline state from a previous CI stage."""
    if not Path(metadata_path).exists():
        raise PipelineError(f"Metadata file not found: {metadata_path} (run 'prepare' first)")
    return load_yaml(metadata_path) or {}


def mask_secrets(text, secrets):
    """Replace every non-empty secret in text with ****."""
    for secret in secrets or ():
        if secret:
            text = text.replace(secret, '****')
    return text


def mask_user(username):
    if len(username) <= 5:
        return username[:1] + '...'
    return f"{username[:3]}...{username[-2:]}"


def get_pipeline_id():
    """GitLab pipeline id, falling back to 'local' outside CI."""
    return os.environ.get('CI_PIPELINE_ID', 'local')


def print_phase(phase_num, phase_name):
    """Helper to print phase headers."""
    print(f"\n{'='*60}")
    if phase_num:
        print(f"PHASE {phase_num}: {phase_name}")
    else:
        print(phase_name)
    print(f"{'='*60}")
