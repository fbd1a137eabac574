#!/usr/bin/env python3
"""
Pipeline configuration validation
Validates the pipeline config against its JSON schema, the rendered template
and playbook against their fixed shapes, and the files the build relies on.
"""

import json
from pathlib import Path

import jsonschema

from .playbook import check_playbook_roles, render_playbook
from .template import check_provisioner_order, render_builder_template
from ..build.inputs import CONSUMED_PARAMETERS, PRODUCED_PARAMETER
from ..build.utils import ROOT


SCHEMA_FILE = ROOT / 'schemas' / 'pipeline-config-schema.json'

SUBSTITUTION_SOURCES = ('version', 'commit', 'username', 'public_key')


def load_schema(schema_file=SCHEMA_FILE):
    with open(schema_file, 'r') as f:
        return json.load(f)


def validate_against_schema(config, schema_file=SCHEMA_FILE):
    """
    Validate config against the JSON schema.
    Returns (is_valid, errors_list)
    """
    if not Path(schema_file).exists():
        return False, [f"Schema file not found: {schema_file}"]

    try:
        schema = load_schema(schema_file)
    except ValueError as e:
        return False, [f"Error loading schema file: {e}"]

    try:
        validator = jsonschema.Draft7Validator(schema)
    except jsonschema.SchemaError as e:
        return False, [f"Schema file is invalid: {e.message}"]

    errors = []
    for error in sorted(validator.iter_errors(config), key=lambda e: [str(p) for p in e.path]):
        error_path = ' -> '.join(str(p) for p in error.path) if error.path else 'root'
        errors.append(f"Schema validation failed at '{error_path}': {error.message}")
    return len(errors) == 0, errors


def check_semantics(config):
    """Cross-field checks the schema cannot express. Returns list of errors."""
    errors = []

    names = config['parameters']['names']
    for key in CONSUMED_PARAMETERS + (PRODUCED_PARAMETER,):
        if not names.get(key):
            errors.append(f"parameters.names.{key} is required")

    consumed = {names.get(key) for key in CONSUMED_PARAMETERS}
    if names.get(PRODUCED_PARAMETER) in consumed:
        errors.append("parameters.names.image_id must not overwrite an input parameter")

    substitutions = config['variables']['substitutions']
    if len(substitutions) != 3:
        errors.append(f"variables.substitutions must name exactly 3 fields, found {len(substitutions)}")
    for field, source in substitutions.items():
        if source not in SUBSTITUTION_SOURCES:
            errors.append(
                f"variables.substitutions.{field}: unknown source '{source}' "
                f"(must be one of {', '.join(SUBSTITUTION_SOURCES)})"
            )

    known_vars = set(substitutions) | set(config['builder'].get('naming_env', {}))
    for var in config['builder'].get('image_name_vars', []):
        if var not in known_vars:
            errors.append(f"builder.image_name_vars: '{var}' is not a substituted or env-supplied variable")
    for tag, var in config['builder'].get('tags', {}).items():
        if var not in known_vars:
            errors.append(f"builder.tags.{tag}: '{var}' is not a substituted or env-supplied variable")

    errors.extend(check_provisioner_order(render_builder_template(config)))
    errors.extend(check_playbook_roles(render_playbook(config)))
    return errors


def check_files(config):
    """Check that files the build reads from the repository exist. Returns list of errors."""
    steps = config['builder']['provisioners']
    required = {
        'variables.file': config['variables']['file'],
        'builder.provisioners.bootstrap_script': steps['bootstrap_script'],
        'builder.provisioners.cleanup_script': steps['cleanup_script'],
        'playbook.path': config['playbook']['path'],
    }
    return [f"{key}: file not found: {path}" for key, path in required.items() if not Path(path).exists()]


def validate_config(config):
    """
    Validate a loaded pipeline config.
    Uses JSON schema validation + cross-field checks.
    """
    if not config:
        return False, ["Config is empty"]

    is_valid, errors = validate_against_schema(config)
    if not is_valid:
        return False, errors

    errors = check_semantics(config)
    return len(errors) == 0, errors
