#!/usr/bin/env python3
"""
Variables file rewriting.

The builder reads its user variables from a file that is regenerated on every
run. Three fields are overwritten with values resolved for this build. The
rewrite is checked: each target field must already exist, and after writing
the file is read back and every target field must equal the injected value.

Supported formats, chosen by file name:
  *.json            Packer JSON var-file
  *.yaml / *.yml    YAML mapping (e.g. Ansible extra vars)
  *.pkrvars.hcl     Packer HCL var-file, top-level `key = "value"` lines
"""

import json
import re
from pathlib import Path

import yaml

from .utils import VariablesError


def _file_format(path):
    name = path.name.lower()
    if name.endswith('.json'):
        return 'json'
    if name.endswith(('.yaml', '.yml')):
        return 'yaml'
    if name.endswith('.hcl'):
        return 'hcl'
    raise VariablesError(f"Unsupported variables file format: {path.name}")


def _hcl_pattern(field):
    return re.compile(
        r'^(?P<lead>[ \t]*' + re.escape(field) + r'[ \t]*=[ \t]*)"(?P<value>(?:[^"\\\n]|\\.)*)"[ \t]*$',
        re.MULTILINE
    )


def _read_hcl(text, fields):
    values = {}
    for field in fields:
        matches = list(_hcl_pattern(field).finditer(text))
        if len(matches) == 1:
            values[field] = json.loads(f'"{matches[0].group("value")}"')
        elif len(matches) > 1:
            raise VariablesError(f"Field '{field}' is assigned {len(matches)} times")
    return values


def _substitute_hcl(text, substitutions):
    for field, value in substitutions.items():
        encoded = json.dumps(value)
        text, count = _hcl_pattern(field).subn(
            lambda m: m.group('lead') + encoded, text
        )
        if count != 1:
            raise VariablesError(f"Field '{field}' matched {count} assignments, expected exactly 1")
    return text


def read_variables(path, fields=None):
    """Return the variables in path, limited to fields for HCL files."""
    path = Path(path)
    fmt = _file_format(path)
    text = path.read_text()

    try:
        if fmt == 'json':
            data = json.loads(text)
        elif fmt == 'yaml':
            data = yaml.safe_load(text)
        else:
            return _read_hcl(text, fields or [])
    except (ValueError, yaml.YAMLError) as e:
        raise VariablesError(f"Cannot parse variables file {path}: {e}") from e

    if not isinstance(data, dict):
        raise VariablesError(f"Variables file {path} must contain a mapping")
    return data


def render_variables(path, substitutions):
    """
    Overwrite the substituted fields of the variables file in place.

    Args:
        path: Variables file path
        substitutions: Dict of field name -> string value

    Returns:
        Dict of the fields as read back from the file
    """
    path = Path(path)
    if not path.exists():
        raise VariablesError(f"Variables file not found: {path}")
    if not substitutions:
        raise VariablesError("No substitutions configured")

    fmt = _file_format(path)
    fields = list(substitutions)
    current = read_variables(path, fields)

    missing = [field for field in fields if field not in current]
    if missing:
        raise VariablesError(f"Fields not present in {path}: {', '.join(missing)}")

    print(f"Rewriting {len(fields)} fields in {path}: {', '.join(fields)}")
    if fmt == 'json':
        current.update(substitutions)
        path.write_text(json.dumps(current, indent=2) + "\n")
    elif fmt == 'yaml':
        current.update(substitutions)
        with open(path, 'w') as f:
            yaml.safe_dump(current, f, default_flow_style=False, sort_keys=False)
    else:
        path.write_text(_substitute_hcl(path.read_text(), substitutions))

    written = read_variables(path, fields)
    mismatched = [field for field, value in substitutions.items() if written.get(field) != value]
    if mismatched:
        raise VariablesError(f"Fields not written verbatim to {path}: {', '.join(mismatched)}")

    print(f"[OK] Variables file verified: {path}")
    return {field: written[field] for field in fields}
