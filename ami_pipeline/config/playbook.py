#!/usr/bin/env python3
"""
Ansible playbook generation: one play applying the three image roles in order.
"""

from pathlib import Path

import yaml


DEFAULT_ROLES = ['ssh', 'dependencies', 'app']


def render_playbook(config):
    playbook = config.get('playbook', {})
    return [{
        'name': playbook.get('name', 'Provision image'),
        'hosts': playbook.get('hosts', 'all'),
        'become': playbook.get('become', True),
        'roles': list(playbook.get('roles', DEFAULT_ROLES)),
    }]


def check_playbook_roles(plays):
    """Return a list of errors if the playbook is not a single play applying ssh, dependencies, app in order."""
    if not isinstance(plays, list) or len(plays) != 1:
        return ["Playbook must contain exactly one play"]

    roles = list(plays[0].get('roles', []))
    if roles != DEFAULT_ROLES:
        return [f"Playbook roles must be {DEFAULT_ROLES} in that order, found {roles}"]
    return []


def write_playbook(config, output_path=None):
    output_path = Path(output_path or config['playbook']['path'])
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        f.write("---\n")
        yaml.safe_dump(render_playbook(config), f, default_flow_style=False, sort_keys=False)
    print(f"Wrote playbook: {output_path}")
    return output_path
