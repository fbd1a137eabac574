#!/usr/bin/env python3
"""
Packer builder template generation.

The template has one amazon-ebs builder and a fixed provisioner sequence:
upload the authorized key, bootstrap the instance, upload the application
source, run the Ansible playbook, clean up.
"""

import json
from pathlib import Path


PROVISIONER_ORDER = ('file', 'shell', 'file', 'ansible', 'shell')

DEFAULT_SOURCE_FILTER = {
    'name': 'ubuntu/images/hvm-ssd/ubuntu-jammy-22.04-amd64-server-*',
    'owners': ['099720109477'],
    'virtualization_type': 'hvm',
}


def _user(var):
    return '{{user `' + var + '`}}'


def _env(var):
    return '{{env `' + var + '`}}'


def _build_variables(config):
    """User variables: substituted fields (from the var-file) plus env-supplied naming variables."""
    builder = config['builder']
    variables = {field: '' for field in config['variables']['substitutions']}
    for var, env_name in builder.get('naming_env', {}).items():
        variables[var] = _env(env_name)
    return variables


def _image_name(config):
    builder = config['builder']
    parts = [builder.get('image_name_prefix', builder['name'])]
    parts.extend(_user(var) for var in builder.get('image_name_vars', []))
    parts.append('{{timestamp}}')
    return '-'.join(parts)


def _builder(config):
    builder = config['builder']
    source_filter = dict(DEFAULT_SOURCE_FILTER)
    source_filter.update(builder.get('source_ami_filter', {}))

    tags = {'Name': _image_name(config)}
    for tag, var in builder.get('tags', {}).items():
        tags[tag] = _user(var)

    return {
        'type': 'amazon-ebs',
        'name': builder['name'],
        'region': builder['region'],
        'instance_type': builder['instance_type'],
        'ssh_username': builder.get('ssh_username', 'ubuntu'),
        'source_ami_filter': {
            'filters': {
                'name': source_filter['name'],
                'root-device-type': 'ebs',
                'virtualization-type': source_filter['virtualization_type'],
            },
            'owners': list(source_filter['owners']),
            'most_recent': True,
        },
        'ami_name': _image_name(config),
        'tags': tags,
    }


def _provisioners(config):
    builder = config['builder']
    steps = builder['provisioners']
    playbook = config['playbook']

    return [
        {
            'type': 'file',
            'source': builder['public_key_file'],
            'destination': steps['public_key_destination'],
        },
        {
            'type': 'shell',
            'script': steps['bootstrap_script'],
            'execute_command': "chmod +x {{ .Path }}; sudo -E sh '{{ .Path }}'",
        },
        {
            'type': 'file',
            'source': config['source']['checkout_dir'].rstrip('/') + '/',
            'destination': steps['source_destination'],
        },
        {
            'type': 'ansible',
            'playbook_file': playbook['path'],
            'user': builder.get('ssh_username', 'ubuntu'),
            'extra_arguments': ['--extra-vars', f"app_source_dir={steps['source_destination']}"],
        },
        {
            'type': 'shell',
            'script': steps['cleanup_script'],
            'execute_command': "chmod +x {{ .Path }}; sudo -E sh '{{ .Path }}'",
        },
    ]


def render_builder_template(config):
    """Build the Packer JSON template as a dict."""
    return {
        'variables': _build_variables(config),
        'builders': [_builder(config)],
        'provisioners': _provisioners(config),
    }


def check_provisioner_order(template):
    """Return a list of errors if the provisioner sequence is not the fixed one."""
    builders = template.get('builders', [])
    if len(builders) != 1:
        return [f"Template must define exactly one builder, found {len(builders)}"]

    types = tuple(p.get('type') for p in template.get('provisioners', []))
    if types != PROVISIONER_ORDER:
        return [f"Provisioner order {list(types)} does not match {list(PROVISIONER_ORDER)}"]
    return []


def write_builder_template(config, output_path=None):
    output_path = Path(output_path or config['builder']['template'])
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        json.dump(render_builder_template(config), f, indent=2)
        f.write("\n")
    print(f"Wrote builder template: {output_path}")
    return output_path
