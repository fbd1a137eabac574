#!/usr/bin/env python3
import re
from pathlib import Path

from ..build.utils import ROOT, ConfigError

# Generates the GitLab CI pipeline (.gitlab-ci.yml) by populating a template.

DEFAULT_TEMPLATE = ROOT / "templates" / "gitlab-ci-template.yml"
DEFAULT_OUTPUT = '.gitlab-ci.yml'


def _placeholders(config, config_path):
    builder = config['builder']
    artifact = config['artifact']
    return {
        '%%PACKER_VERSION%%': str(builder.get('packer_version', '1.10.3')),
        '%%CONFIG_PATH%%': str(config_path),
        '%%CHECKOUT_DIR%%': config['source']['checkout_dir'],
        '%%VARIABLES_FILE%%': config['variables']['file'],
        '%%PUBLIC_KEY_FILE%%': builder['public_key_file'],
        '%%ARTIFACT_FILE%%': artifact['file'],
        '%%METADATA_FILE%%': artifact['metadata'],
    }


def render_pipeline(config, config_path='config/pipeline-config.yaml', template_path=None):
    """Return the .gitlab-ci.yml text with stages validate, prepare, build and publish."""
    template_path = Path(template_path or config.get('pipeline', {}).get('template') or DEFAULT_TEMPLATE)
    if not template_path.exists():
        raise ConfigError(f"Pipeline template not found: {template_path}")

    content = template_path.read_text()
    for placeholder, value in _placeholders(config, config_path).items():
        content = content.replace(placeholder, value)

    leftover = sorted(set(re.findall(r"%%(\w+)%%", content)))
    if leftover:
        raise ConfigError(f"Unresolved placeholders in {template_path}: {', '.join(leftover)}")
    return content


def write_pipeline(config, config_path='config/pipeline-config.yaml', output_path=None):
    output_path = Path(output_path or config.get('pipeline', {}).get('output', DEFAULT_OUTPUT))
    output_path.write_text(render_pipeline(config, config_path))
    print(f"Wrote pipeline definition: {output_path}")
    return output_path
