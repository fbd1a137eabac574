#!/usr/bin/env python3
"""
AMI Build Orchestrator
Fetches build inputs, checks out the application and bakes a machine image
"""

import sys
import argparse
from pathlib import Path
from datetime import datetime

from .utils import (
    PipelineError, ConfigError,
    load_config, save_metadata, load_metadata,
    get_pipeline_id, print_phase
)
from .inputs import fetch_parameters, write_public_key, PRODUCED_PARAMETER
from .source import clone_source
from .variables import render_variables
from .packer import run_builder, extract_image_id, validate_template
from .artifact import write_artifact, read_artifact, remove_artifact, publish_image_id
from ..config.validation import validate_config, check_files
from ..config.template import write_builder_template
from ..config.playbook import write_playbook
from ..config.pipeline import write_pipeline
from ..executors import LocalExecutor
from ..parameters import get_parameter_store


def resolve_substitutions(substitutions, values):
    """Map each variables-file field to the value of its configured source."""
    resolved = {}
    for field, source in substitutions.items():
        if source not in values:
            raise ConfigError(f"Unknown substitution source '{source}' for field '{field}'")
        resolved[field] = values[source]
    return resolved


def prepare_command(config, store=None, executor=None):
    """PHASE 1: Fetch inputs, check out source and render the variables file."""
    print_phase(1, "PREPARE")
    store = store or get_parameter_store(config)
    executor = executor or LocalExecutor()
    source = config['source']
    builder = config['builder']

    print("Fetching build parameters...")
    inputs = fetch_parameters(store, config['parameters']['names'])

    ref = source.get('ref') or inputs['version']
    commit = clone_source(
        executor, source['repo_url'], ref, source['checkout_dir'],
        username=inputs['username'], token=inputs['access_token'],
        git_binary=source.get('git_binary', 'git')
    )

    write_public_key(builder['public_key_file'], inputs['public_key'])

    values = {
        'version': inputs['version'],
        'commit': commit,
        'username': inputs['username'],
        'public_key': inputs['public_key'],
    }
    substitutions = resolve_substitutions(config['variables']['substitutions'], values)
    render_variables(config['variables']['file'], substitutions)

    metadata = {
        'pipeline_id': get_pipeline_id(),
        'version': inputs['version'],
        'ref': ref,
        'commit': commit,
        'variables_file': config['variables']['file'],
        'substituted_fields': sorted(substitutions),
        'prepared_at': datetime.now().isoformat(),
    }
    save_metadata(metadata, config['artifact']['metadata'])
    print(f"\n✓ Prepared build of {ref} ({commit})")
    print("=" * 60)
    return metadata


def build_command(config, executor=None):
    """PHASE 2: Run the image builder and record the image id."""
    print_phase(2, "BUILD")
    artifact = config['artifact']
    builder = config['builder']
    executor = executor or LocalExecutor()

    metadata = load_metadata(artifact['metadata'])
    remove_artifact(artifact['file'])

    output = run_builder(
        executor, builder.get('packer_binary', 'packer'),
        builder['template'], config['variables']['file'],
        timeout=builder.get('timeout')
    )
    image_id = extract_image_id(output, builder.get('tail_lines', 2))

    write_artifact(artifact['file'], image_id)
    metadata['image_id'] = image_id
    metadata['built_at'] = datetime.now().isoformat()
    save_metadata(metadata, artifact['metadata'])

    print(f"\n✓ Built image {image_id}")
    print("=" * 60)
    return image_id


def publish_command(config, store=None):
    """PHASE 3: Publish the image id to the parameter store."""
    print_phase(3, "PUBLISH")
    artifact = config['artifact']
    store = store or get_parameter_store(config)

    image_id = read_artifact(artifact['file'])
    name = config['parameters']['names'][PRODUCED_PARAMETER]
    previous = publish_image_id(store, name, image_id)

    metadata = load_metadata(artifact['metadata'])
    metadata['published_to'] = name
    metadata['superseded_image_id'] = previous
    metadata['published_at'] = datetime.now().isoformat()
    save_metadata(metadata, artifact['metadata'])
    print("=" * 60)
    return image_id


def run_command(config, store=None, executor=None):
    """One-shot run of the full prepare -> build -> publish sequence."""
    print_phase(None, "AMI PIPELINE")
    store = store or get_parameter_store(config)
    executor = executor or LocalExecutor()

    prepare_command(config, store, executor)
    image_id = build_command(config, executor)
    publish_command(config, store)

    print("=" * 60)
    print(f"AMI PIPELINE COMPLETE: {image_id}")
    print("=" * 60)
    return image_id


def validate_command(config, executor=None, skip_packer=False):
    """Validate configuration and build files. Returns list of errors."""
    print_phase(None, "VALIDATING BUILD PREREQUISITES")

    print("[1/3] Validating configuration...")
    is_valid, errors = validate_config(config)
    if not is_valid:
        return errors
    print("  [OK] Configuration valid")

    print("[2/3] Checking build files...")
    errors = check_files(config)
    if errors:
        return errors
    print("  [OK] Build files present")

    print("[3/3] Checking builder template...")
    if skip_packer:
        print("  Skipped (--skip-packer)")
        return []

    builder = config['builder']
    template = Path(builder['template'])
    if not template.exists():
        return [f"builder.template: file not found: {template} (run 'render' first)"]
    errors = validate_template(
        executor or LocalExecutor(), builder.get('packer_binary', 'packer'),
        template, config['variables']['file']
    )
    if not errors:
        print("  [OK] packer validate passed")
    return errors


def render_command(config, config_path):
    """Write the builder template, playbook and CI pipeline definition."""
    print_phase(None, "RENDERING BUILD FILES")
    write_builder_template(config)
    write_playbook(config)
    write_pipeline(config, config_path)


def show_image_command(config, store=None):
    """Print the currently published image id."""
    store = store or get_parameter_store(config)
    image_id = store.get(config['parameters']['names'][PRODUCED_PARAMETER])
    print(image_id)
    return image_id


def main(argv=None):
    """Main entry point - parse command line and run the pipeline."""
    parser = argparse.ArgumentParser(
        description='AMI Build Orchestrator',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Full pipeline (CI build phase or local testing)
  orchestrator.py run

  # CI/CD stage commands
  orchestrator.py prepare
  orchestrator.py build
  orchestrator.py publish

  # Regenerate packer template, playbook and .gitlab-ci.yml
  orchestrator.py render

  # Local mock mode (config/parameters.local.yaml as parameter store)
  PIPELINE_ENV=local orchestrator.py run
        """
    )
    parser.add_argument('command', choices=['prepare', 'build', 'publish', 'run', 'validate', 'render', 'show-image'], help='Pipeline command')
    parser.add_argument('--config', help='Pipeline config file (default: config/pipeline-config.yaml)')
    parser.add_argument('--skip-packer', action='store_true', help='validate: skip packer validate')
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        if args.command != 'validate':
            is_valid, errors = validate_config(config)
            if not is_valid:
                raise ConfigError("Invalid configuration:\n  - " + "\n  - ".join(errors))

        if args.command == 'prepare':
            prepare_command(config)
        elif args.command == 'build':
            build_command(config)
        elif args.command == 'publish':
            publish_command(config)
        elif args.command == 'run':
            run_command(config)
        elif args.command == 'render':
            render_command(config, args.config or 'config/pipeline-config.yaml')
        elif args.command == 'show-image':
            show_image_command(config)
        elif args.command == 'validate':
            errors = validate_command(config, skip_packer=args.skip_packer)
            if errors:
                print("[FAILED] Validation failed")
                for error in errors:
                    print(f"  - {error}")
                sys.exit(1)
            print("\n✓ ALL VALIDATION CHECKS PASSED")
    except PipelineError as e:
        print(f"ERROR: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
