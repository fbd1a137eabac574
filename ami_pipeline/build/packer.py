#!/usr/bin/env python3
"""
Image builder (Packer) invocation and image id extraction.
"""

import os
import re

from .utils import BuildError


IMAGE_ID_RE = re.compile(r'\bami-(?:[0-9a-f]{17}|[0-9a-f]{8})\b')


def packer_build_args(packer_binary, template, var_file):
    return [packer_binary, 'build', '-color=false', f'-var-file={var_file}', str(template)]


def run_builder(executor, packer_binary, template, var_file, timeout=None, env=None):
    """
    Run `packer build` and return its combined output.

    Raises BuildError if packer exits nonzero; the caller must not publish
    anything in that case.
    """
    run_env = os.environ.copy()
    run_env['PACKER_NO_COLOR'] = '1'
    if env:
        run_env.update(env)

    print(f"Building image from {template} (var-file {var_file})...\n")
    output, returncode = executor.run(
        packer_build_args(packer_binary, template, var_file), env=run_env, timeout=timeout
    )

    if returncode != 0:
        raise BuildError(f"packer build failed (exit {returncode})")
    return output


def validate_template(executor, packer_binary, template, var_file=None):
    """Run `packer validate -syntax-only`. Returns a list of errors."""
    cmd = [packer_binary, 'validate', '-syntax-only']
    if var_file:
        cmd.append(f'-var-file={var_file}')
    cmd.append(str(template))

    output, returncode = executor.run(cmd)
    if returncode != 0:
        return [f"packer validate failed: {output.strip() or f'exit {returncode}'}"]
    return []


def extract_image_id(output, tail_lines=2):
    """
    Return the last image id found in the tail of the builder output.

    Trailing blank lines are ignored. tail_lines of 0 or None scans the whole
    output. Raises BuildError when no candidate is found.
    """
    lines = (output or '').rstrip().splitlines()
    if tail_lines:
        lines = lines[-tail_lines:]

    candidates = IMAGE_ID_RE.findall('\n'.join(lines))
    if not candidates:
        raise BuildError("No image id found in packer output")

    if len(candidates) > 1:
        print(f"Found {len(candidates)} image ids in output tail, using the last one")
    return candidates[-1]
