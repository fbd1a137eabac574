#!/usr/bin/env python3
"""
Local executor for build tools (subprocess on the CI runner).
"""

import subprocess
import threading

from .base import BaseExecutor
from ..build.utils import CommandError, mask_secrets


TAIL_LINES = 5


class LocalExecutor(BaseExecutor):
    """Runs commands on the local runner via subprocess, streaming their output."""

    def __init__(self, echo_output=True):
        self.echo_output = echo_output

    def _stream(self, proc, lines, mask):
        # Echo each line as it arrives so long builds show progress in the CI log
        for line in proc.stdout:
            line = mask_secrets(line, mask)
            lines.append(line)
            if self.echo_output:
                print(line, end='' if line.endswith('\n') else '\n', flush=True)

    def run(self, cmd, cwd=None, env=None, mask=None, timeout=None):
        display = mask_secrets(' '.join(str(c) for c in cmd), mask)
        print(f"Command: {display}")

        try:
            proc = subprocess.Popen(
                [str(c) for c in cmd], cwd=cwd, env=env,
                stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True
            )
        except FileNotFoundError as e:
            raise CommandError(f"Command not found: {cmd[0]}") from e

        lines = []
        reader = threading.Thread(target=self._stream, args=(proc, lines, mask), daemon=True)
        reader.start()

        try:
            returncode = proc.wait(timeout=timeout)
        except subprocess.TimeoutExpired as e:
            proc.kill()
            proc.wait()
            reader.join(timeout=5)
            tail = ''.join(lines[-TAIL_LINES:]).rstrip()
            raise CommandError(f"Command timed out after {timeout}s: {display}\n{tail}".rstrip()) from e

        reader.join()
        proc.stdout.close()
        return ''.join(lines), returncode

    def run_check(self, cmd, cwd=None, env=None, mask=None, timeout=None):
        output, returncode = self.run(cmd, cwd=cwd, env=env, mask=mask, timeout=timeout)

        if returncode != 0:
            display = mask_secrets(' '.join(str(c) for c in cmd), mask)
            tail = '\n'.join(output.strip().splitlines()[-TAIL_LINES:])
            raise CommandError(f"Command failed (exit {returncode}): {display}\n{tail}".rstrip())

        return output
