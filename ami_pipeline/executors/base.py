#!/usr/bin/env python3
"""
Base executor interface for external build tools.
"""


class BaseExecutor:
    """Interface for command executors (git, packer)."""

    def run(self, cmd, cwd=None, env=None, mask=None, timeout=None):
        """
        Run a command with stderr merged into stdout.

        Args:
            cmd: Command as a list of arguments
            cwd: Working directory (optional)
            env: Environment dict (optional, inherits the current one if None)
            mask: Secrets to hide in echoed commands and error messages
            timeout: Seconds before the command is killed (optional)

        Returns:
            Tuple (output, returncode)
        """
        raise NotImplementedError("Subclasses must implement run()")

    def run_check(self, cmd, cwd=None, env=None, mask=None, timeout=None):
        """Run a command and raise CommandError if it fails."""
        raise NotImplementedError("Subclasses must implement run_check()")
