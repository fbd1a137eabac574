import json
from pathlib import Path

import pytest
import yaml

from ami_pipeline.build.utils import CommandError
from ami_pipeline.executors import BaseExecutor

COMMIT = "3f2c9a1b7d4e5f60718293a4b5c6d7e8f9012345"

PARAMETERS = {
    "/test/public-key": "ssh-ed25519 AAAATESTKEY build@test",
    "/test/token": "ghp_secrettoken",
    "/test/version": "v1.4.2",
    "/test/user": "deploybot",
}


def packer_output(*image_ids):
    """Packer-style build output ending with the created AMI list."""
    lines = [
        "webapp-ami: output will be in this color.",
        "==> webapp-ami: Prevalidating AMI Name: webapp-v1.4.2",
        "==> webapp-ami: Found Image ID: ami-0aaaaaaaaaaaaaaaa",
        "==> webapp-ami: Provisioning with Ansible...",
        "==> webapp-ami: Creating AMI from instance i-0123456789abcdef0",
        "Build 'webapp-ami' finished after 7 minutes 12 seconds.",
        "",
        "==> Builds finished. The artifacts of successful builds are:",
        "--> webapp-ami: AMIs were created:",
    ]
    lines.extend(f"us-east-1: {image_id}" for image_id in image_ids)
    return "\n".join(lines) + "\n\n"


class FakeExecutor(BaseExecutor):
    """Scripted executor: records commands and answers git/packer calls."""

    def __init__(self, image_ids=("ami-0123456789abcdef0",), packer_rc=0, clone_rc=0, commit=COMMIT):
        self.calls = []
        self.image_ids = list(image_ids)
        self.packer_rc = packer_rc
        self.clone_rc = clone_rc
        self.commit = commit

    def run(self, cmd, cwd=None, env=None, mask=None, timeout=None):
        cmd = [str(c) for c in cmd]
        self.calls.append({"cmd": cmd, "env": env, "mask": mask, "timeout": timeout})

        if cmd[:2] == ["git", "clone"]:
            if self.clone_rc:
                return "fatal: Remote branch not found\n", self.clone_rc
            git_dir = Path(cmd[-1]) / ".git"
            git_dir.mkdir(parents=True)
            (git_dir / "config").write_text(f'[remote "origin"]\n\turl = {cmd[-2]}\n')
            return "Cloning into '...'\n", 0
        if cmd[0] == "git" and cmd[3:6] == ["remote", "set-url", "origin"]:
            (Path(cmd[2]) / ".git" / "config").write_text(f'[remote "origin"]\n\turl = {cmd[6]}\n')
            return "", 0
        if cmd[0] == "git" and "rev-parse" in cmd:
            return self.commit + "\n", 0
        if cmd[:2] == ["packer", "build"]:
            if self.packer_rc:
                return "==> webapp-ami: Script exited with non-zero exit status: 1\n", self.packer_rc
            return packer_output(self.image_ids.pop(0)), 0
        if cmd[:2] == ["packer", "validate"]:
            return "", 0
        raise AssertionError(f"unexpected command: {cmd}")

    def run_check(self, cmd, cwd=None, env=None, mask=None, timeout=None):
        output, returncode = self.run(cmd, cwd=cwd, env=env, mask=mask, timeout=timeout)
        if returncode != 0:
            raise CommandError(f"Command failed (exit {returncode})")
        return output

    def commands(self, prefix):
        return [c["cmd"] for c in self.calls if c["cmd"][:len(prefix)] == prefix]


@pytest.fixture()
def executor():
    return FakeExecutor()


@pytest.fixture()
def param_file(tmp_path):
    path = tmp_path / "parameters.yaml"
    path.write_text(yaml.safe_dump(PARAMETERS))
    return path


@pytest.fixture()
def pipeline_config(tmp_path, param_file):
    """Complete config dict with every path inside tmp_path."""
    packer_dir = tmp_path / "packer"
    (packer_dir / "scripts").mkdir(parents=True)
    (packer_dir / "scripts" / "bootstrap.sh").write_text("#!/bin/sh\n")
    (packer_dir / "scripts" / "cleanup.sh").write_text("#!/bin/sh\n")
    (packer_dir / "variables.json").write_text(
        json.dumps({"app_version": "", "app_commit": "", "repo_user": "", "instance_type": "t3.small"})
    )
    (tmp_path / "ansible").mkdir()
    (tmp_path / "ansible" / "playbook.yml").write_text("---\n")

    return {
        "parameters": {
            "backend": "local",
            "local_file": str(param_file),
            "names": {
                "public_key": "/test/public-key",
                "access_token": "/test/token",
                "version": "/test/version",
                "username": "/test/user",
                "image_id": "/test/ami-id",
            },
        },
        "source": {
            "repo_url": "https://github.com/example-org/webapp.git",
            "ref": None,
            "checkout_dir": str(tmp_path / "build" / "source"),
        },
        "variables": {
            "file": str(packer_dir / "variables.json"),
            "substitutions": {
                "app_version": "version",
                "app_commit": "commit",
                "repo_user": "username",
            },
        },
        "builder": {
            "packer_binary": "packer",
            "template": str(packer_dir / "template.json"),
            "name": "webapp-ami",
            "region": "us-east-1",
            "instance_type": "t3.small",
            "ssh_username": "ubuntu",
            "image_name_prefix": "webapp",
            "image_name_vars": ["app_version", "build_number"],
            "naming_env": {"build_number": "CI_PIPELINE_IID"},
            "tags": {"Version": "app_version", "Commit": "app_commit"},
            "public_key_file": str(tmp_path / "build" / "files" / "authorized_keys"),
            "provisioners": {
                "public_key_destination": "/tmp/authorized_keys",
                "bootstrap_script": str(packer_dir / "scripts" / "bootstrap.sh"),
                "source_destination": "/tmp/webapp",
                "cleanup_script": str(packer_dir / "scripts" / "cleanup.sh"),
            },
            "tail_lines": 2,
            "timeout": 3600,
        },
        "playbook": {
            "path": str(tmp_path / "ansible" / "playbook.yml"),
            "hosts": "all",
            "become": True,
            "roles": ["ssh", "dependencies", "app"],
        },
        "artifact": {
            "file": str(tmp_path / "build" / "ami-id.txt"),
            "metadata": str(tmp_path / "build" / "pipeline-metadata.yaml"),
        },
        "pipeline": {
            "output": str(tmp_path / ".gitlab-ci.yml"),
        },
    }
