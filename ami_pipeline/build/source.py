#!/usr/bin/env python3
"""
Application source checkout.
"""

import re
import shutil
from pathlib import Path
from urllib.parse import quote, urlsplit, urlunsplit

from .utils import CommandError, SourceError, mask_user


COMMIT_RE = re.compile(r'^[0-9a-f]{7,64}$')


def build_clone_url(repo_url, username=None, token=None):
    """Inject HTTPS credentials into the repository URL."""
    if not token:
        return repo_url

    parts = urlsplit(repo_url)
    if parts.scheme not in ('http', 'https'):
        raise SourceError(f"Token authentication requires an HTTPS URL: {repo_url}")

    user = quote(username or 'x-access-token', safe='')
    netloc = f"{user}:{quote(token, safe='')}@{parts.hostname}"
    if parts.port:
        netloc += f":{parts.port}"
    return urlunsplit((parts.scheme, netloc, parts.path, parts.query, parts.fragment))


def clone_source(executor, repo_url, ref, dest, username=None, token=None, git_binary='git'):
    """
    Shallow-clone repo_url at ref into dest and return its latest commit id.

    dest is removed first: the checkout is regenerated on every run. After the
    clone, origin is reset to the bare repo_url so no credential stays in
    .git/config. A failed checkout is removed.
    """
    dest = Path(dest)
    if dest.exists():
        shutil.rmtree(dest)
    dest.parent.mkdir(parents=True, exist_ok=True)

    url = build_clone_url(repo_url, username, token)
    secrets = [token, quote(token, safe='')] if token else None

    who = f" as {mask_user(username)}" if username else ""
    print(f"Cloning {repo_url} at {ref}{who}")
    try:
        executor.run_check(
            [git_binary, 'clone', '--depth', '1', '--branch', ref, url, str(dest)],
            mask=secrets
        )
        # git records the clone URL as origin; the checkout is uploaded into the image
        executor.run_check(
            [git_binary, '-C', str(dest), 'remote', 'set-url', 'origin', repo_url],
            mask=secrets
        )
        output = executor.run_check([git_binary, '-C', str(dest), 'rev-parse', 'HEAD'])
    except CommandError as e:
        if dest.exists():
            shutil.rmtree(dest)
        raise SourceError(f"Checkout of {repo_url}@{ref} failed: {e}") from e

    commit = output.strip().splitlines()[-1].strip() if output.strip() else ''
    if not COMMIT_RE.match(commit):
        raise SourceError(f"Could not read commit id from checkout: {output.strip()!r}")

    print(f"[OK] Checked out {ref} at {commit}")
    return commit
