#!/usr/bin/env python3
"""
Build inputs fetched from the parameter store.
"""

from pathlib import Path

from .utils import ParameterError, mask_user


CONSUMED_PARAMETERS = ('public_key', 'access_token', 'version', 'username')
PRODUCED_PARAMETER = 'image_id'

# Values safe to print as-is
PUBLIC_PARAMETERS = ('version',)


def fetch_parameters(store, names):
    """
    Fetch the four build inputs from the parameter store.

    Args:
        store: ParameterStore instance
        names: Mapping of logical name (public_key, access_token, version,
               username) to the parameter name in the store

    Returns:
        Dict keyed by logical name

    Any missing, unreadable or empty parameter aborts with ParameterError.
    """
    missing = [key for key in CONSUMED_PARAMETERS if not names.get(key)]
    if missing:
        raise ParameterError(f"No parameter name configured for: {', '.join(missing)}")

    values = {}
    for key in CONSUMED_PARAMETERS:
        name = names[key]
        value = store.get(name)
        if value is None or not str(value).strip():
            raise ParameterError(f"Parameter is empty: {name}")
        values[key] = str(value).strip()

        if key in PUBLIC_PARAMETERS:
            print(f"[OK] {key} = {values[key]} ({name})")
        elif key == 'username':
            print(f"[OK] {key} = {mask_user(values[key])} ({name})")
        else:
            print(f"[OK] {key} loaded ({name})")

    return values


def write_public_key(path, public_key):
    """Write the public key file uploaded to the instance by the first file provisioner."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(public_key.strip() + "\n")
    path.chmod(0o600)
    print(f"Wrote public key: {path}")
    return path
