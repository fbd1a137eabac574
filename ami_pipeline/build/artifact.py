#!/usr/bin/env python3
"""
Image id artifact file and publication to the parameter store.
"""

from pathlib import Path

from .packer import IMAGE_ID_RE
from .utils import BuildError, PipelineError


def write_artifact(path, image_id):
    """Write the image id as a single line."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(image_id + "\n")
    print(f"Wrote artifact: {path} ({image_id})")
    return path


def read_artifact(path):
    path = Path(path)
    if not path.exists():
        raise PipelineError(f"Artifact file not found: {path} (run 'build' first)")

    image_id = path.read_text().strip()
    if not IMAGE_ID_RE.fullmatch(image_id):
        raise BuildError(f"Artifact file does not hold an image id: {path}")
    return image_id


def remove_artifact(path):
    """Drop an artifact left by a previous run so a failed build leaves none behind."""
    path = Path(path)
    if path.exists():
        path.unlink()
        print(f"Removed previous artifact: {path}")


def publish_image_id(store, name, image_id):
    """Overwrite the image id parameter. Returns the superseded value."""
    previous = store.put(name, image_id)
    if previous and previous != image_id:
        print(f"[OK] Published {image_id} to {name} (supersedes {previous})")
    else:
        print(f"[OK] Published {image_id} to {name}")
    return previous
