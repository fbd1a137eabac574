"""
Image build package.

This package contains modules for fetching build inputs, checking out the
application source, rewriting the builder variables file, running the image
builder and publishing the resulting image id.
"""

__all__ = ['orchestrator', 'inputs', 'source', 'variables', 'packer', 'artifact', 'utils']
