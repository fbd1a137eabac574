"""
Configuration, validation, and build file generation package.

This package contains modules for validating the pipeline config and
generating the Packer template, Ansible playbook and CI pipeline definition.
"""

__all__ = ['validation', 'template', 'playbook', 'pipeline']
