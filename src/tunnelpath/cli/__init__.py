"""Command-line interface modules for tunnelpath pipeline execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from tunnelpath.cli.run_tunnel import run_tunnel_pipeline

__all__ = ['run_tunnel_pipeline']
