"""`tunnelpath` - trajectory cleaning and perception metrics for flight tunnels.

Subpackages:
- tunnel: Table model, standardization, segmentation, geometry, perception
- contracts: Typed errors and stage-boundary checks
- schemas: Pydantic configuration and table metadata
- pipeline: Ordered stage runner and logging setup
- cli: Command-line runner over CSV tables
"""

__version__ = "0.1.0"
