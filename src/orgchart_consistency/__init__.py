"""Org chart classification consistency tools.

Classifies org chart positions as direct, indirect or OH with an ordered rule
table and checks that every page of the chart (and both aggregation pages)
agrees with it. A small CLI (classify, validate, scenarios) wraps the
validation API.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
