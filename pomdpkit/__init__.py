"""Building blocks for POMDP belief tracking with particle filters and Monte-Carlo planning."""

__version__ = "0.1.0"