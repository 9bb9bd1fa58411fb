"""lastmile: proof-of-delivery verification and delay tracking."""

__version__ = "1.0.0"
