"""Erasure-coded file replication across peer nodes."""

__version__ = "0.1.0"