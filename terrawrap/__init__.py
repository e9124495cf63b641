"""Argument handling, Terraform version checks and module source bookkeeping for a thin Terraform wrapper."""

__version__ = "0.1.0"