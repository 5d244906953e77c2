"""Describe cloud resources from Terraform plans and look up their hardware power data."""

__version__ = "0.1.0"