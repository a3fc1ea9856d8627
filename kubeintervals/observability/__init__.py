"""Logging and metrics for kubeintervals."""
