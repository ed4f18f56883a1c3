"""Owned-resource management for PretzelAI resources.

This package contains:
- the generic create-or-patch Converger
- the Deployment, Service and ConfigMap convergers built on it
- the finalizer gate and the status projector
"""
