"""Manifest transforms and source lookup for installing Knative Eventing."""

__version__ = "0.1.0"
__all__ = ["broker", "pingsource", "sinkbinding", "sources", "spec"]