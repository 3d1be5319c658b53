"""Relay between chat clients and a remote assistant service's asynchronous runs."""

__version__ = "0.1.0"
