"""Desired-state modelling for CDN origins: ingresses, function associations and DNS aliases."""

__version__ = "0.1.0"

__all__ = [
    "alias",
    "fetcher",
    "functions",
    "ingress",
    "repository",
    "resources",
    "strhelper",
    "user_origin",
    "validation",
]