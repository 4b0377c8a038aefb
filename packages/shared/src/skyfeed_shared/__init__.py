"""Shared contract types for the skyfeed packages.

Provides the result envelope, the feed-view wire models, and the
configuration models used by the gateway and the feed-view controller.
"""
