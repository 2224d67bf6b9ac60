"""Liquid Nation swap backend: Charms spell proving."""

__version__ = "0.1.0"
