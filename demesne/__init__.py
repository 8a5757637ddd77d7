"""Demesne world server: action queues, world calendar and their collaborators."""

__version__ = "0.1.0"
