"""PhotoLib Edge: capture persistence and image scaling for edge camera devices."""

__version__ = '0.1.0'
