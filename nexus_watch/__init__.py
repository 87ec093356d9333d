"""Watch the NEXUS / Global Entry scheduler for a free interview slot."""

__version__ = "0.1.0"
