"""Covercraft: daily rotating collage artwork for playlists."""

__version__ = "0.3.0"
