from __future__ import annotations


class PalmGalleryError(Exception):
    """Base for everything palmgallery raises on purpose."""


class SensorError(PalmGalleryError):
    """Camera or recognizer could not be opened / initialized."""


class PhotoIndexError(PalmGalleryError):
    """The photo list could not be fetched or parsed."""
