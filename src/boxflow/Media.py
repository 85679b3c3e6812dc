"""
Intrinsic sizes of replaced content (images and other external resources)
"""

import logging
import os
from typing import Any
from weakref import WeakValueDictionary

import pygame as pg
from pygame.surface import Surface

from boxflow.types import IntrinsicSize, MeasurementFailure

surf_cache = WeakValueDictionary[str, Surface]()


def load_surf(path: str | os.PathLike) -> Surface:
    """
    Loads a surf. To save RAM surfs are cached in a surf_cache
    """
    key = os.fspath(path)
    if (surf := surf_cache.get(key)) is None:
        surf_cache[key] = surf = pg.image.load(key)
        logging.debug(f"Loaded Image: {key!r}")
    return surf


class SurfaceImageMeasurer:
    """
    The default image measurement collaborator.

    Resources can be
    - None (no intrinsic size at all),
    - an IntrinsicSize,
    - a pygame Surface,
    - a (width, height) tuple,
    - or a path that pygame can load.
    """

    def intrinsic_size(self, resource: Any) -> IntrinsicSize:
        match resource:
            case None:
                return IntrinsicSize()
            case IntrinsicSize():
                return resource
            case Surface():
                return IntrinsicSize(*resource.get_size())
            case (width, height):
                return IntrinsicSize(width, height)
            case str() | os.PathLike():
                try:
                    surf = load_surf(resource)
                except (pg.error, OSError) as e:
                    raise MeasurementFailure(
                        f"Couldn't load image: {resource!r}. Reason: {e}"
                    ) from e
                return IntrinsicSize(*surf.get_size())
        raise MeasurementFailure(f"Unsupported image resource: {resource!r}")
