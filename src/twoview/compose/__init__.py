from .extent import CanvasExtent, image_corners, panorama_extent
from .sampling import inside, bilinear_sample
from .compositor import CompositeParams, Panorama, compose_panorama, FROM_IMAGE1, FROM_IMAGE2


__all__ = [
    "CanvasExtent", "image_corners", "panorama_extent",
    "inside", "bilinear_sample",
    "CompositeParams", "Panorama", "compose_panorama", "FROM_IMAGE1", "FROM_IMAGE2",
]
