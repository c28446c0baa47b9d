from monet_lookup.interpolation.core import InterpolationEngine

__all__ = ["InterpolationEngine"]
