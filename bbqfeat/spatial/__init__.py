from .index import AtomRef, SpatialIndex, build_index

__all__ = ["AtomRef", "SpatialIndex", "build_index"]
