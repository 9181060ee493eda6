"""Middleware Layer - Rewrites applied to chains before dispatch."""

from bromato.layers.middleware.file_upload import FileDescriptor, FileUploadStager
from bromato.layers.middleware.pipeline import Middleware, apply_middlewares, map_chains

__all__ = [
    "FileDescriptor",
    "FileUploadStager",
    "Middleware",
    "apply_middlewares",
    "map_chains",
]
