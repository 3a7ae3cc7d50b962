"""Security module for glance."""

from .validators import display_path, establish_boundary, is_within, relative_to_boundary, validate_path

__all__ = ["display_path", "establish_boundary", "is_within", "relative_to_boundary", "validate_path"]
