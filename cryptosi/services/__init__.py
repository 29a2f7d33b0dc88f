"""Service layer exports."""

from . import composer, form_state, hyperbolic, image_io, session

__all__ = ["composer", "form_state", "hyperbolic", "image_io", "session"]
