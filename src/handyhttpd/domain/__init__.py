"""Domain models for handyhttpd.

All models use Pydantic v2 for validation and serialization.
"""

from handyhttpd.domain.models import MountCommand, MountView, Request, Verb

__all__ = [
    "MountCommand",
    "MountView",
    "Request",
    "Verb",
]
