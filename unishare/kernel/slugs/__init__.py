"""
Slug allocation for public resource identifiers.
"""

from unishare.kernel.slugs.slug_allocator import (
    InvalidInputError,
    SlugAllocator,
    SlugError,
    SlugExhaustedError,
    SlugStrategy,
    normalize_title,
)

__all__ = [
    "InvalidInputError",
    "SlugAllocator",
    "SlugError",
    "SlugExhaustedError",
    "SlugStrategy",
    "normalize_title",
]
