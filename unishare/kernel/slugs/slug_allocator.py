"""
Unique slug allocation.

The allocator only proposes identifiers: it asks an injected existence check
whether a candidate is taken and retries with fresh randomness until it finds
a free one or runs out of attempts. Persisting the slug (and relying on the
database unique index to close the check-then-insert race) is the caller's job.
"""

import re
import secrets
import unicodedata
import uuid
from enum import Enum
from typing import AbstractSet, Awaitable, Callable, Optional

from unishare.logging_config import get_logger

logger = get_logger(__name__)

SlugExists = Callable[[str], Awaitable[bool]]
RandomSource = Callable[[int], bytes]

DEFAULT_MAX_ATTEMPTS = 10
SUFFIX_BYTES = 4  # 8 hex characters
MAX_BASE_LENGTH = 255  # base + "-" + suffix must fit Resource.slug
OPAQUE_BYTES = 16  # 128 bits

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


class SlugStrategy(str, Enum):
    """How candidate slugs are produced."""
    TITLE = "title"    # base slug from the title, random suffix on collision
    OPAQUE = "opaque"  # random UUID, title ignored


class SlugError(Exception):
    """Base class for slug allocation failures."""


class InvalidInputError(SlugError, ValueError):
    """The title is missing or has no URL-safe characters."""


class SlugExhaustedError(SlugError):
    """Every candidate up to the attempt cap was taken."""

    def __init__(self, attempts: int, base: Optional[str] = None):
        self.attempts = attempts
        self.base = base
        target = f" for '{base}'" if base else ""
        super().__init__(f"No free slug{target} after {attempts} attempts")


def normalize_title(title: Optional[str]) -> str:
    """
    Reduce a title to its URL-safe base slug.

    Accented letters are transliterated to ASCII, everything else outside
    [a-z0-9] collapses into single hyphens. The result is cut to
    MAX_BASE_LENGTH characters.

        >>> normalize_title("Data Structures & Algorithms!")
        'data-structures-algorithms'

    Raises:
        InvalidInputError: If nothing URL-safe is left.
    """
    if title is None or not title.strip():
        raise InvalidInputError("Title is required to generate a slug")

    ascii_title = (
        unicodedata.normalize("NFKD", title)
        .encode("ascii", "ignore")
        .decode("ascii")
    )
    base = _NON_ALNUM.sub("-", ascii_title.lower()).strip("-")
    base = base[:MAX_BASE_LENGTH].rstrip("-")
    if not base:
        raise InvalidInputError(f"Title '{title}' contains no URL-safe characters")
    return base


class SlugAllocator:
    """
    Propose unique slugs against an existing identifier space.
    
    Usage:
        allocator = SlugAllocator(slug_exists=repo.slug_exists)
        slug = await allocator.allocate("Operating Systems Notes")
    """

    def __init__(
        self,
        slug_exists: SlugExists,
        random_source: RandomSource = secrets.token_bytes,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.slug_exists = slug_exists
        self.random_source = random_source
        self.max_attempts = max_attempts

    async def allocate(
        self,
        title: Optional[str] = None,
        strategy: SlugStrategy = SlugStrategy.TITLE,
        exclude: AbstractSet[str] = frozenset(),
    ) -> str:
        """
        Return a slug not currently in use.

        Args:
            title: Source text for SlugStrategy.TITLE; ignored for OPAQUE
            strategy: Candidate generation strategy
            exclude: Candidates already known to be taken (e.g. rejected by
                the unique index on a previous insert). They count as an
                attempt but are not sent to the existence check.

        Raises:
            InvalidInputError: Title missing or unnormalizable (TITLE only)
            SlugExhaustedError: max_attempts candidates were all taken
        """
        if strategy == SlugStrategy.TITLE:
            base = normalize_title(title)
            candidates = self._title_candidates(base)
        else:
            base = None
            candidates = self._opaque_candidates()

        for attempt in range(1, self.max_attempts + 1):
            candidate = next(candidates)
            if candidate in exclude:
                continue
            if not await self.slug_exists(candidate):
                if attempt > 1:
                    logger.debug(
                        "Slug allocated after collisions",
                        extra={"slug": candidate, "attempts": attempt},
                    )
                return candidate

        raise SlugExhaustedError(self.max_attempts, base)

    def _title_candidates(self, base: str):
        yield base
        while True:
            yield f"{base}-{self.random_source(SUFFIX_BYTES).hex()}"

    def _opaque_candidates(self):
        while True:
            yield str(uuid.UUID(bytes=self.random_source(OPAQUE_BYTES), version=4))
