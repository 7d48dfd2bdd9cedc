"""
Rendering context.

Everything non-deterministic the engine needs (current time, randomness
for document numbers) is read through an explicit RenderContext, so a
transformation run can be pinned to a fixed clock and seed.
"""

import random
import string
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from surveydoc.formatters import format_date, format_time

DOCUMENT_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


@dataclass
class RenderContext:
    """
    Clock and random source for one or more transformation runs.

    Properties:
        clock: Returns the current local datetime
        rng: Random source for document number suffixes
    """

    clock: Callable[[], datetime] = datetime.now
    rng: random.Random = field(default_factory=random.Random)

    @classmethod
    def fixed(cls, moment: datetime, seed: int = 0) -> "RenderContext":
        """A context frozen at moment with a seeded random source."""
        return cls(clock=lambda: moment, rng=random.Random(seed))

    def now(self) -> datetime:
        return self.clock()

    def current_date(self, fmt: str = "YYYY-MM-DD") -> str:
        """Today's date in the given format."""
        return format_date(self.now(), fmt)

    def current_time(self, fmt: str = "HH:mm") -> str:
        """Current time as 'HH:mm', 'HH:mm:ss' or 'h:mm A'."""
        return format_time(self.now(), fmt)


def generate_document_number(
    prefix: str = "DOC",
    include_date: bool = True,
    context: Optional[RenderContext] = None,
) -> str:
    """
    Generate a document number.

    'DOC-20260131-A1B2C3' with the date, 'INV-A1B2C3' without.
    """
    context = context or RenderContext()
    suffix = "".join(context.rng.choice(DOCUMENT_NUMBER_ALPHABET) for _ in range(6))
    if include_date:
        return f"{prefix}-{context.now():%Y%m%d}-{suffix}"
    return f"{prefix}-{suffix}"
