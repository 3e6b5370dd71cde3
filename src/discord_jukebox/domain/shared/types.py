"""Annotated pydantic types shared by entities, settings and adapter models.

Use them as field annotations so constraints live in one place::

    class SongRequest(BaseModel):
        title: SongTitleStr
        requested_by_id: DiscordSnowflake | None = None
"""

from __future__ import annotations

from typing import Annotated

from pydantic import Field

# Discord ids are unsigned 64-bit snowflakes.
DiscordSnowflake = Annotated[int, Field(gt=0, lt=2**64)]

NonNegativeInt = Annotated[int, Field(ge=0)]
PositiveInt = Annotated[int, Field(gt=0)]

VolumeFloat = Annotated[float, Field(ge=0.0, le=2.0)]
"""Multiplier handed to ``PCMVolumeTransformer``; 1.0 is unchanged."""

DurationSeconds = Annotated[int, Field(ge=0, le=86_400)]
"""Song length, capped at one day (live streams report no duration)."""

NonEmptyStr = Annotated[str, Field(min_length=1)]
SongTitleStr = Annotated[str, Field(min_length=1, max_length=500)]
HttpUrlStr = Annotated[str, Field(pattern=r"^https?://")]

CommandPrefixStr = Annotated[str, Field(min_length=1, max_length=5)]
MaxQueueSize = Annotated[int, Field(gt=0, le=1000)]
"""Per-guild queue limit, counting the song that is playing."""
