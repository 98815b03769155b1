from __future__ import annotations

from typing import Annotated

from fastapi import Query

from ..contracts import BusinessStatus, PriceRange, SortBy

SearchText = Annotated[
    str | None,
    Query(
        alias="q",
        min_length=1,
        max_length=80,
        description="Case-insensitive text matched against name, description and address",
    ),
]

CategoryIds = Annotated[
    list[str] | None,
    Query(
        alias="category",
        description="Category id; repeat the parameter or comma-separate for several",
    ),
]

PriceRanges = Annotated[
    list[PriceRange] | None,
    Query(alias="price", description="Price bracket ($ to $$$$); repeatable"),
]

RatingFloor = Annotated[float, Query(ge=0, le=5, description="Minimum rating (inclusive)")]

Latitude = Annotated[float | None, Query(alias="lat", ge=-90, le=90)]
Longitude = Annotated[float | None, Query(alias="lng", ge=-180, le=180)]

RadiusKm = Annotated[
    float | None,
    Query(ge=0, description="Only listings within this many km of lat,lng"),
]

SortParam = Annotated[SortBy | None, Query(description="rating, reviews, name, distance or date")]

# out-of-range paging is clamped downstream rather than rejected here
Page = Annotated[int, Query(description="1-based page number")]
Limit = Annotated[int | None, Query(description="Page size (default 20, max 100)")]

StatusFilter = Annotated[BusinessStatus | None, Query()]
