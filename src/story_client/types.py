"""Typed data contracts for API payloads after validation.

Wire payloads are validated with `schemas.validate_as` against these shapes.
Keys are the API's camelCase names; every shape is partial because the
server omits optional fields rather than sending nulls.
"""

from __future__ import annotations

from typing import Literal, TypedDict

Role = Literal["ADMIN", "EDITOR", "USER"]
Language = Literal["en", "tr"]
ProgressStatus = Literal["STARTED", "COMPLETED"]

BilingualText = dict[str, str]


class User(TypedDict, total=False):
    """Signed-in user shape."""

    id: str
    email: str
    username: str | None
    role: Role
    profile: dict[str, object] | None
    createdAt: str
    updatedAt: str


class RatingAuthor(TypedDict, total=False):
    id: str
    name: str | None
    email: str | None


class Rating(TypedDict, total=False):
    """A single story rating, optionally with a comment."""

    id: str
    userId: str
    storyId: str
    rating: float
    comment: str | None
    createdAt: str
    updatedAt: str
    user: RatingAuthor


class RatingStats(TypedDict, total=False):
    averageRating: float | None
    totalRatings: int
    totalCount: int
    ratingDistribution: dict[str, int]
    distribution: dict[str, int]


class StorySummary(TypedDict, total=False):
    id: str
    title: BilingualText
    slug: str
    shortDescription: BilingualText
    publishedAt: str | None
    averageRating: float | None
    ratingCount: int


class Bookmark(TypedDict, total=False):
    id: str
    userId: str
    storyId: str
    createdAt: str
    story: StorySummary


class BookmarkStatus(TypedDict, total=False):
    isBookmarked: bool


class FollowStats(TypedDict, total=False):
    followersCount: int
    followingCount: int
    isFollowing: bool
    isFollowedBy: bool


class FollowedUser(TypedDict, total=False):
    """A follower or a followed author."""

    id: str
    name: str | None
    email: str | None
    profile: dict[str, object] | None
    followedAt: str
    storiesCount: int


class ReadingProgress(TypedDict, total=False):
    id: str
    userId: str
    storyId: str
    status: ProgressStatus
    lastParagraph: int | None
    totalParagraphs: int | None
    completionPercentage: float | None
    readingTimeSeconds: int | None
    wordsRead: int | None
    language: Language | None
    startedAt: str
    completedAt: str | None
    lastReadAt: str | None
    story: StorySummary


class ProgressMeta(TypedDict, total=False):
    total: int
    started: int
    completed: int


class Story(TypedDict, total=False):
    """Full story shape as returned by the stories endpoints."""

    id: str
    slug: str
    title: BilingualText
    shortDescription: BilingualText
    content: dict[str, list[str]]
    status: str
    publishedAt: str | None
    averageRating: float | None
    ratingCount: int
    createdAt: str
    updatedAt: str
    categories: list[dict[str, object]]
    tags: list[dict[str, object]]
    authors: list[dict[str, object]]


class UserProfile(TypedDict, total=False):
    id: str
    email: str
    username: str | None
    role: str
    profile: dict[str, object] | None
    createdAt: str
    updatedAt: str


class RecentProgress(TypedDict, total=False):
    id: str
    status: str
    completionPercentage: float | None
    lastReadAt: str | None
    story: StorySummary


class UserStats(TypedDict, total=False):
    totalStarted: int
    totalCompleted: int
    totalRatings: int
    averageRating: float | None
    recentProgress: list[RecentProgress]
