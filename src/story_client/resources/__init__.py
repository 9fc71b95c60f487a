"""Resource units for the story API."""

from .bookmarks import Bookmarks, StoryBookmark
from .editor import StoryEditor
from .factory import ResourceFactory
from .follows import AuthorFollow, FollowList
from .profile import UserProfile
from .progress import ProgressListKey, ReadingProgressList, StoryProgress, calculate_progress
from .ratings import StoryRatings
from .stories import StoryDetail, StoryList, StoryRef

__all__ = [
    "AuthorFollow",
    "Bookmarks",
    "FollowList",
    "ProgressListKey",
    "ReadingProgressList",
    "ResourceFactory",
    "StoryBookmark",
    "StoryDetail",
    "StoryEditor",
    "StoryList",
    "StoryProgress",
    "StoryRatings",
    "StoryRef",
    "UserProfile",
    "calculate_progress",
]
