"""Convenience exports for ORM models."""
from .follow import Follow
from .message import Message
from .notification import Notification
from .post import Comment, Like, Post
from .profile import Profile
from .reference import Reference

__all__ = [
    "Comment",
    "Follow",
    "Like",
    "Message",
    "Notification",
    "Post",
    "Profile",
    "Reference",
]
