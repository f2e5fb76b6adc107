"""
Models package initialization
"""

from .user import User
from .follow import Follow
from .post import Post
from .like import Like

__all__ = ["User", "Follow", "Post", "Like"]
