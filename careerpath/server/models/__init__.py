"""
Database Models.

This module defines the SQLModel (SQLAlchemy) data models that map to database tables.
Importing the package registers every table with the SQLModel metadata.
"""

from .chat import Chat, ChatMessage
from .counseling import CounselingMessage, CounselingSession
from .event import Event, EventRegistration
from .forum import ForumPost, ForumReply
from .mentor import Mentor, MentorSession
from .roadmap import CareerRoadmap
from .user import Activity, User

__all__ = [
    "Activity",
    "CareerRoadmap",
    "Chat",
    "ChatMessage",
    "CounselingMessage",
    "CounselingSession",
    "Event",
    "EventRegistration",
    "ForumPost",
    "ForumReply",
    "Mentor",
    "MentorSession",
    "User",
]
