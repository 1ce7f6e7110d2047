"""Convenience exports for schema layer."""
from .auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
    StatusMessage,
)
from .follow import FollowActionResponse, FollowStatsResponse
from .messages import (
    ConversationListResponse,
    ConversationResponse,
    MessageResponse,
    MessageSendRequest,
    MessageSendResponse,
    MessageThreadResponse,
)
from .notifications import NotificationListResponse, NotificationResponse, UnreadSummaryResponse
from .posts import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    FeedSort,
    PostEngagementResponse,
    PostFeedResponse,
    PostResponse,
    PostUpdate,
    PrivacySetting,
)
from .profiles import AccountResponse, AuthorSummary, HireableUpdate, HireRequest, ProfileResponse, ProfileUpdate
from .references import ReferenceListResponse, ReferenceResponse, ReferenceType
from .search import PostSearchResponse, SkillCount, SkillListResponse, UserSearchResponse

__all__ = [
    "AuthResponse",
    "ForgotPasswordRequest",
    "LoginRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "StatusMessage",
    "FollowActionResponse",
    "FollowStatsResponse",
    "ConversationListResponse",
    "ConversationResponse",
    "MessageResponse",
    "MessageSendRequest",
    "MessageSendResponse",
    "MessageThreadResponse",
    "NotificationListResponse",
    "NotificationResponse",
    "UnreadSummaryResponse",
    "CommentCreate",
    "CommentListResponse",
    "CommentResponse",
    "FeedSort",
    "PostEngagementResponse",
    "PostFeedResponse",
    "PostResponse",
    "PostUpdate",
    "PrivacySetting",
    "AccountResponse",
    "AuthorSummary",
    "HireableUpdate",
    "HireRequest",
    "ProfileUpdate",
    "ProfileResponse",
    "ReferenceListResponse",
    "ReferenceResponse",
    "ReferenceType",
    "PostSearchResponse",
    "SkillCount",
    "SkillListResponse",
    "UserSearchResponse",
]
