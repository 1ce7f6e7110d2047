"""Convenience exports for service layer."""
from .auth_service import (
    authenticate_user,
    create_access_token,
    decode_access_token,
    get_current_user,
    get_optional_user,
    register_user,
    request_password_reset,
    reset_password,
    resolve_token_user,
)
from .change_feed import change_feed_manager, parse_table_filter, schedule_change
from .feed_service import list_feed
from .follow_service import FollowStats, follow_user, get_follow_stats, unfollow_user
from .message_service import (
    count_unread_messages,
    list_conversations,
    open_conversation,
    send_hire_inquiry,
    send_message,
)
from .notification_service import (
    NotificationType,
    add_notification,
    count_unread_notifications,
    list_notifications,
    mark_all_read,
    mark_notification_read,
    notify_user,
)
from .post_service import (
    create_post_comment,
    create_post_record,
    delete_post_record,
    get_post_record,
    list_post_comments,
    list_profile_posts,
    record_share,
    set_post_like_state,
    toggle_post_like,
    update_post_record,
)
from .profile_service import get_profile, profile_view, set_hireable, update_profile
from .reference_service import add_reference, delete_reference, list_references, serialize_reference
from .search_service import search_posts, search_users
from .skill_service import suggested_skills, trending_skills
from .storage_service import StorageConfigurationError, StorageDeletionError, StorageUploadError

__all__ = [
    "authenticate_user",
    "register_user",
    "create_access_token",
    "decode_access_token",
    "get_current_user",
    "get_optional_user",
    "request_password_reset",
    "reset_password",
    "resolve_token_user",
    "change_feed_manager",
    "parse_table_filter",
    "schedule_change",
    "list_feed",
    "FollowStats",
    "follow_user",
    "unfollow_user",
    "get_follow_stats",
    "count_unread_messages",
    "list_conversations",
    "open_conversation",
    "send_hire_inquiry",
    "send_message",
    "NotificationType",
    "add_notification",
    "count_unread_notifications",
    "list_notifications",
    "mark_all_read",
    "mark_notification_read",
    "notify_user",
    "create_post_comment",
    "create_post_record",
    "delete_post_record",
    "get_post_record",
    "list_post_comments",
    "list_profile_posts",
    "record_share",
    "set_post_like_state",
    "toggle_post_like",
    "update_post_record",
    "get_profile",
    "profile_view",
    "set_hireable",
    "update_profile",
    "add_reference",
    "delete_reference",
    "list_references",
    "serialize_reference",
    "search_posts",
    "search_users",
    "suggested_skills",
    "trending_skills",
    "StorageConfigurationError",
    "StorageDeletionError",
    "StorageUploadError",
]
