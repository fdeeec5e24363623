"""Inbox capture, background processing and review."""

from mindify.inbox.processor import InboxProcessor, ProcessingResult
from mindify.inbox.review import (
    accept_group,
    approve_item,
    approve_project,
    capture_thought,
    complete_item,
    confirm_merge,
    keep_separate,
    reject_group,
    reopen_item,
)

__all__ = [
    "InboxProcessor",
    "ProcessingResult",
    "capture_thought",
    "approve_item",
    "complete_item",
    "reopen_item",
    "keep_separate",
    "accept_group",
    "reject_group",
    "confirm_merge",
    "approve_project",
]
