"""Client-held board core: due classification, store, merge, reconciliation and views."""

from taskboard.board.due import DueBucket, DueFilter, bucket, hides_future, matches_filter, resolve_due
from taskboard.board.guard import InFlightToken, KeyedGuard
from taskboard.board.merge import merge
from taskboard.board.reconciler import AssignmentReconciler, StatusChangeResult, SyncOutcome, SyncResult
from taskboard.board.session import BoardSession
from taskboard.board.source import RecordSource
from taskboard.board.store import AssignmentStore
from taskboard.board.views import (
    AdminBucket,
    AdminView,
    SelfView,
    ViewFilters,
    filter_tasks,
    project,
    project_admin_view,
    project_self_view,
)


__all__ = [
    "AdminBucket",
    "AdminView",
    "AssignmentReconciler",
    "AssignmentStore",
    "BoardSession",
    "DueBucket",
    "DueFilter",
    "InFlightToken",
    "KeyedGuard",
    "RecordSource",
    "SelfView",
    "StatusChangeResult",
    "SyncOutcome",
    "SyncResult",
    "ViewFilters",
    "bucket",
    "filter_tasks",
    "hides_future",
    "matches_filter",
    "merge",
    "project",
    "project_admin_view",
    "project_self_view",
    "resolve_due",
]
