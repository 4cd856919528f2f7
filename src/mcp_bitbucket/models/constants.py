"""Constants shared by the Bitbucket models and output formatting."""

from typing import Final

# Dot-paths kept by the "compact" output format, per resource type.
PR_COMPACT_FIELDS: Final[list[str]] = [
    "id",
    "title",
    "state",
    "author.display_name",
    "author.uuid",
    "source.branch.name",
    "destination.branch.name",
    "created_on",
    "updated_on",
    "comment_count",
    "task_count",
]

PR_COMMENT_COMPACT_FIELDS: Final[list[str]] = [
    "id",
    "content.raw",
    "user.display_name",
    "user.uuid",
    "created_on",
    "updated_on",
    "deleted",
    "inline.path",
    "inline.to",
]

REPOSITORY_COMPACT_FIELDS: Final[list[str]] = [
    "uuid",
    "name",
    "full_name",
    "slug",
    "is_private",
    "description",
    "language",
    "size",
    "updated_on",
    "created_on",
    "mainbranch.name",
]

TREE_ENTRY_COMPACT_FIELDS: Final[list[str]] = [
    "type",
    "path",
    "size",
    "commit.hash",
]

BRANCH_COMPACT_FIELDS: Final[list[str]] = [
    "name",
    "target.hash",
    "target.date",
    "target.message",
    "target.author.raw",
]

TAG_COMPACT_FIELDS: Final[list[str]] = [
    "name",
    "target.hash",
    "target.date",
    "message",
    "tagger.raw",
]

COMMIT_COMPACT_FIELDS: Final[list[str]] = [
    "hash",
    "message",
    "author.raw",
    "date",
    "parents",
]

ISSUE_COMPACT_FIELDS: Final[list[str]] = [
    "id",
    "title",
    "state",
    "priority",
    "kind",
    "assignee.display_name",
    "assignee.uuid",
    "reporter.display_name",
    "created_on",
    "updated_on",
]

ISSUE_COMMENT_COMPACT_FIELDS: Final[list[str]] = [
    "id",
    "content.raw",
    "user.display_name",
    "user.uuid",
    "created_on",
    "updated_on",
]

PIPELINE_COMPACT_FIELDS: Final[list[str]] = [
    "uuid",
    "build_number",
    "state.name",
    "state.result.name",
    "target.ref_name",
    "target.ref_type",
    "creator.display_name",
    "created_on",
    "completed_on",
    "duration_in_seconds",
]

PIPELINE_STEP_COMPACT_FIELDS: Final[list[str]] = [
    "uuid",
    "name",
    "state.name",
    "state.result.name",
    "started_on",
    "completed_on",
    "duration_in_seconds",
]

PIPELINE_VARIABLE_COMPACT_FIELDS: Final[list[str]] = [
    "uuid",
    "key",
    "value",
    "secured",
]

WORKSPACE_COMPACT_FIELDS: Final[list[str]] = [
    "uuid",
    "slug",
    "name",
    "is_private",
]

PROJECT_COMPACT_FIELDS: Final[list[str]] = [
    "uuid",
    "key",
    "name",
    "description",
    "is_private",
    "created_on",
    "updated_on",
]

WORKSPACE_MEMBER_COMPACT_FIELDS: Final[list[str]] = [
    "user.uuid",
    "user.display_name",
    "user.nickname",
    "workspace.slug",
]

WEBHOOK_COMPACT_FIELDS: Final[list[str]] = [
    "uuid",
    "url",
    "description",
    "active",
    "events",
    "created_at",
]

DIFFSTAT_COMPACT_FIELDS: Final[list[str]] = [
    "status",
    "lines_added",
    "lines_removed",
    "old.path",
    "new.path",
]

BUILD_STATUS_COMPACT_FIELDS: Final[list[str]] = [
    "key",
    "name",
    "state",
    "url",
    "updated_on",
]

BRANCH_RESTRICTION_COMPACT_FIELDS: Final[list[str]] = [
    "id",
    "kind",
    "pattern",
    "value",
]

COMPACT_FIELDS: Final[dict[str, list[str]]] = {
    "pullrequest": PR_COMPACT_FIELDS,
    "pr_comment": PR_COMMENT_COMPACT_FIELDS,
    "commit_comment": PR_COMMENT_COMPACT_FIELDS,
    "repository": REPOSITORY_COMPACT_FIELDS,
    "tree_entry": TREE_ENTRY_COMPACT_FIELDS,
    "branch": BRANCH_COMPACT_FIELDS,
    "tag": TAG_COMPACT_FIELDS,
    "commit": COMMIT_COMPACT_FIELDS,
    "issue": ISSUE_COMPACT_FIELDS,
    "issue_comment": ISSUE_COMMENT_COMPACT_FIELDS,
    "pipeline": PIPELINE_COMPACT_FIELDS,
    "pipeline_step": PIPELINE_STEP_COMPACT_FIELDS,
    "pipeline_variable": PIPELINE_VARIABLE_COMPACT_FIELDS,
    "workspace": WORKSPACE_COMPACT_FIELDS,
    "project": PROJECT_COMPACT_FIELDS,
    "workspace_member": WORKSPACE_MEMBER_COMPACT_FIELDS,
    "webhook": WEBHOOK_COMPACT_FIELDS,
    "diffstat": DIFFSTAT_COMPACT_FIELDS,
    "build_status": BUILD_STATUS_COMPACT_FIELDS,
    "branch_restriction": BRANCH_RESTRICTION_COMPACT_FIELDS,
}
