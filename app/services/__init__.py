# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single domain aggregate:
#
#   task_service     — per-user CRUD (soft delete) for Task
#   post_service     — CRUD, paginated search and likes for SocialMediaPost
#   comment_service  — append-only comments on a post
#   user_service     — user lookup and first-sight provisioning
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.
