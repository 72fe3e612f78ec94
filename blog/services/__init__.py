# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single domain aggregate:
#
#   article_service  listings, gated fetch, view counter, CRUD + cascades
#   comment_service  threaded comments, moderation, subtree deletion
#   tag_service      tag catalog, counts, link cleanup
#   series_service   series catalog, counts, member detachment
#   archive_service  year histogram of published articles
#   slug_service     collision-free slugs for articles, tags and series
#   user_service     identity upsert and lookups
#
# All service functions accept an AsyncSession (or None when no database
# is configured) as their first argument so that the router layer controls
# the transaction boundary via the ``get_db`` dependency.
