# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single domain aggregate:
#
#   article_service    : CRUD + paginated list + list cache for Article
#   channel_service    : CRUD + cached tree for Channel
#   dictionary_service : CRUD + by-type lookup for DictEntry
#   promo_service      : CRUD + status toggle + cached active set for Promo
#   user_service       : create / read / soft delete for User
#   audit_log_service  : paginated read of Log
#   common             : scoped lookup, partial update, soft delete
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Services that cache take the Cache second.
