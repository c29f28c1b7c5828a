# Services package.
#
# Each module exposes a focused set of async functions that encapsulate
# business logic and database access for a single domain aggregate:
#
#   article_service - CRUD + pagination + tag association for Article
#   follow_service - the follower/followee relation
#   user_service - signup/signin, profile updates, follow graph for User
#
# All service functions accept an AsyncSession as their first argument
# so that the router layer controls the transaction boundary via the
# ``get_db`` dependency.  Failures are raised as conduit.exceptions types.
