# Handlers package.
#
# Each module holds one resource handler class plus the route functions
# that the endpoint registry binds for it:
#
#   post_handler     list / get / create / delete for Post
#   like_handler     create / delete / count for Like
#   comment_handler  count / list / create / delete for Comment
#   user_handler     sign-up / sign-in / lookup for User
#
# Handler classes receive their ``Datastore`` through the constructor
# (FastAPI builds them per request with ``Depends``), validate presence of
# the inputs they need and answer expected failures with status responses
# themselves.  Unexpected errors propagate to the app's error boundary.
