"""Web layer: typed responses, dispatch, sessions and HTTP routes."""
