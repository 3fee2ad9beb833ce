"""contenthub — content platform backend (users, events, blogs, reviews)."""
