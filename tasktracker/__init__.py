"""tasktracker - Task Tracker API with optimistic concurrency control."""
