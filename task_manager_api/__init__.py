"""Task Manager API: task and user management over REST and GraphQL."""
