"""HTTP routing for the Task Manager API."""
