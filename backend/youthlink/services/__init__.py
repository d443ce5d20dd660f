"""Business rules behind the API routes, plus background jobs and analytics."""
