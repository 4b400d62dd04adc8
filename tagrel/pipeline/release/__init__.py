"""GitHub release publication."""
