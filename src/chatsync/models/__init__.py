"""Data models: exported conversations and persisted sync state."""
