"""Progress store persistence."""
