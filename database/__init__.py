"""database — cursor persistence."""
