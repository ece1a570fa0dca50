"""Analysis collaborators."""
