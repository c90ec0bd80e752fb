"""HTTP clients for remote collaborators."""
