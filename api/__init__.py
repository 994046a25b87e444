"""Client-side boundary to the remote sensor HTTP API."""
