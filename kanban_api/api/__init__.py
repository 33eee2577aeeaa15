"""HTTP transport for the tracker repositories."""
