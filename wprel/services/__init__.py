"""Release pipeline stages and their GitHub adapter."""
