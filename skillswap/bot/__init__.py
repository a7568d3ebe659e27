"""Discord chat surface."""
