"""Command implementations for the buildtrigger CLI."""
