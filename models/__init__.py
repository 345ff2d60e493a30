"""MongoDB connection management."""
