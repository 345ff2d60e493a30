"""Backend clients, controller and AI services."""
