"""Service layer - business logic on top of provider integrations."""
