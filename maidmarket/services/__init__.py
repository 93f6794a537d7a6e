"""Service layer sitting between views and the marketplace API."""
