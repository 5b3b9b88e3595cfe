"""End-to-end workflows composed from the service layer."""
