"""Service layer exports."""
