"""Breed Industries quote and notification backend."""
