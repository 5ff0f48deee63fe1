"""Notification log storage backends."""
