"""Conversation polling and local message state."""
