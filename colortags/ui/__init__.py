"""Listing views, viewport rendering and debounced scheduling."""
