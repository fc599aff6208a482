"""Service package for list-view presentation."""
