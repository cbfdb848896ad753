"""Evolutionary search over fasteners."""
