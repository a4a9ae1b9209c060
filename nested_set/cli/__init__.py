"""Command line interface for nested-set trees."""
