"""Shared utilities: caching, logging, text matching, league registry."""
