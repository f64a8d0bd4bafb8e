"""Stateless helpers: validation, share links, vCards and metrics."""
