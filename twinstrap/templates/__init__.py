"""Starter workspace files shipped with twinstrap."""
