"""Helpers for the command line front end."""
