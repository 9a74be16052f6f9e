"""Roster and attendance stores."""
