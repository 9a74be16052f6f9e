"""Track student attendance by date."""
