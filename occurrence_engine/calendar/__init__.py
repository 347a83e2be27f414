"""Recurrence models and the calendar arithmetic used to expand them."""
