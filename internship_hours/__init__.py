"""Internship hours tracker: authentication and bearer token lifecycle."""
