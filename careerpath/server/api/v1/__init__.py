"""Version 1 of the CareerPath REST API."""
