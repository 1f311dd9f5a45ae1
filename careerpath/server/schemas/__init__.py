"""Request and response bodies of the CareerPath API."""
