"""
Business logic behind the API endpoints.

AI counseling and roadmap generation on Gemini, the roadmap cache, the
college directory client and the helpers the routers share.
"""
