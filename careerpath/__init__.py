"""CareerPath.

This package contains the backend of the CareerPath career-guidance platform:
a REST API that stores learner profiles, generates AI career roadmaps, runs an
AI counseling chat, and hosts the community features (mentors, events, forum,
direct chat) the web frontend renders.

Core subpackages
----------------

- ``careerpath.core``:

  - Logging and monitoring configuration shared by every module.
  - Async database engine/session helpers and pagination utilities.

- ``careerpath.server``:

  - The FastAPI application, its settings, security and middleware.
  - SQLModel tables and request/response schemas per domain.
  - Services that hold the domain logic (roadmap parsing and caching,
    counseling prompts, mindmap building, college dataset lookup).

Typical workflow
----------------

1. A learner registers (email/password) or signs in with Google (Firebase).
2. Onboarding stores their level, stage, interests, goals and learning style.
3. ``POST /api/v1/roadmap/generate`` reuses a cached roadmap for a similar
   profile or asks Gemini for a new one.
4. Milestone updates recompute progress; analytics and next steps are derived
   from the stored roadmap document.
"""
