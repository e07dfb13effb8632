"""
Domain layer containing core business logic and domain services.

Submodules:
- live: Live stream engine (sessions, viewers, chat, moderation).
- utils: Domain-specific utilities (token and pseudonym generation, formatting).
"""
