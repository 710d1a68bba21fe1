"""
Reviews - mobile-first review and discovery app.

Packages:
- reviews.web: FastAPI server (auth proxy, reviews, discover, profile)
- reviews.db: Supabase-backed stores
- reviews.ui: Page controllers and draft persistence for the client
- onboarding: Step-gating state machine and step forms (separate package)
"""

__version__ = "1.0.0"
