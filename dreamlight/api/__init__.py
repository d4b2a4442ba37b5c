"""
REST API module for Dreamlight.

Provides FastAPI endpoints for:
- Authentication and user administration
- Projects, episodes and crew assignment
- Milestones, finance and assets
- Role dashboards
"""
