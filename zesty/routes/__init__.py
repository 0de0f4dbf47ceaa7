"""
FastAPI routers for all API endpoints.

Each module defines a router for one upstream or feature area
(taste graph, text generation, cards, challenges, preferences).
"""
