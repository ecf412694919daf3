"""
Pydantic schemas for API request and response validation.

All FastAPI endpoints use explicit request/response models; database rows
are mapped into them in the routes.
"""
