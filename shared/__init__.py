"""Shared package for the Pole Capture application.

This package contains code used by both the backend Flask API and the client
capture core. It includes:

- Database models (models.py) - SQLAlchemy tables for pole captures and user profiles
- Enums (enums.py) - Pole status enumeration and the redundant boolean type flags
- Errors (errors.py) - Exception taxonomy for the capture-to-storage pipeline
- Validation utilities (validation.py, schemas.py) - Input validation and sanitization
- Utility functions (utils.py) - Display formatting helpers
"""
