"""
Authentication module for the clinic system.

This module provides:
- Account registration (with patient profile allocation for patients)
- Login with bcrypt password verification and JWT session tokens
- Account listing
"""
