"""
Clinic management backend: account registration, login and listing.
"""
__version__ = "1.0.0"
