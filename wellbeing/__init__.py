"""Backend for the Browser Wellbeing Tracker extension.

The FastAPI application lives in :mod:`wellbeing.main`; importing this package
alone does not touch the database.
"""

__all__ = ["__version__"]

__version__ = "1.0.0"
