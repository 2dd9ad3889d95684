"""Core application components.

This module provides the foundational components for the OphthalmoTech API:
- Supabase client management (tables, auth, storage)
- Application settings and configuration
- Logging setup
"""
