"""Shared utilities and cross-domain components.

This module contains utilities used across multiple domains:
- Exception classes for consistent error handling
- Permission system for role, department and per-user access control
- OpenAI-compatible AI client
"""
