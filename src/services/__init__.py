"""
Utility functions for Lambda handler operations.

This package contains reusable service functions for email composition and
Amazon SES delivery.
"""

__all__ = ['email', 'ses']
