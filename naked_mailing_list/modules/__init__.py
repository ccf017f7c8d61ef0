"""
Naked Mailing List Modules
==========================

Collection of Flask blueprint modules for mailing-list administration.
"""

__all__ = ['subscribers']
