"""
API route modules.

Import all route modules here for easy access.
"""

from chefcopilot.api.routes import chat, documents, indexing, web_content

__all__ = ["chat", "documents", "indexing", "web_content"]
