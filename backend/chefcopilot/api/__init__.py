"""
API routes initialization.

This module aggregates all API routers and provides a single router
to include in the main application.
"""

from fastapi import APIRouter

from chefcopilot.api.routes import chat, documents, indexing, web_content

# Create main API router
api_router = APIRouter()

# Include Chat routes
api_router.include_router(chat.router)

# Include Web Content search routes
api_router.include_router(web_content.router)

# Include Document search routes
api_router.include_router(documents.router)

# Include Indexing routes
api_router.include_router(indexing.router)
