"""
Resource catalog: resources, comments and ratings.
"""

from unishare.engines.catalog.resource_service import ResourcePage, ResourceService
from unishare.engines.catalog.comment_service import CommentService

__all__ = [
    "CommentService",
    "ResourcePage",
    "ResourceService",
]
