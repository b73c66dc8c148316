"""
Services layer for business logic.

Service classes are imported from their modules directly
(``from services.post_service import PostService``); the pure rules they
share live in ``services.forum_rules``.
"""
