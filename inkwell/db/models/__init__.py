from inkwell.db.models.post import Post

__all__ = ["Post"]
