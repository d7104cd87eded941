from inkwell.controllers.blog import BlogController

__all__ = ["BlogController"]
