from inkwell.middleware.uploads import UploadFilesMiddleware

__all__ = ["UploadFilesMiddleware"]
