from typing import Optional


class BlogError(Exception):
    '''Base error; carries the HTTP status the API answers with.'''
    status_code : int = 500
    message : str = 'Internal error'

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class ConfigurationError(BlogError):
    status_code = 500
    message = 'Server is not configured'


class ValidationError(BlogError):
    status_code = 400
    message = 'Invalid request'


class Forbidden(BlogError):
    status_code = 403
    message = 'Wrong password'


class ResourceNotFound(BlogError):
    status_code = 404
    message = 'Not found'


class PostNotFound(ResourceNotFound):
    message = 'Post not found'


class CommentNotFound(ResourceNotFound):
    message = 'Comment not found'
