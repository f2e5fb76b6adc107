"""
Machine-readable error codes returned in the ``error_code`` field of error responses.
"""

# Generic
VALIDATION_ERROR = "VALIDATION_ERROR"
NOT_FOUND_ERROR = "NOT_FOUND_ERROR"
INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"

# Authentication
UNAUTHENTICATED = "UNAUTHENTICATED"
INVALID_TOKEN = "INVALID_TOKEN"
INVALID_CREDENTIALS = "INVALID_CREDENTIALS"

# Users
USER_NOT_FOUND = "USER_NOT_FOUND"
EMAIL_ALREADY_REGISTERED = "EMAIL_ALREADY_REGISTERED"
USERNAME_ALREADY_TAKEN = "USERNAME_ALREADY_TAKEN"
DATABASE_INTEGRITY_ERROR = "DATABASE_INTEGRITY_ERROR"

# Social graph
INVALID_IDENTITY = "INVALID_IDENTITY"
SELF_FOLLOW_REJECTED = "SELF_FOLLOW_REJECTED"
ALREADY_FOLLOWING = "ALREADY_FOLLOWING"
NOT_FOLLOWING = "NOT_FOLLOWING"
TRANSIENT_STORE_FAILURE = "TRANSIENT_STORE_FAILURE"
UNKNOWN_FAILURE = "UNKNOWN_FAILURE"

# Posts
POST_NOT_FOUND = "POST_NOT_FOUND"
POST_IMAGE_REQUIRED = "POST_IMAGE_REQUIRED"
POST_DELETE_PERMISSION_DENIED = "POST_DELETE_PERMISSION_DENIED"
POST_CREATION_ERROR = "POST_CREATION_ERROR"

# Likes
ALREADY_LIKED = "ALREADY_LIKED"
LIKE_NOT_FOUND = "LIKE_NOT_FOUND"

# Files
INVALID_FILE_TYPE = "INVALID_FILE_TYPE"
FILE_TOO_LARGE = "FILE_TOO_LARGE"
FILE_UPLOAD_ERROR = "FILE_UPLOAD_ERROR"
