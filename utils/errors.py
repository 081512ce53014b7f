from fastapi import status

class ErrorDetail:
    def __init__(self, status_code: int, code: str, message: str):
        self.status_code = status_code
        self.code = code
        self.message = message

class ErrorCode:
    """System error code and message definitions"""

    # Common errors
    COMMON_INTERNAL_ERROR = ErrorDetail(status.HTTP_500_INTERNAL_SERVER_ERROR, "COMMON_INTERNAL_ERROR", "An unexpected internal server error occurred.")
    COMMON_NOT_FOUND = ErrorDetail(status.HTTP_404_NOT_FOUND, "COMMON_NOT_FOUND", "The requested resource does not exist")
    COMMON_VALIDATION_ERROR = ErrorDetail(status.HTTP_400_BAD_REQUEST, "COMMON_VALIDATION_ERROR", "Data validation failed")
    COMMON_SERVICE_UNAVAILABLE = ErrorDetail(status.HTTP_503_SERVICE_UNAVAILABLE, "COMMON_SERVICE_UNAVAILABLE", "Service unavailable")
    COMMON_STORE_UNAVAILABLE = ErrorDetail(status.HTTP_500_INTERNAL_SERVER_ERROR, "COMMON_STORE_UNAVAILABLE", "The data store is unavailable")
    COMMON_DUPLICATE_KEY = ErrorDetail(status.HTTP_409_CONFLICT, "COMMON_DUPLICATE_KEY", "A record with the same key already exists")
    COMMON_UNAUTHORIZED = ErrorDetail(status.HTTP_401_UNAUTHORIZED, "COMMON_UNAUTHORIZED", "Unauthorized")
    COMMON_BAD_REQUEST = ErrorDetail(status.HTTP_400_BAD_REQUEST, "COMMON_BAD_REQUEST", "Bad request")
    # Authentication related errors
    AUTH_INVALID_CREDENTIALS = ErrorDetail(status.HTTP_401_UNAUTHORIZED, "AUTH_INVALID_CREDENTIALS", "Invalid credentials")
    AUTH_INVALID_ADMIN_CREDENTIALS = ErrorDetail(status.HTTP_401_UNAUTHORIZED, "AUTH_INVALID_ADMIN_CREDENTIALS", "Invalid admin credentials")
    AUTH_INVALID_USER_CREDENTIALS = ErrorDetail(status.HTTP_401_UNAUTHORIZED, "AUTH_INVALID_USER_CREDENTIALS", "Invalid user credentials")
    AUTH_INVALID_TOKEN = ErrorDetail(status.HTTP_401_UNAUTHORIZED, "AUTH_INVALID_TOKEN", "Invalid or expired session token")
    AUTH_ADMIN_REQUIRED = ErrorDetail(status.HTTP_403_FORBIDDEN, "AUTH_ADMIN_REQUIRED", "Admin access required")
    AUTH_MAIN_ADMIN_REQUIRED = ErrorDetail(status.HTTP_403_FORBIDDEN, "AUTH_MAIN_ADMIN_REQUIRED", "Only the main administrator can manage users")
    AUTH_USER_EXISTS = ErrorDetail(status.HTTP_400_BAD_REQUEST, "AUTH_USER_EXISTS", "Username already exists")
    AUTH_USER_NOT_FOUND = ErrorDetail(status.HTTP_404_NOT_FOUND, "AUTH_USER_NOT_FOUND", "User not found")
    AUTH_ADMIN_LIMIT_REACHED = ErrorDetail(status.HTTP_400_BAD_REQUEST, "AUTH_ADMIN_LIMIT_REACHED", "Maximum 3 admin users allowed")

    # File related errors
    FILE_NOT_FOUND = ErrorDetail(status.HTTP_404_NOT_FOUND, "FILE_NOT_FOUND", "File not found")
    FILE_NOT_ON_DISK = ErrorDetail(status.HTTP_404_NOT_FOUND, "FILE_NOT_ON_DISK", "File not found on disk")
    FILE_REJECTED = ErrorDetail(status.HTTP_400_BAD_REQUEST, "FILE_REJECTED", "Only VIP.js files are allowed")
    FILE_TOO_LARGE = ErrorDetail(413, "FILE_TOO_LARGE", "Uploaded file exceeds the size limit")

    # Whitelist related errors
    WHITELIST_ENTRY_NOT_FOUND = ErrorDetail(status.HTTP_404_NOT_FOUND, "WHITELIST_ENTRY_NOT_FOUND", "IP whitelist entry not found")
    WHITELIST_IP_EXISTS = ErrorDetail(status.HTTP_409_CONFLICT, "WHITELIST_IP_EXISTS", "IP address already whitelisted")
