from __future__ import annotations


class RecipeAppError(Exception):
    pass


class RepositoryError(RecipeAppError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Repository error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason


class DatabaseUnavailableError(RepositoryError):
    """The document store is not reachable or has not been provisioned."""


class StorageError(RecipeAppError):
    pass


class StorageUploadError(StorageError):
    def __init__(self, object_key: str, reason: str = "Upload failed"):
        super().__init__(f"Failed to upload {object_key}: {reason}")
        self.object_key = object_key
        self.reason = reason


class ScalingInputError(RecipeAppError):
    def __init__(self, message: str = "Invalid input. Please check the serving size and ingredients."):
        super().__init__(message)


class ScalingUnavailableError(RecipeAppError):
    def __init__(
        self,
        message: str = (
            "Failed to scale ingredients. The AI model may be temporarily unavailable. "
            "Please try again later."
        ),
    ):
        super().__init__(message)


class AuthenticationError(RecipeAppError):
    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message)
