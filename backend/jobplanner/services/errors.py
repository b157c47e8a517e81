class SearchError(Exception):
    """Search could not be satisfied by any provider or by the store."""


class ProviderError(Exception):
    """A listing provider failed to return a usable response."""

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderUnavailable(ProviderError):
    """A listing provider is not configured (missing credentials)."""


class ProfileNotFound(Exception):
    def __init__(self, user_id: str):
        super().__init__(f"Profile not found: {user_id}")
        self.user_id = user_id
