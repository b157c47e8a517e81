from jobplanner.services.providers.base import ListingProvider, ProviderPage
from jobplanner.services.providers.jsearch import JSearchProvider
from jobplanner.services.providers.indeed import IndeedProvider

__all__ = ["ListingProvider", "ProviderPage", "JSearchProvider", "IndeedProvider"]


def default_providers() -> list[ListingProvider]:
    """Providers in fallback order."""
    return [JSearchProvider(), IndeedProvider()]
