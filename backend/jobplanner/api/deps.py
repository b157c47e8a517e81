from typing import List
from jobplanner.services.cache import get_cache
from jobplanner.services.commute import CommuteResolver, build_commute_resolver
from jobplanner.services.messages import MessageGenerator, get_message_generator
from jobplanner.services.providers import ListingProvider, default_providers


async def get_commute_resolver() -> CommuteResolver:
    return build_commute_resolver(cache=await get_cache())


def get_providers() -> List[ListingProvider]:
    return default_providers()


def get_messages() -> MessageGenerator:
    return get_message_generator()
