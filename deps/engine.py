from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from db import SessionLocal
from services.lifecycle import SessionLifecycle
from services.provider import GeminiProvider
from services.store import SessionStore


@lru_cache(maxsize=1)
def get_provider() -> GeminiProvider:
    """One HTTP client per process; provider settings come from the environment."""
    return GeminiProvider()


def get_store() -> SessionStore:
    return SessionStore(SessionLocal)


def get_lifecycle(
    store: Annotated[SessionStore, Depends(get_store)],
    provider: Annotated[GeminiProvider, Depends(get_provider)],
) -> SessionLifecycle:
    return SessionLifecycle(store, provider)
