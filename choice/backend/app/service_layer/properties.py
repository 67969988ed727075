# app/service_layer/properties.py
from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from ..adapters.cache import TTLCache
from ..domain.errors import NotFoundError, ServiceError, ValidationError
from ..domain.policies import Action, authorize
from ..domain.types import Requester
from ..schemas import PropertyOut, PropertyUpdate, first_error_message
from .applications import ServiceResult
from .unit_of_work import UnitOfWorkFactory

log = logging.getLogger(__name__)

CACHE_PREFIX = "property:"


def cache_key(property_id: str) -> str:
    return f"{CACHE_PREFIX}{property_id}"


class PropertyService:
    """
    Property detail reads (cached) and owner edits.

    Edits bump the property's version. Existing applications are untouched:
    they carry their own snapshot of the terms.
    """

    def __init__(self, *, uow_factory: UnitOfWorkFactory, cache: TTLCache) -> None:
        self.uow_factory = uow_factory
        self.cache = cache

    async def get_property(self, property_id: str) -> PropertyOut | None:
        hit = self.cache.get(cache_key(property_id))
        if hit is not None:
            return hit

        async with self.uow_factory() as uow:
            prop = await uow.repos.get_property(property_id)
            if prop is None:
                return None
            out = PropertyOut.model_validate(prop)

        self.cache.set(cache_key(property_id), out)
        return out

    async def update_property(
        self, property_id: str, changes: Any, requester: Requester
    ) -> ServiceResult[PropertyOut]:
        try:
            return ServiceResult(data=await self._update(property_id, changes, requester))
        except ServiceError as e:
            log.info("update_property rejected: %s: %s", type(e).__name__, e.message)
            return ServiceResult(error=e)

    async def _update(self, property_id: str, changes: Any, requester: Requester) -> PropertyOut:
        async with self.uow_factory() as uow:
            prop = await uow.repos.get_property(property_id)
            if prop is None:
                raise NotFoundError("Property not found")
            authorize(Action.edit_property, requester, property_owner_id=prop.owner_id)

            try:
                data = PropertyUpdate.model_validate(changes if changes is not None else {}).changes()
            except PydanticValidationError as exc:
                raise ValidationError(first_error_message(exc)) from None

            prop = await uow.repos.update_property(property_id, data)
            out = PropertyOut.model_validate(prop)

        dropped = self.cache.invalidate_prefix(cache_key(property_id))
        log.info("property updated id=%s version=%s cache_dropped=%d", property_id, out.version, dropped)
        return out
