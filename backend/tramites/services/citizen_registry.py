"""Citizen Registry — registration and lookup of citizen identity records.

Invariants:
    - Registration validates national_id (8 digits), email and phone before any IO
    - national_id is not unique: re-registering the same document creates a new record
    - Citizen ids come from Repository.next_id(): monotonically increasing
    - Records are never updated or deleted
"""

import logging
from collections.abc import Callable
from datetime import datetime

from tramites.core.domain_types import CitizenId
from tramites.core.entities import Citizen
from tramites.core.errors import NotFoundError
from tramites.core.repository_protocols import Repository
from tramites.core.validate_input import check_national_id, validate_registration
from tramites.services.ledger_helpers import Deadline, commit, utcnow

logger = logging.getLogger(__name__)


class CitizenRegistry:
    """Owns Citizen entities."""

    def __init__(
        self,
        citizens: Repository[Citizen],
        clock: Callable[[], datetime] = utcnow,
        timeout: float | None = None,
    ):
        self._citizens = citizens
        self._clock = clock
        self._timeout = timeout

    async def register(self, data: dict, *, timeout: float | None = None) -> Citizen:
        fields = validate_registration(data)
        deadline = Deadline("register_citizen", self._timeout if timeout is None else timeout)

        citizen_id = CitizenId(await deadline.run(self._citizens.next_id()))
        citizen = Citizen(id=citizen_id, registered_at=self._clock(), **fields)
        await commit(self._citizens.save(citizen))

        logger.info("Citizen registered", extra={"citizen_id": citizen.id})
        return citizen

    async def get(self, citizen_id: CitizenId, *, timeout: float | None = None) -> Citizen:
        deadline = Deadline("get_citizen", self._timeout if timeout is None else timeout)
        citizen = await deadline.run(self._citizens.get(citizen_id))
        if citizen is None:
            raise NotFoundError("Citizen", citizen_id)
        return citizen

    async def find_by_national_id(
        self, national_id: str, *, timeout: float | None = None,
    ) -> Citizen:
        """Earliest registration for the document."""
        check_national_id(national_id)
        deadline = Deadline("find_citizen", self._timeout if timeout is None else timeout)
        matches = await deadline.run(
            self._citizens.query(lambda c: c.national_id == national_id),
        )
        if not matches:
            raise NotFoundError("Citizen", national_id)
        return min(matches, key=lambda c: c.id)
