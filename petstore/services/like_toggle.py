"""
Like toggle across the favorites relation and the pets.likes counter.

Steps run strictly in order for one invocation:

    checking_state -> validating -> updating_counter -> syncing_relation -> done
                          |
                          +-> aborted (already in the requested state)

With `atomic=True` the two writes share one transaction and a failure
rolls both back. With `atomic=False` each write commits on its own; a
relation failure after the counter committed raises PartialSagaFailure
and nothing is compensated. Concurrent toggles on the same pet are not
isolated from each other in either mode: the counter is read, adjusted
and written back without a version check.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from petstore.errors import (
    BusinessError,
    DuplicateActionError,
    LikeToggleError,
    NotFoundError,
    PartialSagaFailure,
    QueryError,
)
from petstore.repositories.favorites import FavoriteRepository
from petstore.repositories.pets import PetRepository
from petstore.schemas import Favorite, LikeToggleRequest, LikeToggleResult
from petstore.sql.datastore import DataStore
from petstore.tracing import set_attribute, traced

logger = logging.getLogger(__name__)


class ToggleState(str, Enum):
    CHECKING_STATE = "checking_state"
    VALIDATING = "validating"
    UPDATING_COUNTER = "updating_counter"
    SYNCING_RELATION = "syncing_relation"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class ToggleRun:
    """Per-invocation state."""

    request: LikeToggleRequest
    state: ToggleState = ToggleState.CHECKING_STATE
    likes: int = 0

    def enter(self, state: ToggleState) -> None:
        self.state = state
        logger.debug(
            f"like toggle pet={self.request.pet_id} user={self.request.user_id}: {state.value}"
        )


class LikeToggleSaga:
    def __init__(self, store: DataStore, atomic: bool = True):
        self.store = store
        self.atomic = atomic

    async def run(self, request: LikeToggleRequest) -> LikeToggleResult:
        """
        Set the user's like on a pet to `request.value`.

        Raises DuplicateActionError when the like is already in that state,
        NotFoundError for an unknown pet, LikeToggleError naming the failed
        step, or PartialSagaFailure (non-atomic mode only).
        """
        toggle = ToggleRun(request)

        with traced("LikeToggleSaga.run", {
            "pet_id": request.pet_id,
            "user_id": request.user_id,
            "value": request.value,
            "atomic": self.atomic,
        }) as span:
            try:
                await self._validate(toggle)

                if self.atomic:
                    try:
                        async with self.store.transaction() as tx:
                            await self._write(toggle, tx)
                    except QueryError as e:
                        # Commit failed; both writes were rolled back
                        raise LikeToggleError(
                            toggle.state.value, "10003E", e, rolled_back=True
                        ) from e
                else:
                    await self._write(toggle, self.store)
            finally:
                set_attribute(span, "state", toggle.state.value)

            toggle.enter(ToggleState.DONE)

        return LikeToggleResult(
            pet_id=request.pet_id,
            user_id=request.user_id,
            liked=request.value,
            likes=toggle.likes,
        )

    async def _validate(self, toggle: ToggleRun) -> None:
        request = toggle.request

        favorites = await FavoriteRepository(self.store).find_by_user_id(request.user_id)

        toggle.enter(ToggleState.VALIDATING)
        liked = request.pet_id in favorites
        if liked == request.value:
            toggle.enter(ToggleState.ABORTED)
            raise DuplicateActionError("00001I" if request.value else "00002I")

    async def _write(self, toggle: ToggleRun, store: DataStore) -> None:
        request = toggle.request
        pets = PetRepository(store)
        favorites = FavoriteRepository(store)

        toggle.enter(ToggleState.UPDATING_COUNTER)
        try:
            pet = await pets.get(request.pet_id)
        except BusinessError as e:
            raise LikeToggleError(toggle.state.value, "10001E", e, rolled_back=self.atomic) from e
        if pet is None:
            raise NotFoundError(detail=f"pet_id={request.pet_id}")

        delta = 1 if request.value else -1
        toggle.likes = pet.likes + delta
        if toggle.likes < 0:
            # The favorite row existed but the counter was already 0
            logger.warning(
                f"Like counter below zero for pet={request.pet_id} "
                f"(likes={pet.likes}, user={request.user_id}); keeping 0"
            )
            toggle.likes = 0
        try:
            await pets.update(pet.model_copy(update={"likes": toggle.likes}))
        except BusinessError as e:
            raise LikeToggleError(toggle.state.value, "10003E", e, rolled_back=self.atomic) from e

        toggle.enter(ToggleState.SYNCING_RELATION)
        favorite = Favorite(pet_id=request.pet_id, user_id=request.user_id, value=request.value)
        code = "10004E" if request.value else "10005E"
        try:
            if request.value:
                await favorites.create(favorite)
            else:
                deleted = await favorites.delete(favorite)
                if deleted == 0:
                    logger.warning(
                        f"No favorite row removed for pet={request.pet_id} user={request.user_id}"
                    )
        except BusinessError as e:
            if self.atomic:
                raise LikeToggleError(toggle.state.value, code, e, rolled_back=True) from e
            logger.error(
                f"Like counter and favorites diverged: pet={request.pet_id} "
                f"user={request.user_id} likes={toggle.likes}: {e}"
            )
            raise PartialSagaFailure(
                toggle.state.value,
                code,
                e,
                pet_id=request.pet_id,
                user_id=request.user_id,
                likes=toggle.likes,
            ) from e
