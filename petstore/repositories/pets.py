import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from pydantic import ValidationError

from petstore.errors import BusinessError
from petstore.schemas import Pet, PetFilter
from petstore.sql.datastore import DataStore
from petstore.sql.filters import compile_pet_filter
from petstore.tracing import set_attribute, traced

logger = logging.getLogger(__name__)

PETS_TABLE = "pets"


class PetRepository:
    """Pets table access."""

    def __init__(self, store: DataStore):
        self.store = store

    async def find(self, pet_filter: Optional[PetFilter] = None) -> list[Pet]:
        """Pets matching every populated field of `pet_filter`."""
        compiled = compile_pet_filter(pet_filter)

        with traced("PetRepository.find", {"where_clause": compiled.where_clause}) as span:
            rows = await self.store.select_where(PETS_TABLE, compiled.where_clause, compiled.params)
            set_attribute(span, "result_count", len(rows))

        try:
            return [Pet.from_row(row) for row in rows]
        except ValidationError as e:
            raise BusinessError("10002E", e) from e

    async def get(self, pet_id: str) -> Optional[Pet]:
        for pet in await self.find(PetFilter(id=pet_id)):
            if pet.id == pet_id:
                return pet
        return None

    async def create(self, pet: Pet) -> Pet:
        """Insert a pet. Pet ids are generated here, not by the database."""
        if not pet.id:
            pet = pet.model_copy(update={"id": str(uuid4())})

        with traced("PetRepository.create", {"pet_id": pet.id}):
            await self.store.insert(PETS_TABLE, pet.to_row(), skip_identity=False)
        return pet

    async def update(self, pet: Pet) -> int:
        """Write every column of `pet` (None columns are left untouched)."""
        with traced("PetRepository.update", {"pet_id": pet.id}):
            values = pet.to_row()
            values.pop("id")
            values["updated_at"] = datetime.now(timezone.utc)
            return await self.store.update(PETS_TABLE, values, "id = :id", {"id": pet.id})
