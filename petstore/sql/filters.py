import logging
from typing import Any, NamedTuple, Optional

from petstore.schemas import PetFilter

logger = logging.getLogger(__name__)

_GENDERS = {"male": "Male", "female": "Female"}


class CompiledFilter(NamedTuple):
    predicates: list[str]
    params: dict[str, Any]

    @property
    def where_clause(self) -> str:
        """Predicates joined with AND; empty when nothing was set."""
        return " AND ".join(self.predicates)


def compile_pet_filter(pet_filter: Optional[PetFilter]) -> CompiledFilter:
    """
    Compile a sparse pet filter into `column = :column` predicates.

    Field order is fixed: gender, price, name, id, reference_number, breed.
    Unset fields (empty string, zero price) produce nothing. Gender matches
    male/female case-insensitively and binds the capitalized form; any
    other gender value is dropped.
    """
    predicates: list[str] = []
    params: dict[str, Any] = {}

    if pet_filter is None:
        return CompiledFilter(predicates, params)

    def add(column: str, value: Any) -> None:
        predicates.append(f"{column} = :{column}")
        params[column] = value

    if pet_filter.gender:
        gender = _GENDERS.get(pet_filter.gender.lower())
        if gender:
            add("gender", gender)
        else:
            logger.debug(f"Ignoring unrecognized gender filter: {pet_filter.gender!r}")
    if pet_filter.price != 0:
        add("price", pet_filter.price)
    if pet_filter.name:
        add("name", pet_filter.name)
    if pet_filter.id:
        add("id", pet_filter.id)
    if pet_filter.reference_number:
        add("reference_number", pet_filter.reference_number)
    if pet_filter.breed:
        add("breed", pet_filter.breed)

    return CompiledFilter(predicates, params)
