from petstore.sql.datastore import DataStore, merge_update_parameters
from petstore.sql.filters import CompiledFilter, compile_pet_filter
from petstore.sql.params import NamedParameters, build_named_parameters

__all__ = [
    "DataStore",
    "merge_update_parameters",
    "CompiledFilter",
    "compile_pet_filter",
    "NamedParameters",
    "build_named_parameters",
]
