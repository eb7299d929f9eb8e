from pydantic import BaseModel, ConfigDict
from pydantic import Field as PydanticField


class Entity(BaseModel):
    """Base entity for records owned by the record store.

    Identifiers are assigned by the store on insert and kept as opaque
    ``table:key`` strings.
    """

    model_config = ConfigDict(extra="ignore")

    id: str = PydanticField(description="Record identifier assigned by the store")
