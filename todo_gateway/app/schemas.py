from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, field_validator


class TaskCreate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: StrictStr = Field(min_length=1)
    state: bool = False

    @field_validator("state", mode="before")
    @classmethod
    def only_true_completes(cls, v: Any) -> bool:
        """Anything but a JSON ``true`` creates an incomplete task."""

        return v is True


class TaskUpdate(BaseModel):
    """Partial update; only fields present in the body are applied."""

    model_config = ConfigDict(extra="ignore")

    title: Optional[StrictStr] = None
    state: Optional[StrictBool] = None

    @field_validator("title", "state", mode="before")
    @classmethod
    def reject_null(cls, v: Any) -> Any:
        if v is None:
            raise ValueError("must not be null")
        return v

    def changes(self) -> list[tuple[str, Any]]:
        """Supplied fields as ordered (column, value) pairs."""

        return [
            (name, getattr(self, name))
            for name in type(self).model_fields
            if name in self.model_fields_set
        ]
