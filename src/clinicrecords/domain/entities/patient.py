"""Patient entity (read-only directory view used for narrative requests)."""

from dataclasses import dataclass

from ..errors import ValidationError


@dataclass
class Patient:
    patient_id: str
    name: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("name", "Patient name is required", self.name)
        self.name = self.name.strip()
