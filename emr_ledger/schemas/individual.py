"""
Schemas para Individual (paciente).
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

BLOOD_GROUPS = {"A+", "A-", "B+", "B-", "O+", "O-", "AB+", "AB-"}


class IndividualCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=200)
    date_of_birth: str = Field(..., min_length=4, max_length=20, description="Ej: 1990-01-01")
    blood_group: str = Field(..., max_length=5)

    @field_validator("blood_group")
    @classmethod
    def validate_blood_group(cls, v: str) -> str:
        value = v.strip().upper()
        if value not in BLOOD_GROUPS:
            raise ValueError(
                f"Grupo sanguíneo inválido: '{v}'. "
                f"Valores permitidos: {', '.join(sorted(BLOOD_GROUPS))}"
            )
        return value


class IndividualResponse(BaseModel):
    id: str
    name: str
    date_of_birth: str
    blood_group: str
    is_active: bool
    registered_at: datetime

    model_config = {"from_attributes": True}
