from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from app.client.storage import DeviceStorage

FORM_KEY = "tax_form_v1"


class TaxFormData(BaseModel):
    """Everything the question flow collects; richer than the wire payload"""
    model_config = ConfigDict(extra="ignore")

    tax_year: int = 2025
    filing_status: str = "single"
    age_primary: Optional[float] = None
    age_spouse: Optional[float] = None
    u17_dependents: Optional[int] = None
    other_dependents: Optional[int] = None
    w2_wages: Optional[float] = None
    federal_withheld: Optional[float] = None
    federal_withholding: Optional[float] = None
    self_employment_gross: Optional[float] = None
    self_employment_expenses: Optional[float] = None
    self_employment_net: Optional[float] = None
    unemployment: Optional[float] = None
    student_loan_interest: Optional[float] = None
    childcare_expenses: Optional[float] = None
    language: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


def initial_form_data() -> dict:
    return {
        "tax_year": 2025,
        "filing_status": "single",
        "age_primary": 23,
        "age_spouse": None,
        "u17_dependents": 0,
        "other_dependents": 0,
        "w2_wages": 0,
        "federal_withheld": 0,
        "self_employment_gross": 0,
        "self_employment_expenses": 0,
        "self_employment_net": 0,
        "unemployment": 0,
        "student_loan_interest": 0,
        "childcare_expenses": 0,
    }


class FormDraftStore:
    """Keeps the in-progress answers on the device between sessions"""

    def __init__(self, storage: DeviceStorage):
        self.storage = storage

    def load(self) -> dict:
        draft = self.storage.load_json(FORM_KEY, None)
        if not isinstance(draft, dict):
            return initial_form_data()
        return {**initial_form_data(), **draft}

    def save(self, form: dict) -> None:
        self.storage.save_json(FORM_KEY, form)

    def clear(self) -> None:
        self.storage.remove_item(FORM_KEY)
