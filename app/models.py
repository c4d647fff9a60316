from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class FilingStatus(str, Enum):
    SINGLE = "single"
    MARRIED_JOINT = "married_joint"
    MARRIED_SEPARATE = "married_separate"
    HOH = "hoh"


Language = Literal["en", "es"]


class EstimateRequest(BaseModel):
    """Validated inbound estimate request, every field populated"""
    model_config = ConfigDict(allow_inf_nan=False)

    tax_year: int = Field(default=2025, ge=2020, le=2030, strict=True)
    filing_status: FilingStatus
    w2_wages: float = Field(default=0.0, ge=0, strict=True)
    self_employment_net: float = Field(default=0.0, ge=0, strict=True)
    self_employed: bool = Field(default=False, strict=True)
    dependents: int = Field(default=0, ge=0, strict=True)
    federal_withholding: float = Field(default=0.0, ge=0, strict=True)
    unemployment: float = Field(default=0.0, ge=0, strict=True)
    student_loan_interest: float = Field(default=0.0, ge=0, strict=True)
    language: Language = "en"

    @field_validator("tax_year", "dependents", mode="before")
    @classmethod
    def integral_float_as_int(cls, value):
        # JSON has one number type; 2024.0 is the integer 2024.
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    @field_validator(
        "w2_wages", "self_employment_net", "federal_withholding", "unemployment", "student_loan_interest"
    )
    @classmethod
    def as_float(cls, value: float) -> float:
        return float(value)

    def model_inputs(self) -> dict:
        """The fields the model sees as INPUT; language travels separately"""
        return self.model_dump(mode="json", exclude={"language"})


class Credits(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    ctc_nonrefundable: float = 0
    ctc_refundable: float = 0
    odc: float = 0
    eitc: float = 0


class Breakdown(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    agi: float = 0
    standard_deduction: float = 0
    taxable_income: float = 0
    tentative_tax: float = 0
    se_tax: float = 0
    credits: Credits = Field(default_factory=Credits)
    total_credits: float = 0
    total_tax: float = 0
    refundable_credits: float = 0
    withholding: float = 0


class Estimate(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    refund_low: float
    refund_high: float
    breakdown: Breakdown = Field(default_factory=Breakdown)


class JsonResult(BaseModel):
    estimate: Estimate
    inputs: dict = Field(default_factory=dict)


class EstimateResult(BaseModel):
    """Response body of POST /estimate"""
    json_result: JsonResult
    summary: str = ""

    @model_validator(mode="after")
    def strip_summary(self) -> "EstimateResult":
        self.summary = self.summary.strip()
        return self

