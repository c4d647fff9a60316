import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from app.models import FilingStatus

REQUIRED_MESSAGE = "This field is required."


class QuestionType(str, Enum):
    NUMBER = "number"
    SELECT = "select"
    TEXT = "text"


@dataclass(frozen=True)
class Question:
    id: str
    label: str
    type: QuestionType
    helper: str = ""
    required: bool = True
    options: tuple[tuple[str, str], ...] = ()
    condition: Optional[Callable[[dict], bool]] = None

    def is_active(self, form: dict) -> bool:
        return self.condition is None or self.condition(form)


def _filing_jointly(form: dict) -> bool:
    return form.get("filing_status") == FilingStatus.MARRIED_JOINT.value


QUESTIONS: tuple[Question, ...] = (
    Question(
        "tax_year",
        "What tax year are you filing for?",
        QuestionType.SELECT,
        "Most people file for the most recent tax year.",
        options=(("2025", "2025 (current year)"), ("2024", "2024"), ("2023", "2023")),
    ),
    Question(
        "filing_status",
        "What is your filing status?",
        QuestionType.SELECT,
        "Your filing status determines your bracket, standard deduction, and credit eligibility.",
        options=(
            (FilingStatus.SINGLE.value, "Single"),
            (FilingStatus.MARRIED_JOINT.value, "Married Filing Jointly"),
            (FilingStatus.MARRIED_SEPARATE.value, "Married Filing Separately"),
            (FilingStatus.HOH.value, "Head of Household"),
        ),
    ),
    Question("age_primary", "How old are you?", QuestionType.NUMBER,
             "Age impacts certain credits like the Earned Income Credit."),
    Question("age_spouse", "How old is your spouse?", QuestionType.NUMBER,
             "Only required if you're filing jointly.", condition=_filing_jointly),
    Question("u17_dependents", "How many dependents are under age 17?", QuestionType.NUMBER,
             "Dependents under age 17 may qualify for the Child Tax Credit."),
    Question("other_dependents", "How many other dependents?", QuestionType.NUMBER,
             "Other dependents may qualify for the $500 Credit for Other Dependents."),
    Question("w2_wages", "How much did you earn from W-2 wages?", QuestionType.NUMBER,
             "Enter the total from box 1 of all your W-2 forms."),
    Question("federal_withheld", "How much federal tax was withheld?", QuestionType.NUMBER,
             "This is usually box 2 on your W-2."),
    Question("unemployment", "Did you receive unemployment income?", QuestionType.NUMBER,
             "Enter total unemployment benefits received."),
    Question("student_loan_interest", "Did you pay student loan interest?", QuestionType.NUMBER,
             "You may be eligible for a Student Loan Interest Deduction (max $2,500)."),
    Question("self_employment_gross", "How much did you earn from self-employment?", QuestionType.NUMBER,
             "This includes gig work, side jobs, freelance, and 1099 income."),
    Question("self_employment_expenses", "How much did you spend on business expenses?", QuestionType.NUMBER,
             "Enter deductible expenses such as supplies, mileage, software, advertising, etc."),
    Question("childcare_expenses", "Did you pay for childcare?", QuestionType.NUMBER,
             "Childcare expenses may qualify you for the Child & Dependent Care Credit."),
)

QUESTIONS_BY_ID = {question.id: question for question in QUESTIONS}


def active_questions(form: dict) -> list[Question]:
    return [question for question in QUESTIONS if question.is_active(form)]


def validate_answer(question: Question, form: dict) -> str | None:
    """Return the error message for the current step, or None when it may advance"""
    if not question.required:
        return None
    value = form.get(question.id)
    if value is None or value == "" or (isinstance(value, float) and math.isnan(value)):
        return REQUIRED_MESSAGE
    return None


def apply_answer(form: dict, field: str, value) -> dict:
    """Return a new form state with one answer applied"""
    question = QUESTIONS_BY_ID.get(field)
    if question is not None and question.type == QuestionType.SELECT:
        value = str(value)

    updated = {**form, field: value}
    if field == "filing_status" and value != FilingStatus.MARRIED_JOINT.value:
        updated["age_spouse"] = None
    return updated
