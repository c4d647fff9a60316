import locale

from app.client.form import TaxFormData


def detect_language(locale_name: str | None = None) -> str:
    """Spanish for any es* locale, English otherwise; falls back to the process locale"""
    if locale_name is None:
        locale_name = locale.getlocale()[0] or ""
    return "es" if locale_name.lower().startswith("es") else "en"


def self_employment_net(form: TaxFormData) -> float:
    if form.self_employment_gross is None and form.self_employment_expenses is None:
        return max(0.0, form.self_employment_net or 0.0)
    return max(0.0, (form.self_employment_gross or 0.0) - (form.self_employment_expenses or 0.0))


def map_to_payload(form: TaxFormData | dict, locale_name: str | None = None) -> dict:
    """Reduce the form state to the minimal POST /estimate payload

    The language always comes from the caller's locale, never from the form.
    """
    if isinstance(form, dict):
        form = TaxFormData.model_validate(form)

    net = self_employment_net(form)
    withholding = form.federal_withholding
    if withholding is None:
        withholding = form.federal_withheld

    return {
        "tax_year": form.tax_year,
        "filing_status": form.filing_status,
        "w2_wages": form.w2_wages or 0,
        "unemployment": form.unemployment or 0,
        "student_loan_interest": form.student_loan_interest or 0,
        "dependents": (form.u17_dependents or 0) + (form.other_dependents or 0),
        "self_employment_net": net,
        "self_employed": net > 0,
        "federal_withholding": withholding or 0,
        "language": detect_language(locale_name),
    }
