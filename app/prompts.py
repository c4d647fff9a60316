import json

from app.models import EstimateRequest

LANGUAGE_NAMES = {"en": "English", "es": "Spanish"}

ESTIMATE_SYSTEM_PROMPT = (
    'You are "Tax Moguls - U.S. Federal Refund Engine," a precise IRS-accurate AI.\n'
    "You ALWAYS return ONLY JSON. Never return markdown, comments, or code blocks."
)

ESTIMATE_PROMPT_TEMPLATE = """
{system_prompt}

Return *strictly* this EXACT JSON shape:

{{
  "json_result": {{
    "estimate": {{
      "refund_low": number,
      "refund_high": number,
      "breakdown": {{
        "agi": number,
        "standard_deduction": number,
        "taxable_income": number,
        "tentative_tax": number,
        "se_tax": number,
        "credits": {{
          "ctc_nonrefundable": number,
          "ctc_refundable": number,
          "odc": number,
          "eitc": number
        }},
        "total_credits": number,
        "total_tax": number,
        "refundable_credits": number,
        "withholding": number
      }}
    }},
    "inputs": {inputs}
  }},
  "summary": "Write a 3-5 sentence paragraph in {language_name} explaining the estimate in simple terms."
}}

ONLY return JSON. Do not wrap in backticks.
INPUT: {inputs}
"""


def build_estimate_prompt(request: EstimateRequest) -> str:
    inputs = json.dumps(request.model_inputs(), separators=(",", ":"))
    return ESTIMATE_PROMPT_TEMPLATE.format(
        system_prompt=ESTIMATE_SYSTEM_PROMPT,
        inputs=inputs,
        language_name=LANGUAGE_NAMES[request.language],
    )
