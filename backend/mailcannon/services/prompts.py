"""
Prompt templates for the generation service.

Placeholders use {name} syntax and are filled by render_prompt() in a single
pass, so user text that happens to contain "{cv}" is never re-expanded.
"""

import re

_PLACEHOLDER = re.compile(r"\{([a-z_]+)\}")


def render_prompt(template: str, **values: str) -> str:
    """Substitute {name} placeholders; unknown names are left untouched."""
    def _sub(match: re.Match) -> str:
        name = match.group(1)
        if name in values:
            return values[name]
        return match.group(0)

    return _PLACEHOLDER.sub(_sub, template)


IMPROVE_DRAFT_PROMPT = """\
You are an assistant that helps improve email messages.
Review the following draft email message and improve its grammar, tone and wording.
Keep the message in the same language it was written in. Do not add facts
that are not present in the draft.

Respond with ONLY valid JSON matching this schema:
{"improved_message": string}

DRAFT MESSAGE:
{draft_message}
"""


COVER_LETTER_PROMPT = """\
You are an assistant that writes cover letters from a CV and a job description.

Use the CV and job description to write a cover letter tailored to the position.
The letter should be professional and highlight the applicant's skills and
experience that are relevant to the job. The tone should be {tone}.

Additional instructions:
{additional_instructions}

Respond with ONLY valid JSON matching this schema:
{"cover_letter": string}

CV:
{cv}

JOB DESCRIPTION:
{job_description}
"""


PERSONALIZED_APPLICATION_PROMPT = """\
You are a career assistant writing a job application email on behalf of the
applicant whose CV is below. The email will be sent to: {recipient_email}

Step 1: identify the employer:
- Look at the domain of the recipient address (the part after "@").
- If it is a company domain (e.g. "jobs@acme-robotics.de"), infer the company
  name from it and write a letter tailored to that company and its likely field.
- If it is a free or personal mail provider (gmail, yahoo, outlook, hotmail,
  gmx, icloud, proton and similar), do NOT guess a company. Write a generic but
  warm letter that can be adapted to any employer.

Step 2: write the application:
- Use the CV to highlight the most relevant experience and skills.
- If a job description is provided, align the letter with it.
- Keep it concise: a short subject line and a body of 3 to 5 paragraphs.
- Write in the language of the job description when one is given, otherwise
  in the language of the CV.

Personal notes from the applicant (may be empty):
{personal_notes}

Weave personal notes in diplomatically. Phrase availability, salary or
relocation wishes as preferences or openness to discuss, never as demands or
conditions.

Respond with ONLY valid JSON matching this schema:
{"subject": string, "message": string}

JOB DESCRIPTION (may be empty):
{job_description}

CV:
{cv}
"""


TRANSLATE_MESSAGE_PROMPT = """\
You are an expert translator. Translate the following message from
{source_language} to {target_language}.
Make sure the tone is appropriate for a professional job application or
cover letter. Translate only; do not add or remove content.

Respond with ONLY valid JSON matching this schema:
{"translated_message": string}

MESSAGE:
{message}
"""


CONNECTION_CHECK_PROMPT = 'Hello! Just reply with "Connection successful!".'
