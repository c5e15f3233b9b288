from lumindoc.config import MAX_PROMPT_CHARS, SUMMARY_LANGUAGE


SYSTEM_PROMPT = (
    "You are a professional document analyst who creates clear, accurate and "
    "well-structured summaries."
)

TRUNCATION_MARKER = "\n\n[... content truncated ...]"

DETAILED_SUMMARY_TEMPLATE = """Analyse the document "{file_name}" in detail and reply with JSON in exactly this format:

{{
  "overview": "A concise overview of the whole document (200 characters or fewer)",
  "keyPoints": ["Key point 1", "Key point 2", "Key point 3"],
  "sections": [
    {{
      "title": "Section title",
      "content": "Detailed summary of the section",
      "importance": "high|medium|low",
      "page": page number (PDF only, otherwise null)
    }}
  ],
  "wordCount": estimated character count,
  "pageCount": number of pages (PDF only, otherwise null),
  "topics": ["Topic 1", "Topic 2", "Topic 3"],
  "difficulty": "beginner|intermediate|advanced"
}}

Content to analyse:
{content}

Instructions:
- Answer in {language}
- Analyse thoroughly so that no important information is missed
- Split sections according to the logical structure of the document
- Judge difficulty by the complexity and specialisation of the content
- Follow the JSON format strictly and return nothing but the JSON object"""

QUICK_SUMMARY_TEMPLATE = """Summarise the following content in 3 to 5 lines. Extract only the key points and answer in {language}:

{content}"""


def truncate_content(content: str, limit: int = MAX_PROMPT_CHARS) -> str:
    if len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_MARKER


def build_detailed_summary_prompt(
    content: str,
    file_name: str,
    language: str = SUMMARY_LANGUAGE,
) -> str:
    return DETAILED_SUMMARY_TEMPLATE.format(
        file_name=file_name,
        content=truncate_content(content),
        language=language,
    )


def build_quick_summary_prompt(content: str, language: str = SUMMARY_LANGUAGE) -> str:
    return QUICK_SUMMARY_TEMPLATE.format(
        content=truncate_content(content),
        language=language,
    )


def build_messages(prompt: str) -> list[dict[str, str]]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": prompt},
    ]
