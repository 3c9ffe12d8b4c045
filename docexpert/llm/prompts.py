"""Prompt template library for AI extraction requests.

Responsibilities:
- Centralize the PDF-chunk extraction instruction.
- Render translation directives appended when translation is requested.
"""

from __future__ import annotations

from ..models.datatypes import TranslationConfig

PAGE_SEPARATOR = "---PAGEBREAK---"
EMPTY_PAGE_MARKER = "[صفحة صورة أو فارغة]"


class PromptLibrary:
    """Build prompt strings for supported extraction tasks."""

    def pdf_extraction_prompt(self, translation: TranslationConfig | None = None) -> str:
        """Return the extraction instruction for one PDF chunk."""

        prompt = (
            "Extract text from this PDF chunk with high accuracy.\n"
            "Target languages: **Arabic & Kurdish**.\n"
            "Strictly maintain the original structure using Markdown (headings, lists, tables).\n"
            "\n"
            "**Critical Instructions:**\n"
            "1. **Connected scripts:** Write words correctly connected. DO NOT add extra spaces "
            'within words (e.g., write "ناوەڕاست" not "ن ا و ە ڕ ا س ت"). '
            "Preserve characters like (ێ، ۆ، ڵ، ە، ڕ).\n"
            "2. **Format:** Use RTL direction for right-to-left text. Represent headers with #.\n"
            "3. **Empty pages:** If a page is empty or image-only without text, write: "
            f"`{EMPTY_PAGE_MARKER}`.\n"
            "4. **Output:** Return ONLY the Markdown text. No introductions.\n"
        )
        if translation is not None:
            prompt += self.translation_directives(translation)
        else:
            prompt += "5. **Output:** Return only the extracted Markdown. No comments.\n"
        prompt += f"6. **Separator:** End each page content with `{PAGE_SEPARATOR}`.\n"
        return prompt

    def translation_directives(self, translation: TranslationConfig) -> str:
        """Return the translation block appended to extraction prompts."""

        source = "Auto-detect" if translation.auto_detect_source else translation.source_language
        return (
            f"5. **Translation:** Translate the extracted text to {translation.target_language}.\n"
            f"   - Source: {source}.\n"
            "   - Output ONLY the translated Markdown.\n"
        )
