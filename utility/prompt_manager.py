from typing import Dict, List, Optional


class PromptManager:
    """
    Stateless builder for the chat-completion messages sent to the provider.
    Every request gets a fresh message list; nothing is kept between calls.
    """

    TRANSLATOR_SYSTEM_PROMPT = "You are a helpful translator."
    PARTNER_SYSTEM_PROMPT = "You are a friendly language partner."

    # Short codes clients commonly send instead of a language name
    LANG_MAP = {
        "en": "English",
        "es": "Spanish",
        "fr": "French",
        "de": "German",
        "it": "Italian",
        "pt": "Portuguese",
        "zh": "Chinese",
        "ja": "Japanese",
        "ko": "Korean",
    }

    # --------------------------------------------------
    # Static helpers
    # --------------------------------------------------
    @classmethod
    def language_name(cls, language: str) -> str:
        """'es' → 'Spanish'; anything that is not a known code passes through unchanged."""
        language = language.strip()
        return cls.LANG_MAP.get(language.lower(), language)

    # --------------------------------------------------
    # Prompt construction
    # --------------------------------------------------
    @classmethod
    def build_translate_messages(cls, text: str, target_language: str) -> List[Dict[str, str]]:
        prompt = (
            f"Translate the following text to {cls.language_name(target_language)} "
            f"and return only the translation:\n\n{text}"
        )
        return [
            {"role": "system", "content": cls.TRANSLATOR_SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]

    @classmethod
    def build_partner_system_prompt(cls, language: Optional[str] = None) -> str:
        if language and language.strip():
            return f"{cls.PARTNER_SYSTEM_PROMPT} Respond in {cls.language_name(language)}."
        return cls.PARTNER_SYSTEM_PROMPT

    @classmethod
    def build_chat_messages(cls, message: str, language: Optional[str] = None) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": cls.build_partner_system_prompt(language)},
            {"role": "user", "content": message},
        ]
