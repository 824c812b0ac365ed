from __future__ import annotations

from typing import Any, Dict

SUPPORTED_LANGUAGES = ("en", "es")

# Monday first, matching date.weekday()
WEEKDAYS = {
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
    "es": ["Lunes", "Martes", "Miércoles", "Jueves", "Viernes", "Sábado", "Domingo"],
}

LOCALES: Dict[str, Dict[str, Any]] = {
    "en": {
        "chat_welcome": (
            "Hi! I'm your FitLife nutrition assistant. Ask me about your meal plan "
            "or tell me which ingredient you'd like to swap."
        ),
        "chat_error": "Sorry, something went wrong. Please try again.",
        "chat_tool_limit": (
            "Sorry, I couldn't finish updating your plan. Please try again with a simpler request."
        ),
        "chat_context_header": (
            "CONTEXT: Here is the user's current nutrition plan. "
            "Use it to answer questions and fulfill modification requests."
        ),
        "chat_question_header": "USER QUESTION",
        "warmup_label": "Warm-up",
        "generation_timeout_error": (
            "Generating your plan is taking longer than expected. Please try again in a few minutes."
        ),
        "generation_error": "We couldn't generate your plan. Please try again.",
    },
    "es": {
        "chat_welcome": (
            "¡Hola! Soy tu asistente de nutrición FitLife. Pregúntame sobre tu plan de comidas "
            "o dime qué ingrediente quieres cambiar."
        ),
        "chat_error": "Lo siento, algo salió mal. Por favor, inténtalo de nuevo.",
        "chat_tool_limit": (
            "Lo siento, no pude terminar de actualizar tu plan. "
            "Inténtalo de nuevo con una petición más sencilla."
        ),
        "chat_context_header": (
            "CONTEXTO: Este es el plan de nutrición actual del usuario. "
            "Úsalo para responder preguntas y realizar solicitudes de modificación."
        ),
        "chat_question_header": "PREGUNTA DEL USUARIO",
        "warmup_label": "Calentamiento",
        "generation_timeout_error": (
            "La generación de tu plan está tardando más de lo esperado. "
            "Inténtalo de nuevo en unos minutos."
        ),
        "generation_error": "No pudimos generar tu plan. Por favor, inténtalo de nuevo.",
    },
}


def normalise_language(language: str | None) -> str:
    lang = (language or "").strip().lower()[:2]
    return lang if lang in SUPPORTED_LANGUAGES else "en"


def t(language: str | None, key: str) -> str:
    """Look up a string, falling back to English and then to the key itself."""
    lang = normalise_language(language)
    value = LOCALES[lang].get(key)
    if value is None:
        value = LOCALES["en"].get(key, key)
    return value


def weekday_name(day_index: int, language: str | None) -> str:
    return WEEKDAYS[normalise_language(language)][day_index % 7]
