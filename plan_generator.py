from __future__ import annotations

import json
import logging
import time
from typing import Any, Callable, Dict, Optional

import openai
from openai import OpenAI
from pydantic import ValidationError

from config import MODEL_NAME, OPENAI_API_KEY
from errors import (
    GenerationEmpty,
    GenerationError,
    GenerationExhausted,
    GenerationMalformed,
    GenerationTimeout,
)
from locales import normalise_language, t
from plan_migration import assign_fresh_ids, new_id
from plan_schema import Exercise, exercise_json_schema, plan_json_schema, validate_plan

logger = logging.getLogger(__name__)

PLAN_TIMEOUT_SECONDS = 180
SUBSTITUTION_TIMEOUT_SECONDS = 60
MAX_RETRIES = 2  # 1 initial call + 2 retries
RETRY_DELAY_SECONDS = 2.0

# (prompt, json_schema, schema_name, timeout_seconds) -> response text
Transport = Callable[[str, Dict[str, Any], str, float], Optional[str]]

_client: Optional[OpenAI] = None


def get_client() -> OpenAI:
    """Create the OpenAI client on first use and cache it."""
    global _client
    if _client is None:
        _client = OpenAI(api_key=OPENAI_API_KEY)
    return _client


def request_completion(
    prompt: str,
    schema: Dict[str, Any],
    schema_name: str,
    timeout: float,
) -> Optional[str]:
    """
    One structured-output call to the model.

    The HTTP client aborts the request once `timeout` elapses, so a slow call
    is cancelled rather than left running. SDK-level retries are disabled;
    retrying is the caller's policy.
    """
    client = get_client().with_options(timeout=timeout, max_retries=0)
    try:
        completion = client.chat.completions.create(
            model=MODEL_NAME,
            messages=[{"role": "user", "content": prompt}],
            response_format={
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": schema},
            },
        )
    except openai.APITimeoutError as exc:
        raise GenerationTimeout(f"Model did not answer within {timeout:.0f}s") from exc

    if not completion.choices:
        return None
    return completion.choices[0].message.content


# ---------- prompts ----------


def _equipment_line(profile: Dict[str, Any], lang: str) -> str:
    if profile.get("workoutLocation") != "Home":
        return ""
    equipment = [e for e in (profile.get("equipment") or []) if e]
    if lang == "es":
        listed = ", ".join(equipment) if equipment else "Ninguno (solo peso corporal)"
        return (
            f"\n- Equipamiento en Casa Disponible: {listed}. "
            "El plan de entrenamiento DEBE incorporar este equipamiento si está disponible."
        )
    listed = ", ".join(equipment) if equipment else "None (bodyweight only)"
    return (
        f"\n- Available Home Equipment: {listed}. "
        "The workout plan MUST incorporate this equipment if available."
    )


def _measurements_line(profile: Dict[str, Any], lang: str) -> str:
    measurements = profile.get("measurements") or {}
    if not any(measurements.get(k) for k in ("chest", "waist", "hips")):
        return ""

    def fmt(key: str) -> str:
        value = measurements.get(key)
        return f"{value} cm" if value else "N/A"

    if lang == "es":
        return (
            f"\n- Medidas (cm): Pecho: {fmt('chest')}, Cintura: {fmt('waist')}, Cadera: {fmt('hips')}. "
            "Usa estas medidas para personalizar aún más las recomendaciones."
        )
    return (
        f"\n- Measurements (cm): Chest: {fmt('chest')}, Waist: {fmt('waist')}, Hips: {fmt('hips')}. "
        "Use these measurements to further customize recommendations."
    )


def build_plan_prompt(profile: Dict[str, Any], language: str) -> str:
    """Instruction for a 7-day nutrition + workout plan embedding every profile field."""
    lang = normalise_language(language)
    days = ", ".join(profile.get("workoutDays") or [])
    location = profile.get("workoutLocation", "")
    equipment = _equipment_line(profile, lang)
    measurements = _measurements_line(profile, lang)

    if lang == "es":
        return f"""
Crea un plan de fitness y nutrición completo y personalizado de 7 días para el siguiente usuario.
La respuesta DEBE estar en español. Cada día de entrenamiento, ejercicio y comida DEBE tener un 'id' único.

Perfil de Usuario:
- Género: {profile.get("gender", "")}
- Edad: {profile.get("age", "")}
- Peso: {profile.get("weight", "")} kg
- Altura: {profile.get("height", "")} cm{measurements}
- Nivel de Actividad: {profile.get("activityLevel", "")}
- Objetivo Principal: {profile.get("goal", "")}
- Lugar de Entrenamiento: {location}{equipment}
- Días de entrenamiento seleccionados: {days}. El plan DEBE usar estos días exactos.

Instrucciones:
1. Distribución: analiza si los días de entrenamiento son consecutivos o espaciados y elige la
   división que mejor gestione la fatiga (p. ej. L-M-X: Empuje/Tirón/Pierna; L-X-V: Cuerpo Completo).
2. Nutrición: plan de 7 días con objetivo calórico y proteico según el TDEE y la meta del usuario.
   Cada día incluye desayuno, comida, cena y dos snacks, cada uno con ingredientes, receta sencilla,
   calorías, proteínas e 'id'. Usa ingredientes de supermercados españoles como Mercadona o Aldi.
   Los días (day) se llaman "Lunes", "Martes", etc.
3. Entrenamiento: solo los días seleccionados ({days}), adaptado a {location} y al equipamiento.
   Cada día lleva 'id' y un enfoque ('Empuje', 'Tirón', 'Piernas', 'Cuerpo Completo').
   Empieza cada día con 2-3 ejercicios de estiramiento dinámico cuyo nombre termine en
   "(Calentamiento)" y con 'rest' igual a "0s". Después, 5-6 ejercicios principales con 'id',
   nombre, series (p. ej. "3-4"), repeticiones, descanso y una 'description' de la técnica.
4. Resúmenes: un breve resumen de la estrategia para nutrición y para entrenamiento.
5. Salida: un único objeto JSON que cumpla estrictamente el esquema proporcionado.
"""
    return f"""
Create a comprehensive and personalized 7-day fitness and nutrition plan for the following user.
The response MUST be in English. Every workout day, exercise and meal MUST have a unique 'id'.

User Profile:
- Gender: {profile.get("gender", "")}
- Age: {profile.get("age", "")}
- Weight: {profile.get("weight", "")} kg
- Height: {profile.get("height", "")} cm{measurements}
- Activity Level: {profile.get("activityLevel", "")}
- Main Goal: {profile.get("goal", "")}
- Workout Location: {location}{equipment}
- Selected workout days: {days}. The plan MUST use these exact days.

Instructions:
1. Schedule: look at whether the workout days are consecutive or spaced out and pick the split
   that best manages fatigue (e.g. Mon-Tue-Wed: Push/Pull/Legs; Mon-Wed-Fri: Full Body).
2. Nutrition: a 7-day meal plan with calorie and protein targets derived from the user's TDEE and
   goal. Each day has breakfast, lunch, dinner and two snacks, each with ingredients, a simple
   recipe, estimated calories and protein, and an 'id'. Use common supermarket ingredients.
   Day names (day) must be "Monday", "Tuesday", etc.
3. Workout: only the selected days ({days}), tailored to {location} and the available equipment.
   Each day has an 'id' and a focus ('Push', 'Pull', 'Legs', 'Full Body').
   Start every day with 2-3 dynamic stretching exercises whose name ends with "(Warm-up)" and
   whose 'rest' is "0s". Then list 5-6 main exercises with 'id', name, sets (e.g. "3-4"), reps,
   rest and a 'description' of correct form.
4. Summaries: a brief strategy summary for both the nutrition and the workout plan.
5. Output: a single JSON object that strictly follows the provided schema.
"""


def build_substitution_prompt(
    exercise: Dict[str, Any], workout_focus: str, equipment: str, language: str
) -> str:
    name = exercise.get("name", "")
    if normalise_language(language) == "es":
        return (
            f"Busca un ejercicio alternativo para '{name}'. El enfoque del entrenamiento es "
            f"'{workout_focus}'. El equipamiento disponible es: '{equipment}'.\n"
            "El nuevo ejercicio debe trabajar músculos similares. Mantén las mismas series, "
            "repeticiones y descanso que el original. Responde en español."
        )
    return (
        f"Find an alternative exercise for '{name}'. The workout focus is '{workout_focus}'. "
        f"Available equipment: '{equipment}'.\n"
        "The new exercise should work similar muscles. Keep the same sets, reps, and rest "
        "as the original. Respond in English."
    )


# ---------- response parsing ----------


def extract_json_object(text: Optional[str]) -> Any:
    """
    Decode the JSON object embedded in a model answer.

    Anything before the first '{' and after the last '}' (prose, markdown
    fences) is ignored.
    """
    if not text or not text.strip():
        raise GenerationEmpty("Model response was empty.")

    stripped = text.strip()
    start = stripped.find("{")
    end = stripped.rfind("}")
    if start == -1 or end <= start:
        raise GenerationMalformed("Model response did not contain a JSON object.")

    try:
        return json.loads(stripped[start:end + 1])
    except ValueError as exc:
        raise GenerationMalformed(f"Failed to parse JSON from model response: {exc}") from exc


def parse_plan_response(text: Optional[str]) -> Dict[str, Any]:
    data = extract_json_object(text)
    try:
        return validate_plan(data)
    except ValidationError as exc:
        raise GenerationMalformed(
            f"Model response does not match the plan schema ({exc.error_count()} errors)"
        ) from exc


# ---------- pipeline ----------


class PlanRequestPipeline:
    """
    Turn a user profile into a fresh plan.

    Every attempt failure (timeout, empty answer, malformed JSON, transport
    error) is retried the same way after a fixed pause. Once all attempts are
    spent the last timeout/empty/malformed error is re-raised as is; any other
    failure surfaces as GenerationExhausted.
    """

    def __init__(
        self,
        transport: Transport = request_completion,
        timeout: float = PLAN_TIMEOUT_SECONDS,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        id_factory: Callable[[], str] = new_id,
    ):
        self.transport = transport
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep
        self._id_factory = id_factory

    def generate(self, profile: Dict[str, Any], language: str) -> Dict[str, Any]:
        prompt = build_plan_prompt(profile, language)
        schema = plan_json_schema()
        total_attempts = self.max_retries + 1
        last_error: Optional[BaseException] = None

        for attempt in range(1, total_attempts + 1):
            try:
                text = self.transport(prompt, schema, "plan", self.timeout)
                plan = parse_plan_response(text)
            except (GenerationError, openai.OpenAIError, OSError) as exc:
                last_error = exc
                logger.warning("Plan generation attempt %d/%d failed: %s", attempt, total_attempts, exc)
                if attempt < total_attempts:
                    self._sleep(self.retry_delay)
                continue

            logger.info("Plan generated on attempt %d/%d", attempt, total_attempts)
            return assign_fresh_ids(plan, self._id_factory)

        logger.error("All %d plan generation attempts have failed.", total_attempts)
        if isinstance(last_error, GenerationError):
            last_error.attempts = total_attempts
            raise last_error
        raise GenerationExhausted(
            f"Plan generation failed after {total_attempts} attempts: {last_error}",
            attempts=total_attempts,
        ) from last_error


def generate_plan(profile: Dict[str, Any], language: str, **kwargs: Any) -> Dict[str, Any]:
    return PlanRequestPipeline(**kwargs).generate(profile, language)


def generation_error_message(error: BaseException, language: str) -> str:
    """One of exactly two user-facing messages: timeout, or anything else."""
    if isinstance(error, GenerationTimeout):
        return t(language, "generation_timeout_error")
    return t(language, "generation_error")


def suggest_substitute_exercise(
    exercise: Dict[str, Any],
    workout_focus: str,
    equipment: str,
    language: str,
    transport: Transport = request_completion,
    id_factory: Callable[[], str] = new_id,
) -> Dict[str, Any]:
    """
    Ask the model for an alternative to `exercise`.

    The original sets/reps/rest always win over whatever the model returns,
    and the replacement always gets a fresh id. Provider and network failures
    surface as GenerationExhausted; a timeout stays GenerationTimeout.
    """
    prompt = build_substitution_prompt(exercise, workout_focus, equipment, language)
    try:
        text = transport(prompt, exercise_json_schema(), "exercise", SUBSTITUTION_TIMEOUT_SECONDS)
    except (openai.OpenAIError, OSError) as exc:
        logger.error("Exercise substitution request failed: %s", exc)
        raise GenerationExhausted(f"Exercise substitution failed: {exc}", attempts=1) from exc
    data = extract_json_object(text)
    try:
        suggested = Exercise.model_validate(data).model_dump(mode="json", exclude_none=True)
    except ValidationError as exc:
        raise GenerationMalformed("Substitute exercise does not match the exercise schema") from exc

    suggested.update(
        {
            "id": id_factory(),
            "sets": exercise.get("sets", ""),
            "reps": exercise.get("reps", ""),
            "rest": exercise.get("rest", ""),
        }
    )
    return suggested
