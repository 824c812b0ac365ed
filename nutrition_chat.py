"""
Nutrition assistant chat that can edit the live meal plan.

Each user message is sent together with a JSON snapshot of the current
nutrition plan. When the model answers with an `updateMealIngredient` tool
call, the edit is applied to the stored plan and the outcome is sent back as
a tool result, until the model replies with plain text.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

import openai

from config import DEFAULT_LANGUAGE, MODEL_NAME
from errors import ChatError, ToolLoopExceeded, TransportError
from locales import normalise_language, t
from plan_generator import get_client
from plan_mutator import update_meal_ingredient
from plan_store import PlanStore

logger = logging.getLogger(__name__)

MAX_TOOL_ROUNDS = 10
UPDATE_MEAL_INGREDIENT = "updateMealIngredient"

SYSTEM_PROMPTS = {
    "en": """You are FitLife AI, an expert nutrition assistant. Your goal is to help users adjust their meal plan.
- Every user message includes their current nutrition plan as CONTEXT. ALWAYS use this context to identify meals and ingredients.
- If the user wants to change an ingredient, first find it in the CONTEXT.
- Then suggest 1-2 alternatives that are nutritionally similar (calories and protein) and briefly explain why.
- ASK the user whether to proceed. DO NOT use the tool without explicit confirmation.
- Once the user confirms, call `updateMealIngredient` with the exact day, meal name and ingredient from the CONTEXT.
- Be conversational and friendly. Tell the user when an update succeeded. Always answer in English.""",
    "es": """Eres FitLife AI, un asistente de nutrición experto. Tu objetivo es ayudar a los usuarios a ajustar su plan de comidas.
- Cada mensaje del usuario incluye su plan de nutrición actual como CONTEXTO. Usa SIEMPRE este contexto para identificar comidas e ingredientes.
- Si el usuario quiere cambiar un ingrediente, primero encuéntralo en el CONTEXTO.
- Después sugiere 1-2 alternativas nutricionalmente similares (calorías y proteínas) y explica brevemente por qué.
- PREGUNTA al usuario si quiere continuar. NO uses la herramienta sin confirmación explícita.
- Cuando el usuario confirme, llama a `updateMealIngredient` con el día, el nombre de la comida y el ingrediente exactos del CONTEXTO.
- Responde de forma cercana y amable. Informa al usuario cuando la actualización se haya realizado. Responde siempre en español.""",
}

UPDATE_MEAL_INGREDIENT_TOOL = {
    "type": "function",
    "function": {
        "name": UPDATE_MEAL_INGREDIENT,
        "description": (
            "Updates a meal in the user's nutrition plan by replacing one ingredient with another. "
            "Can also update the meal's name."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "day": {
                    "type": "string",
                    "description": "Day of the week of the meal, e.g. 'Lunes', 'Tuesday'. Must match a day in the plan.",
                },
                "mealName": {
                    "type": "string",
                    "description": "The current name of the meal to update, e.g. 'Chicken Salad'.",
                },
                "oldIngredient": {
                    "type": "string",
                    "description": "The ingredient to replace, as written in the meal's ingredient list.",
                },
                "newIngredient": {
                    "type": "string",
                    "description": "The ingredient that takes its place.",
                },
                "newMealName": {
                    "type": "string",
                    "description": "Optional new name for the meal after the change.",
                },
            },
            "required": ["day", "mealName", "oldIngredient", "newIngredient"],
        },
    },
}


# ---------- transport ----------


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: Any


@dataclass
class ChatReply:
    text: str = ""
    tool_calls: List[ToolCall] = field(default_factory=list)


# (messages, tools) -> reply
ChatTransport = Callable[[List[Dict[str, Any]], List[Dict[str, Any]]], ChatReply]


def openai_chat_transport(messages: List[Dict[str, Any]], tools: List[Dict[str, Any]]) -> ChatReply:
    try:
        completion = get_client().chat.completions.create(
            model=MODEL_NAME,
            messages=messages,
            tools=tools,
            parallel_tool_calls=False,
        )
    except openai.OpenAIError as exc:
        raise TransportError(str(exc)) from exc

    if not completion.choices:
        raise TransportError("Chat completion returned no choices")

    message = completion.choices[0].message
    calls = []
    for tool_call in message.tool_calls or []:
        function = getattr(tool_call, "function", None)
        if function is None:
            continue
        calls.append(ToolCall(id=tool_call.id, name=function.name, arguments=function.arguments))
    return ChatReply(text=message.content or "", tool_calls=calls)


# ---------- tool commands ----------


@dataclass(frozen=True)
class UpdateMealIngredient:
    day: str
    meal_name: str
    old_ingredient: str
    new_ingredient: str
    new_meal_name: Optional[str] = None


@dataclass(frozen=True)
class MalformedToolCall:
    name: str
    reason: str


@dataclass(frozen=True)
class UnknownTool:
    name: str


ToolCommand = Union[UpdateMealIngredient, MalformedToolCall, UnknownTool]


def parse_tool_call(name: str, arguments: Any) -> ToolCommand:
    """Turn a raw tool call (name + JSON arguments) into a typed command."""
    if name != UPDATE_MEAL_INGREDIENT:
        return UnknownTool(name=name)

    args = arguments
    if isinstance(args, str):
        try:
            args = json.loads(args or "{}")
        except ValueError as exc:
            return MalformedToolCall(name=name, reason=f"arguments are not valid JSON ({exc})")
    if not isinstance(args, dict):
        return MalformedToolCall(name=name, reason="arguments must be an object")

    missing = [
        key for key in ("day", "mealName", "oldIngredient", "newIngredient")
        if not isinstance(args.get(key), str) or not args.get(key)
    ]
    if missing:
        return MalformedToolCall(name=name, reason=f"missing arguments: {', '.join(missing)}")

    new_meal_name = args.get("newMealName")
    return UpdateMealIngredient(
        day=args["day"],
        meal_name=args["mealName"],
        old_ingredient=args["oldIngredient"],
        new_ingredient=args["newIngredient"],
        new_meal_name=new_meal_name if isinstance(new_meal_name, str) and new_meal_name else None,
    )


# ---------- agent ----------


@dataclass
class ChatSession:
    language: str
    transcript: List[Dict[str, str]] = field(default_factory=list)
    messages: List[Dict[str, Any]] = field(default_factory=list)


class NutritionChat:
    """
    Chat sessions (one per language) scoped to the store's current plan.

    The model is told to ask for confirmation before editing; this class does
    not second-guess it and runs whatever tool call comes back.
    """

    def __init__(
        self,
        store: PlanStore,
        language: str = DEFAULT_LANGUAGE,
        transport: ChatTransport = openai_chat_transport,
        max_tool_rounds: int = MAX_TOOL_ROUNDS,
    ):
        self.store = store
        self.transport = transport
        self.max_tool_rounds = max_tool_rounds
        self.language = normalise_language(language)
        self._sessions: Dict[str, ChatSession] = {}

    def _session(self) -> ChatSession:
        session = self._sessions.get(self.language)
        if session is None:
            session = ChatSession(
                language=self.language,
                messages=[{"role": "system", "content": SYSTEM_PROMPTS[self.language]}],
            )
            self._sessions[self.language] = session
        if not session.transcript:
            session.transcript.append({"role": "model", "text": t(self.language, "chat_welcome")})
        return session

    def set_language(self, language: str) -> None:
        self.language = normalise_language(language)

    @property
    def transcript(self) -> List[Dict[str, str]]:
        return self._session().transcript

    def build_outbound_message(self, text: str) -> str:
        plan = self.store.plan or {}
        nutrition_plan = plan.get("nutritionPlan") or {}
        return (
            f"{t(self.language, 'chat_context_header')}\n"
            f"```json\n{json.dumps(nutrition_plan, indent=2, ensure_ascii=False)}\n```\n\n"
            f"{t(self.language, 'chat_question_header')}: {text}"
        )

    def send_user_message(self, text: str) -> str:
        """
        Run one chat round and return the model turn appended to the transcript.

        A transport failure or a runaway tool loop ends the round with a single
        failure turn; earlier turns are never removed.
        """
        session = self._session()
        session.transcript.append({"role": "user", "text": text})
        checkpoint = len(session.messages)
        session.messages.append({"role": "user", "content": self.build_outbound_message(text)})

        try:
            reply_text = self._run_tool_loop(session)
        except ToolLoopExceeded as exc:
            logger.error("Chat round aborted: %s", exc)
            reply_text = t(self.language, "chat_tool_limit")
            del session.messages[checkpoint:]
        except ChatError as exc:
            logger.error("Chat error: %s", exc)
            reply_text = t(self.language, "chat_error")
            del session.messages[checkpoint:]
        else:
            session.messages.append({"role": "assistant", "content": reply_text})

        session.transcript.append({"role": "model", "text": reply_text})
        return reply_text

    def _run_tool_loop(self, session: ChatSession) -> str:
        tools = [UPDATE_MEAL_INGREDIENT_TOOL]
        reply = self.transport(session.messages, tools)
        rounds = 0

        while reply.tool_calls:
            rounds += 1
            if rounds > self.max_tool_rounds:
                raise ToolLoopExceeded(f"More than {self.max_tool_rounds} tool calls in one round")

            call = reply.tool_calls[0]
            session.messages.append(
                {
                    "role": "assistant",
                    "content": reply.text or None,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {
                                "name": call.name,
                                "arguments": call.arguments
                                if isinstance(call.arguments, str)
                                else json.dumps(call.arguments),
                            },
                        }
                    ],
                }
            )
            result = self.execute(parse_tool_call(call.name, call.arguments))
            session.messages.append(
                {"role": "tool", "tool_call_id": call.id, "content": json.dumps(result)}
            )
            reply = self.transport(session.messages, tools)

        return reply.text

    def execute(self, command: ToolCommand) -> Dict[str, str]:
        """Run a tool command against the store and describe the outcome for the model."""
        if isinstance(command, UpdateMealIngredient):
            plan = self.store.plan
            if plan is None:
                return {"status": "Failed", "message": "There is no plan to update."}
            new_plan, success = update_meal_ingredient(
                plan,
                command.day,
                command.meal_name,
                command.old_ingredient,
                command.new_ingredient,
                command.new_meal_name,
            )
            if not success:
                return {"status": "Failed", "message": "Could not find the specified meal or ingredient."}
            self.store.save_plan(new_plan)
            return {"status": "OK", "message": "Meal updated successfully."}

        if isinstance(command, MalformedToolCall):
            return {"status": "Failed", "message": f"Invalid call to {command.name}: {command.reason}"}

        if isinstance(command, UnknownTool):
            logger.warning("Model requested unknown tool '%s'", command.name)
            return {"status": "Error", "message": f"Unknown function call: {command.name}"}

        raise TypeError(f"Unhandled tool command: {command!r}")
