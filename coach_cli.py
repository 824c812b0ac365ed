from __future__ import annotations

import json
import logging
import sys
from datetime import date
from pathlib import Path

import backend_client
from config import DEFAULT_LANGUAGE, setup_logging
from errors import GenerationError, WorkoutSessionError
from locales import normalise_language
from nutrition_chat import NutritionChat
from plan_generator import generate_plan, generation_error_message
from plan_store import PlanStore
from progress import meal_totals_for_date, weigh_in_status
from workout_history import summarise_workout_history
from workout_session import WorkoutSessionManager, is_warmup, prescribed_set_count, todays_workout

logger = logging.getLogger(__name__)

HELP = """Commands:
  onboard <profile.json>   save a profile and generate a new plan
  chat                     talk to the nutrition assistant (:back to leave)
  today                    show today's workout and meal progress
  start                    start today's workout
  log <exercise_id> <set> <weight> <reps>
  sub <exercise_id>        swap an exercise for an alternative
  finish <easy|ideal|hard> finish the active workout
  cancel                   discard the active workout
  meal <meal_id>           toggle a meal as eaten today
  weigh <kg>               add a progress entry
  history                  summarise finished workouts
  pull                     replace local state with the sync backend's
  lang <en|es>             switch language
  quit
"""


def onboard(store: PlanStore, profile_path: str, language: str) -> None:
    with Path(profile_path).open("r", encoding="utf-8") as handle:
        profile = json.load(handle)

    store.reset()
    store.save_profile(profile)
    print("Generating your plan, this can take a few minutes...")
    try:
        plan = generate_plan(profile, language)
    except GenerationError as exc:
        logger.error("Plan generation failed: %s", exc)
        print(generation_error_message(exc, language))
        return

    store.save_plan(plan)
    days = len(plan["workoutPlan"]["schedule"])
    print(f"[OK] New plan saved ({days} workout days).")


def chat_loop(chat: NutritionChat) -> None:
    for turn in chat.transcript:
        label = "You" if turn["role"] == "user" else "FitLife AI"
        print(f"{label}: {turn['text']}\n")

    while True:
        user_msg = input("You (:back): ").strip()
        if not user_msg:
            continue
        if user_msg.lower() == ":back":
            print("\nReturning to main menu.\n")
            break
        reply = chat.send_user_message(user_msg)
        print(f"\nFitLife AI: {reply}\n")


def show_today(store: PlanStore, manager: WorkoutSessionManager, language: str) -> None:
    workout = manager.current_workout() or todays_workout(store.plan, language)
    if workout is None:
        print("No workout scheduled for today.")
    else:
        logs = (manager.active or {}).get("exerciseLogs", {})
        print(f"{workout.get('day')} - {workout.get('focus')} ({workout.get('duration')})")
        for exercise in workout.get("exercises") or []:
            done = sum(1 for s in logs.get(exercise["id"], []) if s.get("completed"))
            target = prescribed_set_count(exercise, language)
            marker = "*" if is_warmup(exercise, language) else " "
            print(f" {marker} [{done}/{target}] {exercise['name']}  {exercise['sets']} x {exercise['reps']}  ({exercise['id']})")
        if manager.active is not None and manager.is_complete():
            print("Workout complete! Finish it with: finish <easy|ideal|hard>")

    totals = meal_totals_for_date(store.plan, store.completed_meals, date.today(), language)
    print(
        f"Meals eaten: {totals['meals_eaten']}/{totals['meals_total']}, "
        f"{totals['calories_eaten']}/{totals['calories_target']} kcal, "
        f"{totals['protein_eaten']}/{totals['protein_target']} g protein"
    )
    status = weigh_in_status(store.progress_entries)
    if status["due"]:
        print("Time for a new weigh-in (weigh <kg>).")


def handle(command: str, args: list[str], store: PlanStore, chat: NutritionChat,
           manager: WorkoutSessionManager) -> None:
    language = chat.language

    if command == "onboard" and args:
        onboard(store, args[0], language)
    elif command == "chat":
        chat_loop(chat)
    elif command == "today":
        show_today(store, manager, language)
    elif command == "start":
        workout = todays_workout(store.plan, language)
        if workout is None:
            print("No workout scheduled for today.")
            return
        session = manager.start(workout)
        print(f"Started {session['workoutName']}.")
    elif command == "log" and len(args) == 4:
        manager.log_set(args[0], int(args[1]) - 1, float(args[2]), int(args[3]))
        print("Set logged.")
    elif command == "sub" and args:
        replacement = manager.substitute_exercise(args[0])
        print(f"Replaced with {replacement['name']} ({replacement['id']}).")
    elif command == "finish" and args:
        manager.finish(args[0])
        print("Workout saved to history.")
    elif command == "cancel":
        manager.cancel()
        print("Workout discarded.")
    elif command == "meal" and args:
        eaten = store.toggle_meal_completion(date.today().isoformat(), args[0])
        print("Marked as eaten." if eaten else "Marked as not eaten.")
    elif command == "weigh" and args:
        entry = store.add_progress_entry(weight=float(args[0]))
        print(f"Progress entry saved for {entry['date'][:10]}.")
    elif command == "history":
        print(json.dumps(summarise_workout_history(store.workout_history, store.plan), indent=2))
    elif command == "pull":
        namespaces = backend_client.fetch_state()
        if namespaces is None:
            print("[!] Backend not configured or unreachable.")
            return
        restored = store.restore(namespaces)
        print(f"[OK] Restored {', '.join(restored) or 'nothing'} from backend.")
    elif command == "lang" and args:
        chat.set_language(args[0])
        manager.language = chat.language
        print(f"Language: {chat.language}")
    else:
        print(HELP)


def main(argv: list[str] | None = None) -> None:
    setup_logging()
    args = sys.argv[1:] if argv is None else argv
    store = PlanStore.from_env(data_dir=args[0] if args else None)
    language = normalise_language(DEFAULT_LANGUAGE)
    chat = NutritionChat(store, language=language)
    manager = WorkoutSessionManager(store, language=language)

    if store.plan is None:
        print("No plan yet. Start with: onboard <profile.json>\n")
    print(HELP)

    while True:
        raw = input("> ").strip()
        if not raw:
            continue
        command, *rest = raw.split()
        command = command.lower()
        if command in {"quit", "q", "exit"}:
            print("Exiting. Bye!\n")
            break
        try:
            handle(command, rest, store, chat, manager)
        except WorkoutSessionError as exc:
            print(f"[!] {exc}")
        except GenerationError as exc:
            logger.error("Generation failed: %s", exc)
            print(generation_error_message(exc, chat.language))
        except OSError as exc:
            print(f"[!] {exc}")
        except ValueError as exc:
            print(f"[!] Invalid input: {exc}")


if __name__ == "__main__":
    main()
