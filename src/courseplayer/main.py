"""CLI entrypoint for the terminal course player."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable

from .config import Settings, get_settings
from .events import ChangeKind, ProgressChange
from .flashcards import MemoryTier, RecallDifficulty
from .models import Lesson, Module, ModuleType, QuizType, Topic
from .service import CourseService

InputFn = Callable[[str], str]
PrintFn = Callable[[str], None]
BACK_COMMANDS = {":back", ":b", "back"}
MENU_QUIT_COMMANDS = {"q"}
FLOW_EXIT_COMMANDS = {":quit", ":exit", ":q"}
MENU_BACK_COMMANDS = {"b"}
RECALL_CHOICES = {
    "1": RecallDifficulty.DONT_REMEMBER,
    "2": RecallDifficulty.HARD,
    "3": RecallDifficulty.EASY,
}


class QuitApp(Exception):
    """Signal immediate app exit from nested menu flows."""


def _service(settings: Settings) -> CourseService:
    """Create app service from settings."""
    return CourseService(
        db_path=settings.db_path,
        course_path=settings.course_path,
        reward_policy=settings.reward_policy,
    )


def run(argv: list[str] | None = None) -> int:
    """Run the CLI application."""
    parser = argparse.ArgumentParser(prog="courseplayer", description="Terminal course player")
    parser.add_argument("command", nargs="?", default="play", choices=["play"])
    _ = parser.parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    return play_shell(_service(settings))


def play_shell(service: CourseService, input_fn: InputFn = input, print_fn: PrintFn = print) -> int:
    """Run persistent menu-driven shell."""

    def on_progress(change: ProgressChange) -> None:
        if change.kind is ChangeKind.RESET:
            print_fn("Progress cleared.")
        elif change.points_earned:
            print_fn(f"+{change.points_earned} points (total {change.total_points})")

    unsubscribe = service.events.subscribe(on_progress)
    try:
        while True:
            print_fn(f"\n=== {service.course.title} ===")
            print_fn("1) Dashboard")
            print_fn("2) Learn")
            print_fn("3) Recall flashcards")
            print_fn("4) Flashcard library")
            print_fn("5) Reset progress")
            print_fn("q) Quit")
            choice = input_fn("Choose: ").strip().lower()

            if choice == "1":
                _dashboard_flow(service, print_fn)
            elif choice == "2":
                _learn_flow(service, input_fn, print_fn)
            elif choice == "3":
                _recall_flow(service, input_fn, print_fn)
            elif choice == "4":
                _library_flow(service, input_fn, print_fn)
            elif choice == "5":
                _reset_flow(service, input_fn, print_fn)
            elif choice in MENU_QUIT_COMMANDS:
                return 0
            else:
                print_fn("Invalid choice.")
    except QuitApp:
        return 0
    finally:
        unsubscribe()
        service.close()


def _dashboard_flow(service: CourseService, print_fn: PrintFn) -> None:
    """Print course completion, points, and flashcard counts."""
    summary = service.dashboard()
    print_fn("\n=== Dashboard ===")
    print_fn(
        f"Course: {summary.course.percentage}% "
        f"({summary.course.completed_modules}/{summary.course.total_modules} modules)"
    )
    print_fn(f"Points: {summary.total_points}/{summary.available_points}")
    stats = summary.flashcards
    print_fn(
        f"Flashcards: {stats.total} saved, {stats.short_term} short-term, "
        f"{stats.long_term} long-term, {stats.due_now} due now"
    )
    print_fn("\nTopics:")
    for topic in service.course.topics:
        topic_summary = service.topic_summary(topic.id)
        print_fn(
            f"- {topic.title}: {topic_summary.percentage}% "
            f"({topic_summary.completed_modules}/{topic_summary.total_modules})"
        )


def _choose_index(choice: str, count: int) -> int | None:
    """Return zero-based index for a 1-based menu choice, or None if invalid."""
    if not choice.isdigit():
        return None
    index = int(choice) - 1
    if not (0 <= index < count):
        return None
    return index


def _learn_flow(service: CourseService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Walk topic, lesson, and module menus, honouring locks."""
    topics = service.course.topics
    print_fn("\n=== Topics ===")
    for idx, topic in enumerate(topics, start=1):
        print_fn(f"{idx}) {topic.title} ({service.topic_summary(topic.id).percentage}%)")
    print_fn("b) Back")
    print_fn("q) Quit")
    choice = input_fn("Choose topic: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    if choice in MENU_QUIT_COMMANDS:
        raise QuitApp()
    index = _choose_index(choice, len(topics))
    if index is None:
        print_fn("Invalid choice.")
        return
    _lesson_menu(service, topics[index], input_fn, print_fn)


def _lesson_menu(service: CourseService, topic: Topic, input_fn: InputFn, print_fn: PrintFn) -> None:
    progress = service.get_progress()
    print_fn(f"\n=== {topic.title} ===")
    for idx, lesson in enumerate(topic.lessons, start=1):
        if progress.is_lesson_completed(topic.id, lesson.id):
            marker = "done"
        elif service.is_lesson_accessible(topic.id, lesson.id):
            marker = "open"
        else:
            marker = "locked"
        print_fn(f"{idx}) [{marker}] {lesson.title}")
    print_fn("b) Back")
    choice = input_fn("Choose lesson: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    index = _choose_index(choice, len(topic.lessons))
    if index is None:
        print_fn("Invalid choice.")
        return
    lesson = topic.lessons[index]
    if not service.is_lesson_accessible(topic.id, lesson.id):
        print_fn("Lesson is locked. Finish the previous lesson first.")
        return
    _module_menu(service, topic, lesson, input_fn, print_fn)


def _module_menu(service: CourseService, topic: Topic, lesson: Lesson, input_fn: InputFn, print_fn: PrintFn) -> None:
    progress = service.get_progress()
    print_fn(f"\n=== {lesson.title} ===")
    for idx, module in enumerate(lesson.modules, start=1):
        if progress.is_module_completed(topic.id, lesson.id, module.id):
            marker = "done"
        elif service.is_module_accessible(topic.id, lesson.id, module.id):
            marker = "open"
        else:
            marker = "locked"
        print_fn(f"{idx}) [{marker}] {module.title} ({module.type}, {module.points} pts)")
    print_fn("b) Back")
    choice = input_fn("Choose module: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    index = _choose_index(choice, len(lesson.modules))
    if index is None:
        print_fn("Invalid choice.")
        return
    module = lesson.modules[index]
    if not service.is_module_accessible(topic.id, lesson.id, module.id):
        print_fn("Module is locked. Finish the previous module first.")
        return

    if module.type is ModuleType.QUIZ:
        _run_quiz(service, topic, lesson, module, input_fn, print_fn)
    elif module.type is ModuleType.FLASHCARDS:
        _run_flashcards(service, topic, lesson, module, input_fn, print_fn)
    else:
        _run_info(service, topic, lesson, module, input_fn, print_fn)


def _run_info(
    service: CourseService, topic: Topic, lesson: Lesson, module: Module, input_fn: InputFn, print_fn: PrintFn
) -> None:
    print_fn(f"\n{module.title}")
    print_fn(module.content)
    answer = input_fn("Press enter to finish (:b to leave): ").strip().lower()
    if answer in BACK_COMMANDS or answer in FLOW_EXIT_COMMANDS:
        return
    service.complete_module(topic.id, lesson.id, module.id)
    print_fn("Module complete.")


def _run_flashcards(
    service: CourseService, topic: Topic, lesson: Lesson, module: Module, input_fn: InputFn, print_fn: PrintFn
) -> None:
    """Show each card, offer to save it, and complete the module at the end."""
    print_fn(f"\n{module.title}")
    print_fn("Type :b to leave, s to save a card for recall.")
    for card in module.cards:
        print_fn(f"\n{card.emoji} {card.front}".strip())
        answer = input_fn("Enter to flip: ").strip().lower()
        if answer in BACK_COMMANDS or answer in FLOW_EXIT_COMMANDS:
            print_fn("Leaving module.")
            return
        print_fn(f"-> {card.back}")
        answer = input_fn("Enter for next, s to save: ").strip().lower()
        if answer in BACK_COMMANDS or answer in FLOW_EXIT_COMMANDS:
            print_fn("Leaving module.")
            return
        if answer == "s":
            saved = service.save_flashcard(topic.id, lesson.id, module.id, card.id)
            print_fn("Saved." if saved else "Already saved.")
    service.complete_module(topic.id, lesson.id, module.id)
    print_fn("Module complete.")


def _run_quiz(
    service: CourseService, topic: Topic, lesson: Lesson, module: Module, input_fn: InputFn, print_fn: PrintFn
) -> None:
    """Ask each question, then score and record the attempt."""
    print_fn(f"\n{module.title} (pass mark {module.passing_score}%)")
    answers: dict[str, list[str]] = {}
    for number, question in enumerate(module.questions, start=1):
        print_fn(f"\nQ{number}. {question.question}")
        for idx, option in enumerate(question.options, start=1):
            print_fn(f"  {idx}) {option.text}")
        hint = "numbers separated by commas" if question.type is QuizType.MULTIPLE else "one number"
        raw = input_fn(f"Answer ({hint}): ").strip().lower()
        if raw in BACK_COMMANDS or raw in FLOW_EXIT_COMMANDS:
            print_fn("Quiz abandoned.")
            return
        selected: list[str] = []
        for part in raw.split(","):
            index = _choose_index(part.strip(), len(question.options))
            if index is not None:
                selected.append(question.options[index].id)
        answers[question.id] = selected
        if question.explanation:
            print_fn(f"Note: {question.explanation}")

    score, result = service.submit_quiz(topic.id, lesson.id, module.id, answers)
    status = "passed" if score >= module.passing_score else "not passed"
    print_fn(f"Score: {score}% ({status})")
    print_fn(f"Points earned: {result.points_earned} (total {result.total_points})")


def _recall_flow(service: CourseService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Run one pass over the due recall queue."""
    queue = service.flashcards.due_queue()
    print_fn("\n=== Recall ===")
    if not queue:
        print_fn("Nothing due. Save cards from a flashcards module first.")
        return
    reviewed = 0
    for card in queue:
        print_fn(f"\n{card.emoji} {card.front}".strip())
        answer = input_fn("Enter to reveal: ").strip().lower()
        if answer in BACK_COMMANDS or answer in FLOW_EXIT_COMMANDS:
            break
        print_fn(f"-> {card.back}")
        difficulty = _ask_rating(input_fn, print_fn)
        if difficulty is None:
            break
        updated = service.flashcards.record_recall(card.id, difficulty)
        reviewed += 1
        if updated is not None and updated.tier is MemoryTier.LONG_TERM:
            print_fn("Moved to long-term memory.")
    print_fn(f"\nReviewed {reviewed} card(s).")


def _ask_rating(input_fn: InputFn, print_fn: PrintFn) -> RecallDifficulty | None:
    """Prompt until a valid rating is given; None ends the session."""
    while True:
        rating = input_fn("1) Don't remember 2) Hard 3) Easy: ").strip().lower()
        if rating in BACK_COMMANDS or rating in FLOW_EXIT_COMMANDS:
            return None
        difficulty = RECALL_CHOICES.get(rating)
        if difficulty is not None:
            return difficulty
        print_fn("Invalid choice.")


def _library_flow(service: CourseService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """List saved cards and allow demoting or removing one."""
    cards = service.flashcards.list_all()
    print_fn("\n=== Flashcard Library ===")
    if not cards:
        print_fn("No saved flashcards.")
        return
    for idx, card in enumerate(cards, start=1):
        print_fn(f"{idx}) [{card.tier}] {card.front} (recalled {card.recall_count}x)")
    print_fn("b) Back")
    choice = input_fn("Choose card: ").strip().lower()
    if choice in MENU_BACK_COMMANDS:
        return
    index = _choose_index(choice, len(cards))
    if index is None:
        print_fn("Invalid choice.")
        return
    card = cards[index]
    action = input_fn("f) I forgot it  r) Remove  b) Back: ").strip().lower()
    if action == "f":
        service.flashcards.demote(card.id)
        print_fn(f"'{card.front}' is back in short-term recall.")
    elif action == "r":
        service.flashcards.remove(card.id)
        print_fn(f"Removed '{card.front}'.")
    elif action not in MENU_BACK_COMMANDS:
        print_fn("Invalid choice.")


def _reset_flow(service: CourseService, input_fn: InputFn, print_fn: PrintFn) -> None:
    """Reset course progress with explicit confirmation safeguard."""
    print_fn("WARNING: This permanently deletes all course progress and points. Saved flashcards are kept.")
    confirm = input_fn("Type YES to confirm reset: ").strip()
    if confirm != "YES":
        print_fn("Reset cancelled.")
        return
    service.reset_progress()


def main_entry() -> None:
    """Console script entrypoint."""
    raise SystemExit(run())


if __name__ == "__main__":  # pragma: no cover
    main_entry()
