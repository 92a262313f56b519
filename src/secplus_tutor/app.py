"""Interactive CLI application."""
import sys
from datetime import datetime
from pathlib import Path

from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.prompt import Prompt

from secplus_tutor.catalogue import (
    DOMAINS, Catalogue, load_acronyms, load_question_bank, merge_banks, merge_catalogues,
)
from secplus_tutor.config import Settings, get_settings
from secplus_tutor.dashboard import (
    calc_readiness_score, get_readiness_label, get_readiness_color,
    get_domain_mastery, get_mastery_counts, get_study_stats,
)
from secplus_tutor.db import init_db
from secplus_tutor.exam import (
    EXAM_PRESETS, ExamTimeUp, finish_exam, is_time_up, start_exam, submit_answer, time_remaining,
)
from secplus_tutor.importer import import_file
from secplus_tutor.models import (
    DOMAIN_NAMES, ExamAnswer, ExamQuestion, ExamResult, MultiChoiceQuestion, OrderQuestion,
    QuestionBank, SingleChoiceQuestion, ZoneQuestion,
)
from secplus_tutor.progress import (
    get_exam_sessions, get_question_history, get_user_progress, record_question_results,
    record_test_answer, record_training_swipe, save_exam_session, save_study_session,
)
from secplus_tutor.questions import DrillQuestion, QuestionKind, build_test_questions, check_answer
from secplus_tutor.results import DrillTally, summarize_training
from secplus_tutor.review import get_weak_acronyms, get_weak_domains, group_missed_questions
from secplus_tutor.selection import TRAINING_MODES, build_training_deck, filter_acronyms, select_hard_mode

console = Console()

EXIT_WORDS = ("q", "menu")


class SessionExitRequested(Exception):
    """Raised when the learner types q or menu inside a session."""


def session_prompt(prompt: str, choices=None, **kwargs) -> str:
    if choices is not None:
        choices = list(choices) + [w for w in EXIT_WORDS if w not in choices]
    value = Prompt.ask(prompt, choices=choices, **kwargs)
    if value.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return value


def session_int_prompt(prompt: str, choices=None, **kwargs) -> int:
    return int(session_prompt(prompt, choices=choices, **kwargs))


def configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format="<level>{message}</level>")


def format_clock(seconds: int) -> str:
    minutes, secs = divmod(max(0, seconds), 60)
    return f"{minutes:02d}:{secs:02d}"


def show_welcome():
    console.print(Panel(
        "[bold]CompTIA Security+ (SY0-701)[/bold]\n[dim]Acronym and Exam Prep Tool[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("train", "Swipe through acronym cards"),
        ("test", "Acronym test"),
        ("hard", "Hard mode: your weakest and most confusable acronyms"),
        ("exam", "Timed practice exam"),
        ("dashboard", "Readiness score + mastery"),
        ("review", "Weak areas and missed exam questions"),
        ("import", "Add acronyms or exam questions"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")
    console.print("[dim]Inside a session, type q or menu to stop early.[/dim]")


# --- Training ---


def run_training_session(db_path: str, user_id: str, deck: list, swipes: dict[str, str]) -> None:
    """Show each card and record the learner's swipe into swipes as it happens."""
    if not deck:
        console.print("[yellow]No acronyms to train on![/yellow]")
        return
    console.print(f"\n[bold]Training[/bold] - {len(deck)} cards\n")
    for i, entry in enumerate(deck, 1):
        console.print(Panel(f"[bold]{entry.id}[/bold]", title=f"Card {i}/{len(deck)}", border_style="cyan"))
        session_prompt("[dim]Press Enter to reveal[/dim]", default="", show_default=False)
        lines = [f"[bold]{entry.full_name}[/bold]"]
        if entry.mnemonic:
            lines.append(f"[dim]Mnemonic:[/dim] {entry.mnemonic}")
        if entry.exam_tip:
            lines.append(f"[dim]Exam tip:[/dim] {entry.exam_tip}")
        console.print(Panel("\n".join(lines), border_style="green"))
        known = session_prompt("Did you know it? (y = right swipe, n = left swipe)", choices=["y", "n"])
        direction = "right" if known == "y" else "left"
        record_training_swipe(db_path, user_id, entry.id, direction)
        swipes[entry.id] = direction
        console.print()


def cmd_train(db_path: str, settings: Settings, catalogue: Catalogue):
    console.print("\n[bold]Acronym Training[/bold]")
    mode = Prompt.ask("Training mode", choices=list(TRAINING_MODES), default="reinforcement")
    progress = get_user_progress(db_path, settings.user_id)
    deck = build_training_deck(mode, catalogue.acronyms, progress, settings.training_deck_size)
    swipes: dict[str, str] = {}
    started = datetime.now()
    try:
        run_training_session(db_path, settings.user_id, deck, swipes)
    except SessionExitRequested:
        console.print("[dim]Training stopped early.[/dim]")
    if not swipes:
        return
    attempted = [a for a in deck if a.id in swipes]
    session = summarize_training(mode, attempted, swipes, started, datetime.now())
    save_study_session(db_path, settings.user_id, session)
    console.print(
        f"[bold]Knew {session.correct_answers}/{session.total_questions} "
        f"({session.score:.0f}%)[/bold]\n"
    )


# --- Acronym tests ---


def ask_drill_question(q: DrillQuestion):
    """Prompt for one acronym test question and return the raw response."""
    kind = q.kind
    if kind == QuestionKind.FILL_BLANK:
        console.print(f"Type the acronym for: [bold]{q.acronym.full_name}[/bold]")
        return session_prompt("Acronym")

    if kind == QuestionKind.TRUE_FALSE:
        console.print(f"True or false: [bold]{q.options[0]}[/bold]")
        answer = session_prompt("Answer", choices=["t", "f"])
        return "true" if answer == "t" else "false"

    if kind == QuestionKind.MATCH_PAIRS:
        lefts = [left for left, _ in q.pair_items]
        rights = sorted(right for _, right in q.pair_items)
        console.print("Match each acronym to its meaning:")
        for i, right in enumerate(rights, 1):
            console.print(f"  [cyan]{i})[/cyan] {right}")
        choices = [str(i) for i in range(1, len(rights) + 1)]
        return {left: rights[session_int_prompt(f"  {left}", choices=choices) - 1] for left in lefts}

    if kind == QuestionKind.SCENARIO:
        console.print(f"Scenario: {q.scenario_text or q.acronym.full_name}")
        console.print("Which acronym fits best?")
    elif kind == QuestionKind.FULL_NAME:
        console.print(f"What does [bold]{q.acronym.id}[/bold] stand for?")
    else:
        console.print(f"Which acronym means [bold]{q.acronym.full_name}[/bold]?")
    for i, option in enumerate(q.options, 1):
        console.print(f"  [cyan]{i})[/cyan] {option}")
    choice = session_int_prompt("\nYour answer", choices=[str(i) for i in range(1, len(q.options) + 1)])
    return q.options[choice - 1]


def run_test_session(db_path: str, user_id: str, questions: list[DrillQuestion], tally: DrillTally) -> None:
    if not questions:
        console.print("[yellow]No questions available![/yellow]")
        return
    console.print(f"\n[bold]Test[/bold] - {len(questions)} questions\n")
    for i, q in enumerate(questions, 1):
        console.print(f"[bold]Q{i}.[/bold] ", end="")
        response = ask_drill_question(q)
        correct = check_answer(q, response)
        record_test_answer(db_path, user_id, q.acronym.id, correct)
        tally.record(q.acronym, correct)
        if correct:
            console.print("[green]Correct![/green]")
        else:
            console.print(f"[red]Incorrect.[/red] {q.acronym.id} = [green]{q.acronym.full_name}[/green]")
        if q.acronym.exam_tip:
            console.print(f"[dim]{q.acronym.exam_tip}[/dim]")
        console.print()


def finish_test(db_path: str, user_id: str, mode: str, tally: DrillTally, started: datetime) -> None:
    if tally.answered == 0:
        return
    session = tally.to_session(mode, tally.answered, started, datetime.now())
    save_study_session(db_path, user_id, session)
    console.print(f"[bold]Score: {tally.correct}/{tally.answered} ({session.score:.0f}%)[/bold]\n")


def cmd_test(db_path: str, settings: Settings, catalogue: Catalogue):
    console.print("\n[bold]Acronym Test[/bold]")
    for d in DOMAINS:
        console.print(f"  [cyan]{d}[/cyan]) {DOMAIN_NAMES[d]}")
    domain = Prompt.ask("Domain", choices=["all"] + [str(d) for d in DOMAINS], default="all")
    pool = filter_acronyms(catalogue.acronyms, domain=None if domain == "all" else int(domain))
    questions = build_test_questions(
        pool, settings.test_length, "normal", catalogue.acronyms,
        distractor_count=settings.distractor_count,
    )
    tally = DrillTally()
    started = datetime.now()
    try:
        run_test_session(db_path, settings.user_id, questions, tally)
    except SessionExitRequested:
        console.print("[dim]Test stopped early.[/dim]")
    finish_test(db_path, settings.user_id, "normal", tally, started)


def cmd_hard(db_path: str, settings: Settings, catalogue: Catalogue):
    console.print("\n[bold]Hard Mode[/bold]")
    progress = get_user_progress(db_path, settings.user_id)
    pool = select_hard_mode(catalogue.acronyms, progress, settings.hard_mode_count)
    questions = build_test_questions(
        pool, len(pool), "hard", catalogue.acronyms, distractor_count=settings.distractor_count,
    )
    tally = DrillTally()
    started = datetime.now()
    try:
        run_test_session(db_path, settings.user_id, questions, tally)
    except SessionExitRequested:
        console.print("[dim]Test stopped early.[/dim]")
    finish_test(db_path, settings.user_id, "hard", tally, started)


# --- Practice exam ---


def parse_multi_select(raw: str, q: MultiChoiceQuestion) -> list[str]:
    """Map comma separated picks onto the question's option ids, ignoring case."""
    by_key = {o.id.casefold(): o.id for o in q.options}
    picks = {part.strip() for part in raw.split(",") if part.strip()}
    return sorted({by_key.get(p.casefold(), p) for p in picks})


def ask_exam_question(q: ExamQuestion):
    """Prompt for one exam question and return an answer in the shape scoring expects."""
    console.print(f"{q.stem}\n")
    if isinstance(q, SingleChoiceQuestion):
        for o in q.options:
            console.print(f"  [cyan]{o.id})[/cyan] {o.text}")
        return session_prompt("\nYour answer", choices=[o.id for o in q.options])

    if isinstance(q, MultiChoiceQuestion):
        for o in q.options:
            console.print(f"  [cyan]{o.id})[/cyan] {o.text}")
        raw = session_prompt("\nSelect all that apply (comma separated)")
        return parse_multi_select(raw, q)

    if isinstance(q, OrderQuestion):
        for item in sorted(q.items, key=lambda i: i.text):
            console.print(f"  [cyan]{item.id}[/cyan] {item.text}")
        raw = session_prompt("\nOrder (comma separated ids)")
        return [part.strip() for part in raw.split(",") if part.strip()]

    if isinstance(q, ZoneQuestion):
        for z in q.zones:
            console.print(f"  [cyan]{z.id}[/cyan] {z.label}")
        zone_ids = [z.id for z in q.zones]
        return {item.id: session_prompt(f"  {item.text}", choices=zone_ids) for item in q.items}

    raise TypeError(f"Unsupported question type: {type(q).__name__}")


def show_exam_result(result: ExamResult, time_used_seconds: int):
    color = "green" if result.passed else "red"
    verdict = "PASS" if result.passed else "FAIL"
    console.print(Panel(
        f"[bold]{result.percentage:.1f}%[/bold] "
        f"({result.total_points_earned:g}/{result.total_points_possible:g} points) "
        f"[{color}]{verdict}[/{color}]\nTime used: {format_clock(time_used_seconds)}",
        title="Exam Result", border_style=color,
    ))
    table = Table(title="Domain Breakdown")
    table.add_column("Domain", style="cyan")
    table.add_column("Points", justify="right")
    table.add_column("Score", justify="right")
    for ds in result.reportable_domains():
        sc_color = get_readiness_color(ds.percentage)
        table.add_row(
            f"{ds.domain}. {DOMAIN_NAMES.get(ds.domain, '')}",
            f"{ds.earned:g}/{ds.possible:g}",
            f"[{sc_color}]{ds.percentage:.0f}%[/{sc_color}]",
        )
    console.print(table)


def cmd_exam(db_path: str, settings: Settings, bank: QuestionBank):
    console.print("\n[bold]Practice Exam[/bold]")
    for name, config in EXAM_PRESETS.items():
        console.print(
            f"  [cyan]{name:<10}[/cyan] {config.total_questions} questions, "
            f"{config.time_limit_minutes} minutes, {config.pbq_count} PBQs"
        )
    preset = Prompt.ask("Preset", choices=list(EXAM_PRESETS), default="quick")
    history = get_question_history(db_path, settings.user_id)
    session = start_exam(bank, preset, history, datetime.now())
    if not session.questions:
        console.print("[yellow]The question bank has no questions for this preset.[/yellow]")
        return

    try:
        for i, q in enumerate(session.questions, 1):
            now = datetime.now()
            if is_time_up(session, now):
                console.print("[red]Time is up![/red]")
                break
            console.print(
                f"\n[bold]Q{i}/{len(session.questions)}[/bold] "
                f"[dim]{q.type.upper()} | {format_clock(time_remaining(session, now))} left[/dim]"
            )
            answer = ask_exam_question(q)
            try:
                submit_answer(session, q, answer, bank, now=datetime.now())
            except ExamTimeUp:
                console.print("[red]Time is up! That answer was not counted.[/red]")
                break
    except SessionExitRequested:
        console.print("[dim]Exam ended early; unanswered questions score zero.[/dim]")

    finish_exam(session, datetime.now())
    record_question_results(db_path, settings.user_id, session.answers)
    save_exam_session(db_path, settings.user_id, session)
    show_exam_result(session.result, session.time_used_seconds)


# --- Dashboard and review ---


def cmd_dashboard(db_path: str, settings: Settings, catalogue: Catalogue):
    progress = get_user_progress(db_path, settings.user_id)
    score = calc_readiness_score(db_path, settings.user_id, catalogue.acronyms, progress)
    label = get_readiness_label(score)
    color = get_readiness_color(score)
    stats = get_study_stats(db_path, settings.user_id)

    console.print(Panel(f"[bold]{len(catalogue)} acronyms[/bold]", title="Security+ Readiness Dashboard",
                        border_style="blue"))

    bar_filled = int(score / 5)
    bar_empty = 20 - bar_filled
    bar = f"[{color}]{'█' * bar_filled}{'░' * bar_empty}[/{color}]"
    console.print(f"\n  Overall Readiness: [bold]{score}%[/bold] {bar} [{color}]{label}[/{color}]\n")

    counts = get_mastery_counts(catalogue.acronyms, progress)
    console.print("  " + "  |  ".join(f"{level.value.title()}: [bold]{n}[/bold]" for level, n in counts.items()))

    domain_mastery = get_domain_mastery(catalogue.acronyms, progress)
    table = Table(title="Acronym Mastery by Domain")
    table.add_column("Domain", style="cyan")
    table.add_column("Known", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    for dm in domain_mastery:
        sc_color = get_readiness_color(dm["percent"])
        table.add_row(
            f"{dm['domain']}. {dm['name']}",
            f"{dm['mastered']}/{dm['total']}",
            f"{dm['percent']}%",
            f"[{sc_color}]{dm['label']}[/{sc_color}]",
        )
    console.print(table)

    console.print(f"\n  Training: [bold]{stats['training_sessions']}[/bold]  |  "
                  f"Tests: [bold]{stats['test_sessions']}[/bold]  |  "
                  f"Exams: [bold]{stats['exams_passed']}/{stats['exams_taken']}[/bold] passed  |  "
                  f"Avg Exam: [bold]{stats['avg_exam_score']}%[/bold]  |  "
                  f"Study time: [bold]{stats['study_minutes']} min[/bold]")

    populated = [dm for dm in domain_mastery if dm["total"]]
    if populated:
        weakest = min(populated, key=lambda d: d["percent"])
        if weakest["percent"] < 70:
            console.print(f"\n  [yellow]Recommendation: Focus on {weakest['name']}[/yellow]")


def cmd_review(db_path: str, settings: Settings, catalogue: Catalogue, bank: QuestionBank):
    console.print("\n[bold]Weak Area Review[/bold]\n")
    progress = get_user_progress(db_path, settings.user_id)
    weak_domains = get_weak_domains(catalogue.acronyms, progress)
    if weak_domains:
        table = Table(title="Weak Domains")
        table.add_column("Domain")
        table.add_column("Score", justify="right")
        table.add_column("Answers", justify="right")
        for wd in weak_domains:
            table.add_row(wd["domain_name"], f"{wd['score']}%", str(wd["total"]))
        console.print(table)

    exams = get_exam_sessions(db_path, settings.user_id)
    if exams:
        missed = group_missed_questions(bank, [ExamAnswer(**a) for a in exams[0]["answers"]])
        if missed:
            console.print("\n[bold]Missed in your last exam:[/bold]")
        for domain, subdomains in missed.items():
            console.print(f"  [cyan]{domain}. {DOMAIN_NAMES.get(domain, '')}[/cyan]")
            for subdomain, items in subdomains.items():
                for item in items:
                    console.print(f"    [red]{subdomain}[/red] {item['topic']}: [dim]{item['explanation']}[/dim]")

    weak = get_weak_acronyms(catalogue.acronyms, progress)
    if not weak and not weak_domains:
        console.print("[green]No weak areas detected! Keep up the good work.[/green]")
        return
    if not weak:
        return

    console.print("\n[bold]Weakest Acronyms:[/bold]")
    for w in weak[:5]:
        console.print(f"  [red]{w['times_wrong']}/{w['total']} wrong[/red] - {w['acronym_id']} ({w['full_name']})")

    pool = [catalogue.get(w["acronym_id"]) for w in weak]
    questions = build_test_questions(
        pool, len(pool), "normal", catalogue.acronyms, distractor_count=settings.distractor_count,
    )
    tally = DrillTally()
    started = datetime.now()
    try:
        run_test_session(db_path, settings.user_id, questions, tally)
    except SessionExitRequested:
        console.print("[dim]Review stopped early.[/dim]")
    finish_test(db_path, settings.user_id, "review", tally, started)


def cmd_import(catalogue: Catalogue, bank: QuestionBank) -> tuple[Catalogue, QuestionBank]:
    """Import a JSON/YAML file and merge it into the content loaded for this run."""
    file_path = Prompt.ask("File path")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return catalogue, bank
    kind, content = import_file(file_path)
    if kind == "questions":
        bank = merge_banks(bank, content)
    else:
        catalogue = merge_catalogues(catalogue, content)
    console.print(f"[green]Imported {len(content)} {kind} from {Path(file_path).name}[/green]")
    return catalogue, bank


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    db_path = settings.db_path
    init_db(db_path)
    catalogue = load_acronyms()
    bank = load_question_bank()

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="train").strip().lower()
        try:
            if choice == "train":
                cmd_train(db_path, settings, catalogue)
            elif choice == "test":
                cmd_test(db_path, settings, catalogue)
            elif choice == "hard":
                cmd_hard(db_path, settings, catalogue)
            elif choice == "exam":
                cmd_exam(db_path, settings, bank)
            elif choice == "dashboard":
                cmd_dashboard(db_path, settings, catalogue)
            elif choice == "review":
                cmd_review(db_path, settings, catalogue, bank)
            elif choice == "import":
                catalogue, bank = cmd_import(catalogue, bank)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck on your exam![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.opt(exception=e).debug(f"Command {choice!r} failed")
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
