"""Typer CLI for the learning companion: ``lca ask``, ``lca card``, ``lca portrait`` and friends."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import typer
from dotenv import load_dotenv
from openai import OpenAIError
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from lca.config import DEFAULT_CONFIG_PATH, load_config
from lca.schemas.config import AppConfig
from lca.schemas.learning import EDUCATIONAL_LEVELS, PREFERRED_STYLES, LearningPreferences
from lca.store.base import StoreError

# Load .env file from the working directory (if it exists)
load_dotenv()

app = typer.Typer(
    name="lca",
    help="Learning Companion: adaptive tutoring chat, knowledge cards, A/B comparison and learning portraits.",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every HTTP request at INFO, which drowns out the answers
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _load(config: Path) -> AppConfig:
    try:
        return load_config(config)
    except Exception as exc:
        console.print(f"[red]Config validation failed:[/] {exc}")
        raise typer.Exit(code=1)


@contextmanager
def _fail_on_error(action: str) -> Iterator[None]:
    try:
        yield
    except (StoreError, ValueError, OpenAIError) as exc:
        console.print(f"[red]{action} failed:[/] {exc}")
        raise typer.Exit(code=1)


def _make_client(cfg: AppConfig, dry_run: bool):
    if dry_run:
        from lca.shared.llm_client import DryRunClient
        console.print("[yellow]DRY-RUN mode: no API calls will be made.[/]\n")
        return DryRunClient()
    from lca.shared.llm_client import LLMClient
    return LLMClient(api_key=cfg.openai_api_key or None, model=cfg.model)


def _learning_store(cfg: AppConfig):
    from lca.store.base import create_store_client
    from lca.store.learning import LearningStore
    return LearningStore(create_store_client(cfg), cfg.user_id)


def _session_store(cfg: AppConfig, save: bool, dry_run: bool):
    """Store for saving a conversation, or None when saving is off or Supabase is unavailable."""
    if not save or dry_run:
        return None
    try:
        return _learning_store(cfg)
    except StoreError as exc:
        logger.warning("Not saving this conversation: %s", exc)
        return None


def _tag_store(cfg: AppConfig):
    from lca.store.base import create_store_client
    from lca.store.tags import TagStore
    return TagStore(create_store_client(cfg), cfg.user_id)


def _default_preferences(cfg: AppConfig) -> LearningPreferences:
    return LearningPreferences(
        user_id=cfg.user_id,
        educational_level=cfg.defaults.educational_level,
        preferred_style=cfg.defaults.preferred_style,
    )


def _check_choice(value: str | None, allowed: tuple[str, ...], option: str) -> None:
    if value is not None and value not in allowed:
        console.print(f"[red]Invalid {option}:[/] {value} (choose from {', '.join(allowed)})")
        raise typer.Exit(code=1)


def _write_output(path: Path | None, text: str) -> None:
    if path is None:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    console.print(f"[green]Written to:[/] {path}")


# ----------------------------------------------------------------------
# Config
# ----------------------------------------------------------------------


@app.command()
def validate(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Validate a configuration file."""
    _setup_logging(verbose)
    cfg = _load(config)

    console.print("[green]Config is valid![/]\n")
    console.print(f"  User:        {cfg.user_id}")
    console.print(f"  Model:       {cfg.model}")
    console.print(f"  Supabase:    {cfg.supabase_url or '(from environment)'}")
    console.print(f"  Level:       {cfg.defaults.educational_level}")
    console.print(f"  Style:       {cfg.defaults.preferred_style}")
    console.print(f"  A/B models:  {', '.join(m.model_id for m in cfg.ab_test.models)}")
    console.print(f"  Criteria:    {', '.join(cfg.ab_test.criteria)}")
    console.print(f"  Output dir:  {cfg.output_directory}")


# ----------------------------------------------------------------------
# Companion chat
# ----------------------------------------------------------------------


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question for the learning companion."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    level: str = typer.Option(None, "--level", "-l", help="Educational level override."),
    style: str = typer.Option(None, "--style", "-s", help="Preferred style override."),
    tag: list[str] = typer.Option(None, "--tag", "-t", help="Prompt tag, e.g. concise or translate:targetLanguage=French (repeatable)."),
    smart: bool = typer.Option(False, "--smart", help="Answer with a Learning Extension section instead of suggestions."),
    save: bool = typer.Option(True, "--save/--no-save", help="Persist the exchange to Supabase."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use canned responses (no API calls, nothing saved)."),
) -> None:
    """Ask one question and print the answer with suggested follow-ups."""
    _setup_logging(verbose)
    cfg = _load(config)
    _check_choice(level, EDUCATIONAL_LEVELS, "level")
    _check_choice(style, PREFERRED_STYLES, "style")
    client = _make_client(cfg, dry_run)

    with _fail_on_error("Question"):
        store = _session_store(cfg, save, dry_run)
        prefs = store.get_preferences() if store else _default_preferences(cfg)
        prefs = prefs.model_copy(update={
            k: v for k, v in (("educational_level", level), ("preferred_style", style)) if v
        })
        if tag:
            question = _apply_tag_specs(cfg, question, tag, offline=store is None)
        asyncio.run(_run_ask(client, cfg, prefs, store, question, smart=smart))


def _apply_tag_specs(cfg: AppConfig, message: str, specs: list[str], *, offline: bool) -> str:
    from lca.tags import BUILTIN_TAGS, apply_tags, default_tag_parameters, missing_required, parse_tag_spec

    selected = [parse_tag_spec(s) for s in specs]
    custom = [] if offline else _tag_store(cfg).list_tags()
    custom_by_name = {t.name: t for t in custom}
    for sel in selected:
        if sel.name in BUILTIN_TAGS:
            params = default_tag_parameters(sel.name)
        elif sel.name in custom_by_name:
            params = custom_by_name[sel.name].parameters
        else:
            raise ValueError(f"Unknown tag: {sel.name}")
        missing = missing_required(params, sel.parameters)
        if missing:
            raise ValueError(f"Tag {sel.name!r} needs: {', '.join(missing)}")
    return apply_tags(message, selected, custom)


async def _run_ask(client, cfg: AppConfig, prefs: LearningPreferences, store, question: str, *, smart: bool) -> None:
    from lca.agents.companion.agent import CompanionAgent
    from lca.agents.companion.session import CompanionChat

    agent = CompanionAgent(client, model=cfg.model)
    if smart:
        with console.status("Thinking..."):
            answer = await agent.smart_answer(question, prefs.educational_level)
        console.print(Markdown(answer))
        return

    chat = CompanionChat(agent, prefs, store=store)
    with console.status("Thinking..."):
        reply = await chat.ask(question)
    _print_reply(reply.content, reply.suggested_questions)
    chat.end()


def _print_reply(content: str, suggestions: list[str]) -> None:
    console.print(Markdown(content))
    if suggestions:
        console.print("\n[bold]Suggested questions:[/]")
        for i, q in enumerate(suggestions, 1):
            console.print(f"  [cyan]{i}.[/] {q}")


@app.command()
def chat(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    level: str = typer.Option(None, "--level", "-l", help="Educational level override."),
    style: str = typer.Option(None, "--style", "-s", help="Preferred style override."),
    save: bool = typer.Option(True, "--save/--no-save", help="Persist the conversation to Supabase."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use canned responses (no API calls, nothing saved)."),
) -> None:
    """Interactive tutoring session. Type a number to ask a suggested question, 'exit' to quit."""
    _setup_logging(verbose)
    cfg = _load(config)
    _check_choice(level, EDUCATIONAL_LEVELS, "level")
    _check_choice(style, PREFERRED_STYLES, "style")
    client = _make_client(cfg, dry_run)

    with _fail_on_error("Chat"):
        store = _session_store(cfg, save, dry_run)
        prefs = store.get_preferences() if store else _default_preferences(cfg)
        prefs = prefs.model_copy(update={
            k: v for k, v in (("educational_level", level), ("preferred_style", style)) if v
        })
        console.print(f"[bold]Learning Companion[/] ({prefs.educational_level}, {prefs.preferred_style})")
        asyncio.run(_run_chat(client, cfg, prefs, store))


async def _run_chat(client, cfg: AppConfig, prefs: LearningPreferences, store) -> None:
    from lca.agents.companion.agent import CompanionAgent
    from lca.agents.companion.session import CompanionChat
    from lca.shared.progress import ask_user

    chat_session = CompanionChat(CompanionAgent(client, model=cfg.model), prefs, store=store)
    suggestions: list[str] = []
    try:
        while True:
            text = await ask_user("You")
            if text is None or text.strip().lower() in ("exit", "quit"):
                break
            text = text.strip()
            if not text:
                continue
            if text.isdigit() and 1 <= int(text) <= len(suggestions):
                text = suggestions[int(text) - 1]
                chat_session.record_suggestion_click(text)
                console.print(f"[dim]> {text}[/]")

            with console.status("Thinking..."):
                reply = await chat_session.ask(text)
            _print_reply(reply.content, reply.suggested_questions)
            suggestions = reply.suggested_questions
    finally:
        chat_session.end()


@app.command("style")
def style_prompt(
    message: str = typer.Argument("", help="Message the style prompt is for."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    offline: bool = typer.Option(False, "--offline", help="Use config defaults instead of stored preferences."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Show the adaptive style prompt built from the user's preferences."""
    from lca.agents.companion.style import generate_style_prompt

    _setup_logging(verbose)
    cfg = _load(config)
    with _fail_on_error("Style prompt"):
        prefs = _default_preferences(cfg) if offline else _learning_store(cfg).get_preferences()
    result = generate_style_prompt(prefs, message)
    console.print(f"[bold]Style:[/] {result.applied_style}  [bold]Complexity:[/] {result.complexity_level}\n")
    console.print(result.style_prompt)


@app.command()
def prefs(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    level: str = typer.Option(None, "--level", "-l", help="Set the educational level."),
    style: str = typer.Option(None, "--style", "-s", help="Set the preferred style."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Show learning preferences, or save them when --level/--style is given."""
    _setup_logging(verbose)
    cfg = _load(config)
    _check_choice(level, EDUCATIONAL_LEVELS, "level")
    _check_choice(style, PREFERRED_STYLES, "style")

    with _fail_on_error("Preferences"):
        store = _learning_store(cfg)
        if level or style:
            current = store.get_preferences()
            result = store.save_preferences(
                level or current.educational_level, style or current.preferred_style,
            )
            console.print("[green]Preferences saved.[/]")
        else:
            result = store.get_preferences()
    console.print(f"  Level: {result.educational_level}")
    console.print(f"  Style: {result.preferred_style}")


@app.command()
def sessions(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    limit: int = typer.Option(50, "--limit", "-n"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """List recent chat sessions, newest first."""
    _setup_logging(verbose)
    cfg = _load(config)
    with _fail_on_error("Listing sessions"):
        rows = _learning_store(cfg).list_sessions(limit=limit)

    table = Table("ID", "Started", "Ended", "Level", "Style", "Messages")
    for s in rows:
        table.add_row(s.id, s.started_at, s.ended_at or "", s.educational_level, s.preferred_style, str(s.message_count))
    console.print(table)


@app.command()
def history(
    session_id: str = typer.Argument(..., help="Chat session id."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Print the messages of one chat session."""
    _setup_logging(verbose)
    cfg = _load(config)
    with _fail_on_error("Loading history"):
        messages = _learning_store(cfg).list_messages(session_id)
    for m in messages:
        colour = "cyan" if m.role == "user" else "green"
        console.print(f"[{colour}]{m.role}[/] [dim]{m.timestamp}[/]")
        console.print(Markdown(m.content))
        console.print("")


@app.command()
def event(
    event_type: str = typer.Argument(..., help="Event type, e.g. suggestion_clicked."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    payload: str = typer.Option(None, "--payload", "-p", help="JSON object stored with the event."),
    session: str = typer.Option(None, "--session", help="Chat session id."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Record a learning event."""
    _setup_logging(verbose)
    cfg = _load(config)
    with _fail_on_error("Recording event"):
        data = json.loads(payload) if payload else None
        if data is not None and not isinstance(data, dict):
            raise ValueError("--payload must be a JSON object")
        recorded = _learning_store(cfg).record_event(event_type, data, session_id=session)
    console.print(f"[green]Recorded[/] {recorded.event_type} ({recorded.id})")


@app.command()
def profile(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    display_name: str = typer.Option(None, "--display-name"),
    bio: str = typer.Option(None, "--bio"),
    context: str = typer.Option(None, "--context", help="Background the assistant should know about you."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Show the user's profile, or update it when an option is given."""
    from lca.schemas.learning import Profile
    from lca.store.base import NotFoundError

    _setup_logging(verbose)
    cfg = _load(config)
    updates = {
        k: v for k, v in (("display_name", display_name), ("bio", bio), ("profile_context", context))
        if v is not None
    }
    with _fail_on_error("Profile"):
        store = _learning_store(cfg)
        try:
            current = store.get_profile()
        except NotFoundError:
            if not updates:
                raise
            current = store.create_profile(Profile(user_id=cfg.user_id, **updates))
        else:
            if updates:
                current = store.update_profile(current.id or "", **updates)

    console.print(f"  Username:     {current.username or '(none)'}")
    console.print(f"  Display name: {current.display_name or '(none)'}")
    console.print(f"  Bio:          {current.bio or '(none)'}")
    console.print(f"  Context:      {current.profile_context or '(none)'}")


# ----------------------------------------------------------------------
# Knowledge cards
# ----------------------------------------------------------------------


@app.command()
def card(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="File holding the message to turn into a card."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    template: str = typer.Option("basic", "--template", help="basic, detailed, visual or minimal."),
    section: list[str] = typer.Option(None, "--section", help="Extra section to request (repeatable)."),
    message_id: str = typer.Option("", "--message-id"),
    chat_id: str = typer.Option("", "--chat-id"),
    save: bool = typer.Option(True, "--save/--no-save", help="Persist the card to Supabase."),
    out: Path = typer.Option(None, "--out", "-o", help="Write the card as Markdown."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use canned responses (no API calls, nothing saved)."),
) -> None:
    """Generate a knowledge card from a chat message."""
    from lca.agents.knowledge_cards.agent import KnowledgeCardAgent, is_learning_content
    from lca.output.markdown import render_card
    from lca.schemas.cards import CardGenerationRequest

    _setup_logging(verbose)
    cfg = _load(config)
    client = _make_client(cfg, dry_run)

    with _fail_on_error("Card generation"):
        content = source.read_text()
        if not is_learning_content(content):
            console.print("[yellow]This message doesn't look like learning content; generating anyway.[/]")
        request = CardGenerationRequest(
            message_content=content,
            message_id=message_id,
            chat_id=chat_id,
            template=template,
            custom_sections=list(section or []),
        )
        agent = KnowledgeCardAgent(client, model=cfg.model)
        with console.status("Generating card..."):
            result = asyncio.run(agent.generate(request, cfg.user_id))
        if save and not dry_run:
            result = _learning_store(cfg).save_card(result)
            console.print(f"[green]Saved card[/] {result.id}")

    markdown = render_card(result)
    console.print(Markdown(markdown))
    _write_output(out, markdown)


@app.command()
def cards(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    chat_id: str = typer.Option(None, "--chat-id", help="Only cards made from this chat."),
    delete: str = typer.Option(None, "--delete", help="Delete the card with this id."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """List saved knowledge cards (or delete one)."""
    _setup_logging(verbose)
    cfg = _load(config)
    with _fail_on_error("Cards"):
        store = _learning_store(cfg)
        if delete:
            store.delete_card(delete)
            console.print(f"[green]Deleted card[/] {delete}")
            return
        rows = store.list_cards(chat_id=chat_id)

    table = Table("ID", "Title", "Template", "Tags", "Created")
    for c in rows:
        table.add_row(c.id, c.title, c.template, ", ".join(c.tags), c.created_at)
    console.print(table)


# ----------------------------------------------------------------------
# A/B comparison
# ----------------------------------------------------------------------


@app.command()
def compare(
    versions: list[Path] = typer.Argument(..., exists=True, dir_okay=False, help="Two to four files, labelled A, B, C, D in order."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    industry: str = typer.Option("general", "--industry", "-i"),
    out: Path = typer.Option(None, "--out", "-o", help="Write the analysis as Markdown."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use canned responses (no API calls)."),
) -> None:
    """Compare content versions and recommend the strongest."""
    from lca.agents.comparison.agent import ComparisonAgent
    from lca.output.markdown import render_comparison

    _setup_logging(verbose)
    cfg = _load(config)
    client = _make_client(cfg, dry_run)

    with _fail_on_error("Comparison"):
        texts = [p.read_text() for p in versions]
        agent = ComparisonAgent(client, model=cfg.model)
        with console.status(f"Comparing {len(texts)} versions..."):
            analysis = asyncio.run(agent.compare(texts, industry))

    markdown = render_comparison(analysis, texts)
    console.print(Markdown(markdown))
    _write_output(out, markdown)


@app.command()
def abtest(
    prompt: str = typer.Option(..., "--prompt", "-p", help="Prompt sent to every model."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    name: str = typer.Option("Quick A/B test", "--name"),
    model: list[str] = typer.Option(None, "--model", "-m", help="Model id (repeatable); defaults to the config's ab_test.models."),
    criteria: list[str] = typer.Option(None, "--criterion", help="Scoring criterion (repeatable)."),
    out: Path = typer.Option(None, "--out", "-o", help="Write the results as Markdown."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use canned responses (no API calls)."),
) -> None:
    """Send one prompt to several models and score the answers."""
    from lca.output.markdown import render_ab_test
    from lca.schemas.comparison import ABTestConfig, ABTestModelConfig, ABTestRun

    _setup_logging(verbose)
    cfg = _load(config)
    client = _make_client(cfg, dry_run)

    with _fail_on_error("A/B test"):
        models = (
            [ABTestModelConfig(model_id=m, model_name=m) for m in model]
            if model
            else [ABTestModelConfig(**m.model_dump()) for m in cfg.ab_test.models]
        )
        test = ABTestConfig(
            name=name,
            test_prompt=prompt,
            models=models,
            comparison_criteria=list(criteria or cfg.ab_test.criteria),
        )
        results = asyncio.run(_run_abtest(client, test))

    run = ABTestRun(config=test, results=results)
    markdown = render_ab_test(run)
    console.print(Markdown(markdown))
    _write_output(out, markdown)


async def _run_abtest(client, test):
    from lca.agents.comparison.runner import ABTestRunner
    from lca.shared.progress import TaskProgress

    with TaskProgress() as progress:
        progress.print_heading(f"A/B test: {test.name}")

        def on_progress(label: str, status: str) -> None:
            if status == "done":
                progress.finish_step(label)
            elif status.startswith("failed"):
                progress.fail_step(label, status)
            else:
                progress.update_step(label, status)

        return await ABTestRunner(client).run(test, on_progress=on_progress)


# ----------------------------------------------------------------------
# Deep Dive
# ----------------------------------------------------------------------


@app.command("deep-dive")
def deep_dive(
    selected: str = typer.Argument(..., help="The selected text."),
    context_file: Path = typer.Option(None, "--context-file", exists=True, dir_okay=False, help="File holding the full message the text was selected from."),
    context: str = typer.Option("", "--context", help="The full message, inline."),
    question: str = typer.Option(None, "--question", "-q", help="Answer this question instead of suggesting questions."),
    original_question: str = typer.Option("", "--original-question", help="The question that produced the message."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use canned responses (no API calls)."),
) -> None:
    """Suggest follow-up questions about a selection, or answer one."""
    from lca.agents.deep_dive.agent import DeepDiveAgent

    _setup_logging(verbose)
    cfg = _load(config)
    client = _make_client(cfg, dry_run)
    original = context_file.read_text() if context_file else context
    agent = DeepDiveAgent(client, model=cfg.model)

    with _fail_on_error("Deep Dive"):
        if question:
            asyncio.run(agent.answer(
                selected, original, question,
                on_chunk=lambda c: console.print(c, end="", markup=False, highlight=False),
            ))
            console.print("")
            return
        suggestions = asyncio.run(agent.suggest(selected, original, original_question=original_question))

    console.print(f"[bold]Context:[/] {suggestions.context_type}\n")
    for q in suggestions.questions:
        console.print(f"  [cyan]{q.id or '-'}[/] {q.question} [dim]({q.category})[/]")


# ----------------------------------------------------------------------
# Learning portrait
# ----------------------------------------------------------------------


@app.command()
def portrait(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    out: Path = typer.Option(None, "--out", "-o", help="Write the portrait as Markdown."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Use canned responses (no API calls)."),
) -> None:
    """Generate and save a fresh learning portrait from recent activity."""
    from lca.output.markdown import render_portrait

    _setup_logging(verbose)
    cfg = _load(config)
    client = _make_client(cfg, dry_run)

    with _fail_on_error("Portrait generation"):
        result = asyncio.run(_run_portrait(client, cfg))

    markdown = render_portrait(result)
    console.print(Markdown(markdown))
    _write_output(out, markdown)


async def _run_portrait(client, cfg: AppConfig):
    from lca.agents.portrait.agent import PortraitAgent, PortraitService
    from lca.shared.progress import TaskProgress

    service = PortraitService(PortraitAgent(client, model=cfg.model), _learning_store(cfg))
    step = "Learning Portrait"
    with TaskProgress() as progress:
        progress.start_step(step)
        try:
            result = await service.generate(on_progress=lambda m: progress.update_step(step, m))
        except Exception as exc:
            progress.fail_step(step, str(exc))
            raise
        progress.finish_step(step)
    return result


@app.command("portrait-show")
def portrait_show(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    mastery: str = typer.Option("all", "--mastery", help="all, strength, gap or developing."),
    sort: str = typer.Option("confidence", "--sort", help="confidence, evidence or recent."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Show the saved portrait and its knowledge topics."""
    from lca.analytics.topics import filter_topics, sort_topics
    from lca.output.markdown import render_portrait

    _setup_logging(verbose)
    cfg = _load(config)
    _check_choice(mastery, ("all", "strength", "gap", "developing"), "mastery")
    _check_choice(sort, ("confidence", "evidence", "recent"), "sort")

    with _fail_on_error("Loading portrait"):
        saved = _learning_store(cfg).get_portrait()
    if saved is None:
        console.print("[yellow]No portrait yet.[/] Run [bold]lca portrait[/] to generate one.")
        raise typer.Exit(code=1)

    console.print(Markdown(render_portrait(saved.model_copy(update={"knowledge_topics": []}))))
    topics = sort_topics(filter_topics(saved.knowledge_topics, mastery), sort)
    if topics:
        table = Table("Topic", "Mastery", "Confidence", "Mentions", "Last mentioned")
        for t in topics:
            table.add_row(t.topic, t.mastery_level, f"{t.confidence:.0%}", str(t.evidence_count), t.last_mentioned or "")
        console.print(table)


@app.command("portrait-delete")
def portrait_delete(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Delete the saved learning portrait."""
    _setup_logging(verbose)
    cfg = _load(config)
    if not yes:
        typer.confirm("Delete your learning portrait?", abort=True)
    with _fail_on_error("Deleting portrait"):
        _learning_store(cfg).delete_portrait()
    console.print("[green]Portrait deleted.[/]")


@app.command()
def timeline(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    range_key: str = typer.Option("7d", "--range", "-r", help="7d, 30d or 90d."),
    out: Path = typer.Option(None, "--out", "-o", help="Write the timeline as Markdown."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Day-by-day learning activity."""
    from lca.analytics.timeline import RANGE_DAYS, build_timeline, range_bounds
    from lca.output.markdown import render_timeline

    _setup_logging(verbose)
    cfg = _load(config)
    _check_choice(range_key, tuple(RANGE_DAYS), "range")

    with _fail_on_error("Timeline"):
        store = _learning_store(cfg)
        start, end = range_bounds(range_key)
        session_rows = store.sessions_between(start.isoformat(), end.isoformat())
        messages = store.messages_for_sessions([s.id for s in session_rows]) if session_rows else []
    result = build_timeline(session_rows, messages, range_key, now=end)

    markdown = render_timeline(result)
    console.print(Markdown(markdown))
    _write_output(out, markdown)


# ----------------------------------------------------------------------
# Custom tags
# ----------------------------------------------------------------------


@app.command()
def tags(
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    builtin: bool = typer.Option(False, "--builtin", help="Only list the built-in tags (no Supabase)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """List built-in and custom prompt tags."""
    from lca.tags import BUILTIN_TAGS, default_tag_parameters

    _setup_logging(verbose)
    cfg = _load(config)

    table = Table("Name", "Category", "Parameters", "Prompt")
    for tag_name, (category, tag_prompt) in BUILTIN_TAGS.items():
        params = ", ".join(p.name for p in default_tag_parameters(tag_name))
        table.add_row(tag_name, category, params, tag_prompt)
    if not builtin:
        with _fail_on_error("Listing tags"):
            custom = _tag_store(cfg).list_tags()
        for t in custom:
            table.add_row(f"[bold]{t.name}[/]", t.category, ", ".join(p.name for p in t.parameters), t.prompt)
    console.print(table)


@app.command("tag-add")
def tag_add(
    name: str = typer.Argument(..., help="Tag name."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    category: str = typer.Option("custom", "--category"),
    prompt: str = typer.Option(None, "--prompt", help="Prompt text; generated when omitted."),
    description: str = typer.Option("", "--description"),
    color: str = typer.Option(None, "--color", help="Hex colour, e.g. #3B82F6."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Generate with canned responses (no API calls)."),
) -> None:
    """Create a custom tag, generating its prompt when none is given."""
    from lca.agents.tags.agent import TagGeneratorAgent
    from lca.schemas.tags import CustomTag
    from lca.tags import default_tag_parameters

    _setup_logging(verbose)
    cfg = _load(config)

    with _fail_on_error("Creating tag"):
        store = _tag_store(cfg)
        if not prompt:
            agent = TagGeneratorAgent(_make_client(cfg, dry_run), store=store, model=cfg.model)
            generated = asyncio.run(agent.generate(name, category))
            prompt = generated.prompt
            description = description or generated.description
        created = store.create_tag(CustomTag(
            user_id=cfg.user_id,
            name=name,
            description=description,
            prompt=prompt,
            category=category,
            color=color,
            parameters=default_tag_parameters(name),
        ))
    console.print(f"[green]Created tag[/] {created.name} ({created.id})")
    console.print(f"  {created.prompt}")


@app.command("tag-delete")
def tag_delete(
    tag_id: str = typer.Argument(..., help="Custom tag id."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Delete a custom tag and its parameters."""
    _setup_logging(verbose)
    cfg = _load(config)
    with _fail_on_error("Deleting tag"):
        _tag_store(cfg).delete_tag(tag_id)
    console.print(f"[green]Deleted tag[/] {tag_id}")


@app.command("tag-prompt")
def tag_prompt(
    message: str = typer.Argument(..., help="Message to prefix."),
    tag: list[str] = typer.Option(..., "--tag", "-t", help="Tag name, optionally name:key=value,... (repeatable)."),
    config: Path = typer.Option(Path(DEFAULT_CONFIG_PATH), "--config", "-c", help="Path to lca.yml"),
    builtin: bool = typer.Option(False, "--builtin", help="Only use built-in tags (no Supabase)."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Print the message as it would be sent with the selected tags."""
    _setup_logging(verbose)
    cfg = _load(config)
    with _fail_on_error("Tag prompt"):
        result = _apply_tag_specs(cfg, message, tag, offline=builtin)
    console.print(result, markup=False, highlight=False)
