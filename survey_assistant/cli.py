# survey_assistant/cli.py
"""
CLI interface for survey-assistant.

Thin presentation layer over the authoring pipeline and the tools/ service
layer. The chat command runs a conversation in-process.
"""

import asyncio
import json

import typer

app = typer.Typer(
    name="survey-assistant",
    help="Conversational survey authoring: requirements, follow-ups and question generation.",
    no_args_is_help=True,
)

_QUIT_WORDS = {"exit", "quit", ":q"}


def _run(coro):
    """Run async function from sync CLI context."""
    return asyncio.run(coro)


def _console():
    from rich.console import Console

    return Console()


def _render_preview(console, preview: dict) -> None:
    """Print a preview document as a rich table."""
    from rich.table import Table

    if not preview["questions"]:
        console.print(f"[yellow]{preview.get('empty_message') or 'No questions.'}[/yellow]")
        return

    table = Table(title=f"{preview['title']} ({preview['type']})", show_lines=True)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Question")
    table.add_column("Kind", style="magenta")
    table.add_column("Category", style="dim")
    table.add_column("Rationale", style="dim")
    for q in preview["questions"]:
        text = q["text"]
        if q["options"]:
            text += "\n" + " / ".join(q["options"])
        table.add_row(q["id"], text, q["kind"], q["category"], q["rationale"])
    console.print(table)


@app.command()
def chat(
    mock: bool = typer.Option(False, "--mock", help="Use the canned mock adapter instead of the configured one"),
):
    """Interactive authoring session. Type 'exit' to leave."""
    from survey_assistant.authoring.errors import ConversationStateError
    from survey_assistant.authoring.pipeline.orchestrator import ConversationOrchestrator
    from survey_assistant.authoring.schemas import is_blank
    from survey_assistant.config.loader import load_config
    from survey_assistant.models.conversation import ConversationState

    config = load_config()
    if mock:
        config.adapter.kind = "mock"
    console = _console()
    orchestrator = ConversationOrchestrator.from_config(config)

    async def _session():
        console.print("[bold]どのようなアンケートを作成しますか？[/bold] (exit で終了)")
        while True:
            text = typer.prompt("you", prompt_suffix="> ")
            if text.strip().lower() in _QUIT_WORDS:
                return
            if is_blank(text):
                continue

            state = orchestrator.state
            try:
                if state is ConversationState.PREVIEWING and text.strip() in ("confirm", "確定"):
                    draft = await orchestrator.confirm_preview()
                    console.print_json(json.dumps(draft.to_payload(), ensure_ascii=False))
                    return
                if state is ConversationState.PREVIEWING and text.strip() in ("edit", "編集"):
                    reply = await orchestrator.request_edit()
                elif state is ConversationState.EDIT_REQUESTED and text.strip() in orchestrator.conversation.suggestions:
                    reply = await orchestrator.choose_suggestion(text.strip())
                else:
                    reply = await orchestrator.submit_user_message(text)
            except ConversationStateError as e:
                console.print(f"[red]{e}[/red]")
                continue

            if reply:
                console.print(f"[green]assistant[/green]> {reply}")
            snapshot = orchestrator.snapshot()
            if snapshot.suggestions:
                console.print("[dim]候補: " + " | ".join(snapshot.suggestions) + "[/dim]")
            if orchestrator.state is ConversationState.PREVIEWING and snapshot.preview:
                _render_preview(console, snapshot.preview)
                console.print("[dim]'confirm' で確定、'edit' でカスタマイズ[/dim]")

    try:
        _run(_session())
    except (KeyboardInterrupt, EOFError, typer.Abort):
        typer.echo("\nCancelled.", err=True)
        raise typer.Exit(130)


@app.command()
def extract(
    text: str = typer.Argument(..., help="Free-text survey request"),
    mock: bool = typer.Option(False, "--mock", help="Use the canned mock adapter"),
):
    """Extract a Requirements document and print it with the follow-ups it needs."""
    from survey_assistant.authoring.adapter import MockGenerationAdapter
    from survey_assistant.authoring.pipeline import FollowUpStage, RequirementExtractionStage
    from survey_assistant.authoring.validation import serialize

    adapter = MockGenerationAdapter() if mock else None

    async def _extract():
        extracted = await RequirementExtractionStage(adapter).execute(text)
        if not extracted.success:
            return extracted, None
        return extracted, await FollowUpStage(adapter).execute(extracted.output)

    extracted, follow_up = _run(_extract())
    if not extracted.success:
        typer.echo(f"Error: {extracted.error}", err=True)
        raise typer.Exit(1)

    typer.echo(json.dumps(
        {
            "strategy": extracted.strategy,
            "requirements": serialize(extracted.output),
            "followUp": serialize(follow_up.output) if follow_up and follow_up.success else None,
        },
        ensure_ascii=False,
        indent=2,
    ))


@app.command()
def generate(
    text: str = typer.Argument(..., help="Survey request, e.g. 'テーマ: NPS調査\\n設問数: 3問'"),
    as_json: bool = typer.Option(False, "--json", help="Print the QuestionSet as JSON"),
):
    """Extract requirements and generate questions locally, skipping follow-ups."""
    from survey_assistant.authoring.pipeline import QuestionGenerationStage, RequirementExtractionStage
    from survey_assistant.authoring.pipeline.generation import DEFAULT_TITLE
    from survey_assistant.authoring.preview import build_preview
    from survey_assistant.authoring.validation import serialize

    stage = QuestionGenerationStage()

    async def _generate():
        extracted = await RequirementExtractionStage().execute(text)
        if not extracted.success:
            return extracted, None
        return extracted, await stage.execute(extracted.output)

    extracted, generated = _run(_generate())
    result = generated or extracted
    if not result.success:
        typer.echo(f"Error: {result.error}", err=True)
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(serialize(generated.output), ensure_ascii=False, indent=2))
        return

    requirements = extracted.output
    preview = build_preview(
        generated.output,
        title=requirements.text("required.title") or DEFAULT_TITLE,
        survey_type=stage.generator.resolve_method(requirements).value,
        purpose=requirements.text("required.purpose"),
        audience=requirements.text("required.target_audience"),
    )
    _render_preview(_console(), preview.model_dump(mode="json"))


@app.command()
def templates(
    keyword: str = typer.Option(None, "--keyword", "-k", help="Filter by keyword"),
    category: str = typer.Option(None, "--category", "-c", help="Filter by category"),
    past: bool = typer.Option(False, "--past", help="List past surveys instead of templates"),
):
    """List survey templates (or past surveys)."""
    from survey_assistant.tools.catalog import list_past_surveys, list_templates

    if past:
        result = _run(list_past_surveys(keyword=keyword, category=category))
        if not result["surveys"]:
            typer.echo("No past surveys found.")
            return
        typer.echo(f"{'ID':<8} {'UPDATED':<11} {'METHOD':<10} TITLE")
        typer.echo("-" * 60)
        for s in result["surveys"]:
            typer.echo(f"{s['survey_id']:<8} {s['updated_at']:<11} {s['method']:<10} {s['title']}")
        return

    result = _run(list_templates(keyword=keyword, category=category))
    if not result["templates"]:
        typer.echo("No templates found.")
        return
    typer.echo(f"{'ID':<24} {'METHOD':<10} {'COUNT':<6} TITLE")
    typer.echo("-" * 70)
    for t in result["templates"]:
        typer.echo(
            typer.style(f"{t['template_id']:<24} ", fg=typer.colors.CYAN)
            + f"{t['method']:<10} {t['question_count']:<6} {t['title']}"
        )


@app.command()
def serve():
    """Start the MCP server over stdio."""
    from survey_assistant.__main__ import main

    asyncio.run(main())


if __name__ == "__main__":
    app()
