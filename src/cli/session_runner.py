"""
Interactive daily session for the terminal.

Drives a DailySessionOrchestrator with rich prompts:
- Preview: flash card per new word (next / back / quit)
- Quiz: free-text or lettered multiple choice, "s" skips
- Deep Moment: pick the best explanation for a struggling word
"""

from __future__ import annotations

import random

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from src.engine import (
    DailySessionOrchestrator,
    DeepRemediationGenerator,
    Item,
    QuestionGenerator,
    SessionConfig,
    SessionPhase,
    SessionSnapshot,
)
from src.storage import ItemRepository


class SessionRunner:
    """Renders one daily session and feeds user input back to the orchestrator."""

    def __init__(
        self,
        config: SessionConfig,
        store: ItemRepository,
        rng: random.Random,
        console: Console,
        max_answer_length: int = 200,
    ):
        self.console = console
        self.orchestrator = DailySessionOrchestrator(
            config,
            question_generator=QuestionGenerator(rng),
            remediation_generator=DeepRemediationGenerator(rng),
            repository=store,
            max_answer_length=max_answer_length,
        )
        self._last_phase = self.orchestrator.phase
        self.orchestrator.subscribe(self._on_change)

    def run(self) -> None:
        orchestrator = self.orchestrator
        self._phase_banner(orchestrator.phase)

        while not orchestrator.is_complete:
            if orchestrator.phase == SessionPhase.PREVIEW:
                keep_going = self._preview_step()
            elif orchestrator.phase == SessionPhase.QUIZ:
                keep_going = self._quiz_step()
            else:
                keep_going = self._deep_moment_step()

            if not keep_going:
                self.console.print("[yellow]Session stopped. Progress so far has been saved.[/yellow]")
                break

        orchestrator.unsubscribe(self._on_change)
        if orchestrator.is_complete:
            self._summary()
        if orchestrator.failed_writes:
            self.console.print(
                f"[yellow]⚠ {len(orchestrator.failed_writes)} update(s) could not be saved[/yellow]"
            )

    # -------------------------------------------------------------------------
    # Phases
    # -------------------------------------------------------------------------

    def _preview_step(self) -> bool:
        orchestrator = self.orchestrator
        item = orchestrator.current_preview_item
        if item is not None:
            total = len(orchestrator.config.preview_items)
            self.console.print(self._card(item, f"{orchestrator.preview_index + 1}/{total}"))

        choice = Prompt.ask("[cyan]n = next · b = back · q = quit[/cyan]", choices=["n", "b", "q"], default="n")
        if choice == "q":
            return False
        if choice == "b":
            orchestrator.previous_preview()
        else:
            orchestrator.advance_preview()
        return True

    def _quiz_step(self) -> bool:
        orchestrator = self.orchestrator
        question = orchestrator.current_question or orchestrator.load_quiz_question()
        if question is None:
            return True

        total = len(orchestrator.config.quiz_items)
        self.console.print(
            Panel(
                f"[bold]{question.prompt}[/bold]\n[dim]{question.question_type.description}[/dim]",
                title=f"Quiz {orchestrator.quiz_index + 1}/{total}",
                border_style="blue",
                box=box.ROUNDED,
            )
        )

        if question.is_free_text:
            answer = Prompt.ask("Your answer [dim](blank to skip, q to quit)[/dim]", default="", show_default=False)
            if answer.strip().lower() == "q":
                return False
            result = orchestrator.submit_text_answer(answer) if answer.strip() else orchestrator.skip_quiz_question()
        else:
            for option in question.options or ():
                self.console.print(f"  [cyan]{option.option_id})[/cyan] {option.text}")
            option_ids = [option.option_id for option in question.options or ()]
            choice = Prompt.ask("Choice [dim](s skip, q quit)[/dim]", choices=[*option_ids, "s", "q"])
            if choice == "q":
                return False
            result = orchestrator.skip_quiz_question() if choice == "s" else orchestrator.submit_option(choice)

        if result is None:
            return True

        style = "green" if result.is_correct else "red"
        self.console.print(f"[{style}]{result.feedback}[/{style}]  Answer: [bold]{question.correct_answer}[/bold]")

        recorded: bool | None = None
        if question.is_free_text and not result.is_correct and result.score > 0:
            recorded = Confirm.ask("Count it as correct?", default=False)
        orchestrator.proceed_quiz(recorded)
        return True

    def _deep_moment_step(self) -> bool:
        orchestrator = self.orchestrator
        question = orchestrator.deep_question or orchestrator.load_deep_question()
        if question is None:
            return True

        self.console.print(Panel(f"[bold]{question.prompt}[/bold]", title="Deep Moment", border_style="magenta"))
        for option in question.options:
            self.console.print(f"  [magenta]{option.option_id})[/magenta] {option.text}")

        option_ids = [option.option_id for option in question.options]
        choice = Prompt.ask("Choice [dim](s skip)[/dim]", choices=[*option_ids, "s"])
        if choice == "s":
            orchestrator.skip_deep_moment()
            return True

        correct = orchestrator.submit_deep_option(choice)
        if correct:
            self.console.print("[green]✓ Locked in![/green]")
        else:
            self.console.print(f"[red]Not quite.[/red] {question.correct_explanation}")
        orchestrator.finish_deep_moment()
        return True

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _on_change(self, snapshot: SessionSnapshot) -> None:
        if snapshot.phase != self._last_phase:
            self._last_phase = snapshot.phase
            if not snapshot.is_complete:
                self._phase_banner(snapshot.phase)

    def _phase_banner(self, phase: SessionPhase) -> None:
        progress = self.orchestrator.overall_progress
        self.console.rule(f"[bold]{phase.display_name}[/bold] [dim]{progress:.0%}[/dim]")

    def _card(self, item: Item, position: str) -> Panel:
        lines = [
            f"[bold cyan]{item.term}[/bold cyan] [dim]{item.part_of_speech}[/dim]",
            "",
            item.definition,
        ]
        if item.example_sentence:
            lines += ["", f"[italic]{item.example_sentence}[/italic]"]
        if item.synonyms:
            lines.append(f"[dim]Synonyms:[/dim] {', '.join(item.synonyms)}")
        if item.mnemonic_hint:
            lines.append(f"[dim]Mnemonic:[/dim] {item.mnemonic_hint}")
        return Panel("\n".join(lines), title=f"Preview {position}", border_style="cyan", box=box.ROUNDED)

    def _summary(self) -> None:
        stats = self.orchestrator.stats
        lines = [
            f"Words previewed: [cyan]{stats.words_previewed}[/cyan]",
            f"Quiz: [green]{stats.quiz_correct}[/green] correct, "
            f"[red]{stats.quiz_incorrect}[/red] incorrect ({stats.accuracy:.0f}%)",
        ]
        if stats.deep_moment_completed:
            lines.append(f"Deep moment: {'[green]correct[/green]' if stats.deep_moment_correct else 'done'}")
        lines.append(f"Words learned today: [bold]{stats.total_words_learned}[/bold]")
        self.console.print(Panel("\n".join(lines), title="[bold green]Session Complete[/bold green]", border_style="green"))
