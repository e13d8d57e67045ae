"""
Reader AI - CLI Interface
Rich terminal rendering and the interactive recommendation chat
"""

from typing import Optional, Callable, Dict, List

from rich.console import Console
from rich.prompt import Prompt
from rich.panel import Panel
from rich.table import Table
from rich.spinner import Spinner
from rich.live import Live
from rich.markup import escape

import config
from core.logger import log_error
from llm.errors import AIServiceError
from llm.response_parser import Recommendation
from llm.router import display_name, resolve_provider
from memory.chat_session import ChatMessage
from memory.summary_cache import SummaryRecord
from assistant.recommendations import RecommendationConversation, get_recommendation_conversation


def render_summary(console: Console, record: SummaryRecord) -> None:
    """Print a summary card."""
    subtitle = (
        f"{display_name(record.provider_id)} · "
        f"{record.created_datetime.strftime('%Y-%m-%d %H:%M')}"
    )
    console.print(Panel(
        escape(record.text),
        title=f"[bold]{record.book_id} / {record.chapter_id}[/bold]",
        subtitle=subtitle,
        border_style="cyan"
    ))


def render_recommendations(console: Console, recommendations: List[Recommendation]) -> None:
    """Print recommendations as a table."""
    if not recommendations:
        console.print(f"[dim]{escape(config.NO_RECOMMENDATIONS_MESSAGE)}[/dim]")
        return

    table = Table(show_lines=True, border_style="magenta")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Author")
    table.add_column("Why")
    table.add_column("Tags", style="cyan")

    for index, rec in enumerate(recommendations, 1):
        table.add_row(
            str(index), escape(rec.title), escape(rec.author),
            escape(rec.reason), escape(", ".join(rec.tags))
        )

    console.print(table)


def render_message(console: Console, message: ChatMessage) -> None:
    """Print one transcript entry."""
    if message.is_from_user:
        console.print(f"[bold green]You:[/bold green] {escape(message.content)}", highlight=False)
    elif message.is_transient_loading:
        console.print("[dim]AI is thinking...[/dim]")
    elif message.is_transient_welcome:
        console.print(Panel(escape(message.content), border_style="dim"))
    else:
        if message.content:
            console.print(f"[bold magenta]AI:[/bold magenta] {escape(message.content)}", highlight=False)
        if message.recommendations:
            render_recommendations(console, list(message.recommendations))


class ChatCLI:
    """
    Rich CLI for the recommendation chat.

    Provides:
    - Transcript replay on start
    - Slash commands
    - Spinner while a request is in flight
    """

    def __init__(
        self,
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        conversation: Optional[RecommendationConversation] = None
    ):
        self.console = Console()
        self.provider = provider or config.AI_PROVIDER
        self.api_key = api_key if api_key is not None else config.AI_API_KEY
        self.conversation = conversation or get_recommendation_conversation()
        self._running = False
        self._commands: Dict[str, Callable[[str], None]] = {
            "/help": self._cmd_help,
            "/quit": self._cmd_quit,
            "/exit": self._cmd_quit,
            "/clear": self._cmd_clear,
            "/history": self._cmd_history,
            "/provider": self._cmd_provider,
        }

    def start(self) -> None:
        """Start the chat loop."""
        self._running = True

        for message in self.conversation.open():
            render_message(self.console, message)

        while self._running:
            try:
                user_input = Prompt.ask("\n[bold green]You[/bold green]").strip()
            except (KeyboardInterrupt, EOFError):
                self.console.print()
                break

            if not user_input:
                continue

            command = user_input.split(maxsplit=1)[0].lower()
            if command in self._commands:
                argument = user_input[len(command):].strip()
                self._commands[command](argument)
                continue

            self._ask(user_input)

    def _ask(self, query: str) -> None:
        try:
            with Live(Spinner("dots", text="Finding books..."), console=self.console, transient=True):
                reply = self.conversation.ask(self.provider, self.api_key, query)
        except (AIServiceError, ValueError) as e:
            log_error(str(e))
            return

        render_message(self.console, reply)

    def _cmd_help(self, _: str) -> None:
        table = Table(show_header=False, box=None)
        table.add_row("/history", "Show the conversation so far")
        table.add_row("/clear", "Clear the conversation history")
        table.add_row("/provider NAME", "Switch provider (deepseek, glm, gemini)")
        table.add_row("/quit", "Leave the chat")
        self.console.print(table)

    def _cmd_quit(self, _: str) -> None:
        self._running = False

    def _cmd_clear(self, _: str) -> None:
        self.conversation.clear_history()
        for message in self.conversation.messages():
            render_message(self.console, message)

    def _cmd_history(self, _: str) -> None:
        for message in self.conversation.messages():
            render_message(self.console, message)

    def _cmd_provider(self, argument: str) -> None:
        if not argument:
            self.console.print(f"Current provider: {display_name(self.provider)}")
            return
        try:
            self.provider = resolve_provider(argument).value
        except AIServiceError as e:
            log_error(str(e))
            return
        self.console.print(f"Provider set to {display_name(self.provider)}")
