"""blog-indexer CLI 인터페이스.

게시글 인덱싱, 인덱싱 큐 조회, 재시도 스윕, 블로그 인덱스 검색 명령어 제공.

종료 코드:
    0: 성공
    1: 일반/입력 오류 (잘못된 인자, 파일 없음, 잘못된 게시글 JSON)
    2: 설정 오류 (엔드포인트 누락, 잘못된 청크 파라미터)
    3: 연결 오류 (검색 서비스, 네트워크 문제)
    4: 인덱싱 오류 (인덱싱 실패, 재시도 실패 포함)
    5: 내부 오류 (예상치 못한 예외)
"""

import json
import time
from enum import IntEnum
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .config import get_settings
from .errors import ConfigError, SearchQueryError, StorageError
from .logging_config import Loggers, configure_logging
from .models import IndexingOutboxEntry, IndexingStatus, Post
from .scheduler import RetryScheduler, get_scheduler
from .services import IndexPublisher, IndexingOutcome, build_pipeline
from .services.publisher import SORT_ORDERS
from .storage import get_storage


class ExitCode(IntEnum):
    """CLI 작업을 위한 표준화된 종료 코드."""

    SUCCESS = 0  # 성공
    INPUT_ERROR = 1  # 잘못된 인자, 파일 없음
    CONFIG_ERROR = 2  # 엔드포인트 누락, 잘못된 설정
    CONNECTION_ERROR = 3  # 검색 서비스, 네트워크 문제
    INDEXING_ERROR = 4  # 인덱싱/재시도 실패
    INTERNAL_ERROR = 5  # 예상치 못한 예외


app = typer.Typer(
    name="blog-indexer",
    help="Blog search indexer - index posts into the blog and RAG search indexes",
    add_completion=False,
)

queue_app = typer.Typer(help="Indexing queue (outbox) operations")
retry_app = typer.Typer(help="Retry failed indexing")
scheduler_app = typer.Typer(help="Scheduler operations")

app.add_typer(queue_app, name="queue")
app.add_typer(retry_app, name="retry")
app.add_typer(scheduler_app, name="scheduler")

console = Console()
logger = Loggers.cli()

STATUS_COLORS = {
    IndexingStatus.SUCCESS: "green",
    IndexingStatus.FAILED: "red",
    IndexingStatus.PENDING: "yellow",
}


def _fmt_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S") if value else "-"


def _status_cell(status: IndexingStatus) -> str:
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status.value}[/{color}]"


def _print_outcome(outcome: IndexingOutcome) -> None:
    table = Table(title=f"Post {outcome.post_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Status", _status_cell(outcome.status))
    table.add_row("Attempts", str(outcome.attempts))
    table.add_row("Chunks", str(outcome.chunk_count))
    if outcome.error:
        table.add_row("Error", f"[red]{outcome.error}[/red]")

    console.print(table)


def _print_entry(entry: IndexingOutboxEntry) -> None:
    panel_content = f"""
[bold]Post ID:[/bold] {entry.post_id}
[bold]Status:[/bold] {_status_cell(entry.status)}
[bold]Attempts:[/bold] {entry.attempts}
[bold]Next Retry:[/bold] {_fmt_time(entry.next_retry_at)}
[bold]Last Error:[/bold] {entry.last_error or "-"}
[bold]Updated:[/bold] {_fmt_time(entry.updated_at)}
"""
    console.print(Panel(panel_content, title=f"Queue Entry: {entry.post_id}"))


def _publisher() -> IndexPublisher:
    settings = get_settings()
    if not settings.search.is_configured:
        console.print("[red]SEARCH_ENDPOINT and SEARCH_API_KEY must be set.[/red]")
        raise typer.Exit(ExitCode.CONFIG_ERROR)
    return IndexPublisher.from_settings(settings.search)


def _search_failed(error: SearchQueryError) -> None:
    logger.error("검색 실패", index=error.index_name, status_code=error.status_code, error=error.message)
    console.print(f"[red]Search error: {error.message}[/red]")
    raise typer.Exit(ExitCode.CONNECTION_ERROR)


# ==================== Index Command ====================


@app.command("index")
def index(
    post_file: Path = typer.Argument(..., help="Post JSON file (posts row with categories/tags)"),
):
    """Index a single post from a JSON file."""
    if not post_file.exists():
        console.print(f"[red]File not found: {post_file}[/red]")
        raise typer.Exit(ExitCode.INPUT_ERROR)

    try:
        post = Post.model_validate(json.loads(post_file.read_text(encoding="utf-8")))
    except (ValueError, ValidationError) as e:
        console.print(f"[red]Invalid post JSON: {e}[/red]")
        raise typer.Exit(ExitCode.INPUT_ERROR)

    try:
        service = build_pipeline()
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e.message}[/red]")
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    with service:
        with console.status("Indexing..."):
            outcome = service.on_post_saved(post)

    _print_outcome(outcome)
    if not outcome.succeeded:
        logger.error("게시글 인덱싱 실패", post_id=outcome.post_id, error=outcome.error)
        raise typer.Exit(ExitCode.INDEXING_ERROR)


# ==================== Queue Commands ====================


@queue_app.command("list")
def queue_list(
    status: Optional[IndexingStatus] = typer.Option(None, "--status", "-s", help="Filter by status"),
):
    """List indexing queue entries."""
    entries = get_storage().list_queue_entries(status=status)

    if not entries:
        console.print("[yellow]No queue entries.[/yellow]")
        return

    table = Table(title="Indexing Queue")
    table.add_column("Post ID", style="cyan", no_wrap=True)
    table.add_column("Status", style="magenta")
    table.add_column("Attempts", style="blue")
    table.add_column("Next Retry", style="yellow")
    table.add_column("Last Error", style="red")

    for entry in entries:
        error = entry.last_error or "-"
        if len(error) > 60:
            error = error[:60] + "..."
        table.add_row(
            str(entry.post_id),
            _status_cell(entry.status),
            str(entry.attempts),
            _fmt_time(entry.next_retry_at),
            error,
        )

    console.print(table)


@queue_app.command("show")
def queue_show(
    post_id: int = typer.Argument(..., help="Post ID"),
):
    """Show the indexing queue entry of a post."""
    entry = get_storage().get_queue_entry(post_id)
    if not entry:
        console.print(f"[red]Queue entry not found: {post_id}[/red]")
        raise typer.Exit(ExitCode.INPUT_ERROR)

    _print_entry(entry)


# ==================== Retry Commands ====================


@retry_app.command("run")
def retry_run():
    """Run one retry sweep over due failed entries."""
    settings = get_settings()
    try:
        service = build_pipeline(settings)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e.message}[/red]")
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    with service:
        with console.status("Retrying..."):
            report = RetryScheduler(service).sweep()

    table = Table(title="Retry Sweep")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Retried", str(report.retried))
    table.add_row("Succeeded", str(report.succeeded))
    table.add_row("Failed", str(report.failed))
    table.add_row("Skipped", str(report.skipped))

    console.print(table)

    if report.failed:
        raise typer.Exit(ExitCode.INDEXING_ERROR)


# ==================== Search Commands ====================


@app.command("search")
def search(
    query: str = typer.Argument("", help="Search query (empty for all)"),
    sort: str = typer.Option("updated", "--sort", help=f"Sort order ({'/'.join(SORT_ORDERS)})"),
    page: int = typer.Option(1, "--page", "-p", min=1, help="Page number (20 per page)"),
    tag: Optional[str] = typer.Option(None, "--tag", "-t", help="Filter by tag name"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Filter by category name"),
):
    """Search the blog index."""
    with _publisher() as publisher:
        with console.status("Searching..."):
            try:
                result = publisher.search(query, sort=sort, page=page, tag=tag, category=category)
            except SearchQueryError as e:
                _search_failed(e)

    if not result.value:
        console.print("[yellow]No results found.[/yellow]")
        return

    console.print(f"\n[bold]{result.count} results[/bold] (page {page})\n")

    table = Table()
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="green")
    table.add_column("Views", style="blue")
    table.add_column("Likes", style="magenta")
    table.add_column("Tags", style="yellow")

    for doc in result.value:
        table.add_row(
            str(doc.get("id", "")),
            str(doc.get("title", "")),
            str(doc.get("view_count", 0)),
            str(doc.get("like_count", 0)),
            ", ".join(doc.get("tags") or []),
        )

    console.print(table)


@app.command("facets")
def facets():
    """Show tag and category counts in the blog index."""
    with _publisher() as publisher:
        try:
            summary = publisher.facets()
        except SearchQueryError as e:
            _search_failed(e)

    for title, values in (("Tags", summary.tags), ("Categories", summary.categories)):
        table = Table(title=title)
        table.add_column("Name", style="cyan")
        table.add_column("Count", style="green")
        for facet in values:
            table.add_row(str(facet.value), str(facet.count))
        console.print(table)


# ==================== Scheduler Commands ====================


@scheduler_app.command("start")
def scheduler_start(
    interval: Optional[int] = typer.Option(None, "--interval", "-i", min=1, help="Sweep interval in seconds"),
    foreground: bool = typer.Option(False, "--foreground", "-f", help="Run in foreground"),
):
    """Start the retry scheduler."""
    try:
        scheduler = get_scheduler(interval_seconds=interval)
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e.message}[/red]")
        raise typer.Exit(ExitCode.CONFIG_ERROR)

    scheduler.start()
    console.print("[green]✓ Scheduler started.[/green]")
    console.print(f"  Interval: {scheduler.interval_seconds}s")

    if foreground:
        console.print("[yellow]Running in foreground. Press Ctrl+C to stop.[/yellow]")
        try:
            while True:
                time.sleep(1)
        except KeyboardInterrupt:
            scheduler.stop()
            console.print("\n[yellow]Scheduler stopped.[/yellow]")


# ==================== Main Entry Point ====================


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs as JSON"),
):
    """Blog search indexer CLI."""
    log_level = "DEBUG" if verbose else "INFO"
    configure_logging(level=log_level, json_format=json_logs)


def cli():
    """CLI 진입점.

    전역 예외 처리를 통해 적절한 종료 코드 반환.
    """
    try:
        app()
    except SearchQueryError as e:
        console.print(f"[red]Search error: {e.message}[/red]")
        raise SystemExit(ExitCode.CONNECTION_ERROR)
    except StorageError as e:
        console.print(f"[red]Storage error: {e.message}[/red]")
        raise SystemExit(ExitCode.INTERNAL_ERROR)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user.[/yellow]")
        raise SystemExit(ExitCode.SUCCESS)
    except Exception as e:
        console.print(f"[red]Internal error: {e}[/red]")
        raise SystemExit(ExitCode.INTERNAL_ERROR)


if __name__ == "__main__":
    cli()
