"""
CLI Main - Typer-based command-line interface.

Usage:
    designbox ask "推荐免费的配色工具"
    designbox ask "红色 3D 医疗 图标" --stream
    designbox clarify "图标" "医疗"
    designbox similar tailwind
    designbox build-index
    designbox serve
"""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from designbox.config.errors import DesignBoxError
from designbox.domains.guidance import ClarificationQuestion
from designbox.domains.search import SearchFilters, SearchResult

app = typer.Typer(
    name="designbox",
    help="DesignBox - Conversational design resource assistant",
    add_completion=False,
)
console = Console()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging from settings."""
    from designbox.config import get_settings

    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _filters(
    categories: list[str] | None,
    min_rating: float | None,
    max_results: int | None,
) -> SearchFilters | None:
    if not categories and min_rating is None and max_results is None:
        return None
    return SearchFilters(categories=categories or None, min_rating=min_rating, max_results=max_results)


def _print_results(results: list[SearchResult], title: str = "Resources") -> None:
    """Render search results as a table."""
    table = Table(title=title)
    table.add_column("#", style="dim")
    table.add_column("Resource", style="cyan", no_wrap=True)
    table.add_column("Rating", style="green")
    table.add_column("Score")
    table.add_column("Why")

    for i, result in enumerate(results, 1):
        table.add_row(
            str(i),
            result.resource.name,
            f"{result.resource.rating.overall:.1f}",
            f"{result.similarity:.0%}",
            result.match_reason,
        )

    console.print(table)


def _print_questions(questions: list[ClarificationQuestion]) -> None:
    """Render clarification questions with their quick replies."""
    lines = []
    for i, question in enumerate(questions, 1):
        lines.append(f"[bold]{i}. {question.question}[/bold]")
        lines.append("   " + " / ".join(question.options))
    console.print(Panel("\n".join(lines), title="Clarification", style="yellow"))
    console.print('[dim]Answer with: designbox clarify "<query>" "<answer>"[/dim]')


@app.command()
def ask(
    query: str = typer.Argument(..., help="What you are looking for"),
    stream: bool = typer.Option(False, "--stream", "-s", help="Stream the answer"),
    category: list[str] | None = typer.Option(None, "--category", "-c", help="Restrict to category (repeatable)"),
    min_rating: float | None = typer.Option(None, "--min-rating", "-r", min=0.0, max=5.0, help="Minimum rating"),
    max_results: int | None = typer.Option(None, "--max-results", "-n", min=1, max=50, help="Number of results"),
) -> None:
    """Ask for design resources."""
    filters = _filters(category, min_rating, max_results)
    if stream:
        asyncio.run(_ask_stream_async(query, filters))
    else:
        asyncio.run(_ask_async(query, filters))


async def _ask_async(query: str, filters: SearchFilters | None) -> None:
    """Async batch turn."""
    from designbox.bootstrap import build_services

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Loading catalog and index...", total=None)
        try:
            services = await build_services()
        except DesignBoxError as e:
            console.print(f"[red]Error:[/red] {e.message}")
            raise typer.Exit(1)

        progress.update(task, description="Thinking...")
        try:
            response = await services.engine.respond(query, filters)
        finally:
            await services.aclose()

    if response.needs_clarification:
        _print_questions(response.clarification_questions or [])
        return

    if response.search_results:
        _print_results(response.search_results)

    console.print()
    console.print(response.content)
    console.print(
        f"\n[dim]{len(response.search_results)} results in {response.processing_time_ms} ms"
        f"{' (cached)' if response.from_cache else ''}[/dim]"
    )


async def _ask_stream_async(query: str, filters: SearchFilters | None) -> None:
    """Async streamed turn."""
    from designbox.bootstrap import build_services

    try:
        services = await build_services()
    except DesignBoxError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    try:
        async for chunk in services.engine.respond_stream(query, filters):
            if chunk.needs_clarification:
                _print_questions(chunk.clarification_questions or [])
            elif chunk.search_results:
                _print_results(chunk.search_results)
                console.print()
            elif chunk.chunk:
                console.print(chunk.chunk, end="")
            if chunk.is_complete:
                console.print()
    finally:
        await services.aclose()


@app.command()
def clarify(
    query: str = typer.Argument(..., help="The original query"),
    answer: str = typer.Argument(..., help="Your answer to a clarification question"),
) -> None:
    """Answer a clarification question and search again."""
    asyncio.run(_clarify_async(query, answer))


async def _clarify_async(query: str, answer: str) -> None:
    """Async clarification turn."""
    from designbox.bootstrap import build_services

    try:
        services = await build_services()
    except DesignBoxError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)

    try:
        response = await services.engine.handle_clarification(query, answer)
    finally:
        await services.aclose()

    if response.needs_clarification:
        _print_questions(response.clarification_questions or [])
        return

    console.print(f"[yellow]Searching for:[/yellow] {response.analysis.normalized_query}\n")
    if response.search_results:
        _print_results(response.search_results)
    console.print()
    console.print(response.content)


@app.command()
def similar(
    resource_id: str = typer.Argument(..., help="Resource id"),
    limit: int = typer.Option(5, "--limit", "-n", min=1, max=20, help="Number of results"),
) -> None:
    """Show resources similar to an indexed one."""
    asyncio.run(_similar_async(resource_id, limit))


async def _similar_async(resource_id: str, limit: int) -> None:
    """Async similarity lookup."""
    from designbox.bootstrap import build_services

    services = None
    try:
        services = await build_services()
        results = await services.engine.similar_resources(resource_id, limit)
    except DesignBoxError as e:
        console.print(f"[red]Error:[/red] {e.message}")
        raise typer.Exit(1)
    finally:
        if services is not None:
            await services.aclose()

    if not results:
        console.print(f"[yellow]No resources similar to {resource_id}[/yellow]")
        return
    _print_results(results, title=f"Similar to {resource_id}")


@app.command("build-index")
def build_index_command(
    rebuild: bool = typer.Option(True, "--rebuild/--reuse", help="Re-embed even if a saved index exists"),
) -> None:
    """Embed the catalog and persist a FAISS index."""
    asyncio.run(_build_index_async(rebuild))


async def _build_index_async(rebuild: bool) -> None:
    """Async index build."""
    from designbox.adapters.llm import build_registry
    from designbox.bootstrap import build_index
    from designbox.config import get_settings
    from designbox.domains.catalog import JsonResourceCatalog

    settings = get_settings().model_copy(update={"index_backend": "faiss"})
    registry = build_registry(settings)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Loading catalog...", total=None)
        try:
            resources = await JsonResourceCatalog(settings.corpus_path).load()
            progress.update(task, description=f"Embedding {len(resources)} resources...")
            index = await build_index(
                settings,
                registry.get(settings.embedding_provider),
                resources,
                rebuild=rebuild,
            )
        except DesignBoxError as e:
            console.print(f"[red]Error:[/red] {e.message}")
            raise typer.Exit(1)
        finally:
            await registry.close()

    console.print("\n[green]Index ready[/green]")
    console.print(f"[dim]{index.size} vectors at {settings.index_path}[/dim]")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind"),
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    from designbox.config import get_settings

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    console.print("\n[green]Starting DesignBox API server[/green]")
    console.print(f"[dim]http://{host}:{port}[/dim]\n")

    uvicorn.run(
        "designbox.interfaces.api:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version() -> None:
    """Show version information."""
    from designbox import __version__

    console.print(f"DesignBox v{__version__}")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
