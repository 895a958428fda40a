"""CLI entry point — Typer app for chatkb commands.

Usage:
    chatkb chunk messages.json --threshold 0.75
    chatkb ingest messages.json --channel 1234567890
    chatkb status

Message files are JSON lists of objects with ``content``, ``author``,
``timestamp`` and ``isTeam`` (or ``is_team``) keys.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

app = typer.Typer(
    name="chatkb",
    help="Chat knowledge base — semantic chunking and ingestion.",
    no_args_is_help=True,
)

console = Console()

_MESSAGES_PATH = typer.Argument(..., help="JSON file with a list of messages")


def _load_messages(path: Path) -> list:
    from chatkb.chunking.schemas import Message

    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise typer.BadParameter("Expected a JSON list of messages")
    return [Message.from_dict(item) for item in data]


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Configure logging for all commands."""
    level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "WARNING")
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def chunk(
    path: Annotated[Path, _MESSAGES_PATH],
    threshold: float | None = typer.Option(
        None, "--threshold", "-t", min=-1.0, max=1.0, help="Similarity threshold (-1 to 1)",
    ),
    min_length: int | None = typer.Option(
        None, "--min-length", min=0, help="Drop chunks shorter than this",
    ),
    max_length: int | None = typer.Option(
        None, "--max-length", min=1, help="Truncate chunks longer than this",
    ),
    embedding_provider: str | None = typer.Option(
        None, "--embedding", "-e", help="Embedding provider",
    ),
    as_json: bool = typer.Option(False, "--json", help="Print chunks as JSON"),
) -> None:
    """Chunk a message file and print the result."""
    from chatkb.chunking.semantic_chunker import SemanticChunker
    from chatkb.config import load_settings
    from chatkb.embeddings.factory import embedding_provider_from_settings

    settings = load_settings()
    if threshold is not None:
        settings.chunking.threshold = threshold
    if min_length is not None:
        settings.chunking.min_chunk_length = min_length
    if max_length is not None:
        settings.chunking.max_chunk_length = max_length

    messages = _load_messages(path)
    emb = embedding_provider_from_settings(settings.embedding, embedding_provider)
    chunker = SemanticChunker(
        emb,
        options=settings.chunking.to_options(),
        batch_delay=settings.embedding.batch_delay,
    )
    chunks = chunker.chunk(messages)

    if as_json:
        console.print_json(json.dumps([c.to_dict() for c in chunks]))
        return

    table = Table(title=f"{len(chunks)} chunks from {len(messages)} messages")
    table.add_column("#", style="cyan")
    table.add_column("Role")
    table.add_column("Timestamp")
    table.add_column("Sentences")
    table.add_column("Content")

    for i, c in enumerate(chunks):
        table.add_row(
            str(i),
            c.author_role.value,
            str(c.message_timestamp),
            str(c.metadata.sentence_count),
            c.content[:80],
        )

    console.print(table)


@app.command()
def ingest(
    path: Annotated[Path, _MESSAGES_PATH],
    channel: str = typer.Option(..., "--channel", "-c", help="Channel id"),
    topic: str | None = typer.Option(None, "--topic", help="Topic tag for all chunks"),
    store_path: Path | None = typer.Option(
        None, "--store-path", "-s", help="Knowledge base directory",
    ),
    embedding_provider: str | None = typer.Option(
        None, "--embedding", "-e", help="Embedding provider",
    ),
) -> None:
    """Chunk, embed and store a message file in the knowledge base."""
    from chatkb.chunking.semantic_chunker import SemanticChunker
    from chatkb.config import load_settings
    from chatkb.embeddings.factory import embedding_provider_from_settings
    from chatkb.pipeline.ingest import IngestPipeline
    from chatkb.vectorstore.faiss_store import FAISSStore

    settings = load_settings()
    kb_path = store_path or Path(settings.vectorstore.path)

    messages = _load_messages(path)
    emb = embedding_provider_from_settings(settings.embedding, embedding_provider)
    store = FAISSStore.open(kb_path, dimension=emb.dimension)

    chunker = SemanticChunker(
        emb,
        options=settings.chunking.to_options(),
        batch_delay=settings.embedding.batch_delay,
    )
    pipeline = IngestPipeline(
        embedding_provider=emb,
        vector_store=store,
        chunker=chunker,
        batch_size=settings.ingestion.store_batch_size,
        batch_delay=settings.embedding.batch_delay,
    )
    result = pipeline.ingest_messages(
        messages,
        channel_id=channel,
        topic_tag=topic,
        source_type=settings.ingestion.source_type,
    )

    if not result.skipped and result.chunks_stored:
        store.save(str(kb_path))

    console.print(f"\n[bold green]Ingested:[/] {path.name} → channel {channel}")
    console.print(f"  Document: {result.doc_id}")
    console.print(f"  Chunks: {result.chunks_created}")
    console.print(f"  Embedded: {result.chunks_embedded}")
    console.print(f"  Stored: {result.chunks_stored}")

    for w in result.warnings:
        console.print(f"  [yellow]Warning:[/] {w}")


@app.command()
def status() -> None:
    """Show available providers, stores and effective settings."""
    from chatkb.config import load_settings
    from chatkb.embeddings.factory import available_providers
    from chatkb.vectorstore.faiss_store import FAISSStore

    settings = load_settings()

    console.print("\n[bold green]chatkb[/] v0.1.0\n")

    table = Table(title="Available Components")
    table.add_column("Layer", style="cyan")
    table.add_column("Available")
    table.add_row("Embedding Providers", ", ".join(available_providers()))
    table.add_row("Vector Store", f"{FAISSStore.store_name()} (faiss)")
    console.print(table)

    cfg = Table(title="Settings")
    cfg.add_column("Key", style="cyan")
    cfg.add_column("Value")
    cfg.add_row("embedding.provider", settings.embedding.provider)
    cfg.add_row("embedding.model", settings.embedding.model or "(provider default)")
    cfg.add_row(
        "embedding.dimension",
        str(settings.embedding.dimension or "(provider default)"),
    )
    cfg.add_row("chunking.threshold", str(settings.chunking.threshold))
    cfg.add_row("chunking.min_chunk_length", str(settings.chunking.min_chunk_length))
    cfg.add_row("chunking.max_chunk_length", str(settings.chunking.max_chunk_length))
    cfg.add_row("vectorstore.path", settings.vectorstore.path)
    console.print(cfg)


if __name__ == "__main__":
    app()
