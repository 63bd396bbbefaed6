import typer
import os
from pathlib import Path
from typing import Optional
import logging
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .processing_service import StoryProcessingService
from .llm_service import get_llm_service
from .models import StoryConfiguration, GeneratedStory

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize Typer app
app = typer.Typer(
    name="storyteller",
    help="Turn PDF documents into illustrated four phase stories using AI",
    add_completion=False
)

# Initialize console for rich output
console = Console()

@app.command()
def create(
    pdf_path: str = typer.Argument(..., help="Path to the PDF file to process"),
    language: str = typer.Option("de", "--language", "-l", help="Story language (de or en)"),
    mood: str = typer.Option("neutral", "--mood", "-m", help="Story mood, e.g. adventure, horror, happy"),
    keywords: Optional[str] = typer.Option(None, "--keywords", "-k", help="Comma separated keywords to weave in"),
    output_dir: str = typer.Option("outputs", "--output", "-o", help="Output directory for the story JSON and PDF"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging")
):
    """Generate a story from a PDF file"""

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # Validate inputs
    if not os.path.exists(pdf_path):
        console.print(f"[red]Error: PDF file not found: {pdf_path}[/red]")
        raise typer.Exit(1)

    if not pdf_path.lower().endswith('.pdf'):
        console.print("[red]Error: File must be a PDF[/red]")
        raise typer.Exit(1)

    if language not in ("de", "en"):
        console.print("[red]Error: Language must be 'de' or 'en'[/red]")
        raise typer.Exit(1)

    config = StoryConfiguration.from_form(language, mood, keywords)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console
        ) as progress:
            task = progress.add_task("Initializing services...", total=None)
            processing_service = StoryProcessingService()

            progress.update(task, description="Generating story...")
            with open(pdf_path, "rb") as f:
                pdf_bytes = f.read()
            story = processing_service.create_story_from_pdf(pdf_bytes, Path(pdf_path).name, config)

            progress.update(task, description="Exporting...")
            json_content = processing_service.export_story_as_json(story.id)
            pdf_content = processing_service.export_story_as_pdf(story.id)

    except Exception as e:
        console.print(f"[red]Error generating story: {str(e)}[/red]")
        raise typer.Exit(1)

    os.makedirs(output_dir, exist_ok=True)
    json_path = Path(output_dir) / f"story-{story.id}.json"
    pdf_out_path = Path(output_dir) / f"story-{story.id}.pdf"
    json_path.write_text(json_content, encoding="utf-8")
    pdf_out_path.write_bytes(pdf_content)

    console.print(f"[green]✓ Story generated: {story.id}[/green]")
    display_story(story)
    console.print(f"[green]✓ JSON saved to: {json_path}[/green]")
    console.print(f"[green]✓ PDF saved to: {pdf_out_path}[/green]")

@app.command()
def check():
    """Check that the AI endpoint is reachable with the configured key"""
    try:
        llm_service = get_llm_service()
    except ValueError as e:
        console.print(f"[red]Configuration error: {str(e)}[/red]")
        raise typer.Exit(1)

    if llm_service.test_connection():
        console.print(f"[green]✓ Connected to {llm_service.base_url} using {llm_service.text_model}[/green]")
    else:
        console.print("[red]✗ Could not reach the AI endpoint, see the log for details[/red]")
        raise typer.Exit(1)

def display_story(story: GeneratedStory):
    """Display the phases of a story"""
    console.print(f"\n[bold blue]{story.title}[/bold blue]")
    console.print(f"[dim]Source: {story.source_file_name}[/dim]")
    console.print(f"[dim]Created: {story.created_at.isoformat()}[/dim]\n")

    table = Table(title="Story Phases")
    table.add_column("#", style="cyan")
    table.add_column("Phase", style="magenta")
    table.add_column("Mood")
    table.add_column("Image")
    table.add_column("Summary")

    for phase in sorted(story.phases, key=lambda p: p.order):
        summary = phase.summary[:100] + ('...' if len(phase.summary) > 100 else '')
        table.add_row(
            str(phase.order + 1),
            phase.name,
            phase.mood,
            "✓" if phase.image_data else "✗",
            summary
        )

    console.print(table)

@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Host to bind the server to"),
    port: int = typer.Option(8000, "--port", help="Port to bind the server to"),
    reload: bool = typer.Option(False, "--reload", help="Restart the server when source files change")
):
    """Start the FastAPI server"""

    console.print(f"[green]Starting server on {host}:{port}[/green]")

    import uvicorn
    uvicorn.run("src.storyteller.api:app", host=host, port=port, reload=reload)

if __name__ == "__main__":
    app()
