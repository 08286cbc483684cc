"""CLI for exploring a family dataset with the kinship engine."""

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

app = typer.Typer(
    name="kinship",
    help="Relationship paths, ancestors and relative matching over a family dataset",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    log_level: str = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR"),
):
    """Load .env and configure logging before any command runs."""
    from .config import load_config
    from .logging import configure_logging

    config = load_config()
    level = (log_level or config.log_level).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        console.print(f"[red]Error: Unknown log level: {level}[/red]")
        raise typer.Exit(1)
    configure_logging(level)


def load_dataset(path: Path) -> dict:
    """Read a dataset file into profiles, facts and preferences.

    The file is JSON with ``people``, ``facts`` and optional ``preferences``
    lists, each item shaped like the matching model.
    """
    from .models import MatchingPreference, Person, RelationshipFact

    raw = json.loads(path.read_text())
    return {
        "people": [Person.model_validate(p) for p in raw.get("people", [])],
        "facts": [RelationshipFact.model_validate(f) for f in raw.get("facts", [])],
        "preferences": [MatchingPreference.model_validate(p) for p in raw.get("preferences", [])],
    }


def _read_or_exit(dataset: Path) -> dict:
    if not dataset.exists():
        console.print(f"[red]Error: File not found: {dataset}[/red]")
        raise typer.Exit(1)
    try:
        return load_dataset(dataset)
    except (json.JSONDecodeError, ValueError) as e:
        console.print(f"[red]Error: Invalid dataset: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def path(
    dataset: Path = typer.Argument(..., help="Path to dataset JSON"),
    start: str = typer.Argument(..., help="Person the path starts from"),
    end: str = typer.Argument(..., help="Person the path ends at"),
    max_depth: int = typer.Option(None, "--max-depth", "-d", help="Maximum hops"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """Find the shortest relationship path between two people and classify it."""
    from .config import CONFIG
    from .graph import build_graph, find_relationship

    data = _read_or_exit(dataset)
    graph = build_graph(data["people"], data["facts"])
    result = find_relationship(graph, start, end, max_depth=max_depth or CONFIG.path_max_depth)

    if result is None:
        if as_json:
            console.print_json(data=None)
        else:
            console.print(f"[yellow]No relationship found between {start} and {end}[/yellow]")
        raise typer.Exit(0)

    if as_json:
        console.print_json(data=result.to_dict())
        return

    table = Table(title=f"Path ({result.path.degree} hops)")
    table.add_column("#", style="dim")
    table.add_column("Person", style="cyan")
    table.add_column("Next is their", style="green")
    for i, step in enumerate(result.path.steps):
        table.add_row(
            str(i),
            f"{step.first_name} {step.last_name}".strip() or step.person_id,
            step.relation_to_next.value if step.relation_to_next else "",
        )
    console.print(table)

    k = result.kinship
    lines = [f"[bold]Category:[/bold] {k.category.value}", f"[bold]Generation delta:[/bold] {k.generation_delta}"]
    if k.cousin_degree is not None:
        lines.append(f"[bold]Cousin degree:[/bold] {k.cousin_degree}, removed {k.removal or 0}")
    if k.level is not None:
        lines.append(f"[bold]Level:[/bold] {k.level}")
    lines.append(f"[bold]Degree:[/bold] {k.degree}")
    console.print(Panel("\n".join(lines), title="Kinship"))


@app.command()
def ancestors(
    dataset: Path = typer.Argument(..., help="Path to dataset JSON"),
    person: str = typer.Argument(..., help="Person whose ancestors to list"),
    max_depth: int = typer.Option(None, "--max-depth", "-d", help="Generations to climb"),
):
    """List a person's ancestors, shallowest first."""
    from .config import CONFIG
    from .relatives import enumerate_ancestors, parent_provider_from_facts

    data = _read_or_exit(dataset)
    records = enumerate_ancestors(
        person,
        max_depth or CONFIG.ancestor_max_depth,
        parent_provider_from_facts(data["facts"]),
    )
    if not records:
        console.print(f"[yellow]No ancestors recorded for {person}[/yellow]")
        return

    names = {p.id: p.display_name for p in data["people"]}
    table = Table(title=f"Ancestors of {names.get(person, person)}")
    table.add_column("Depth", style="dim")
    table.add_column("Ancestor", style="cyan")
    table.add_column("Via", style="green")
    for r in records:
        table.add_row(
            str(r.depth),
            names.get(r.ancestor_id, r.ancestor_id),
            " > ".join(names.get(pid, pid) for pid in r.path),
        )
    console.print(table)
    console.print(f"[dim]{len(records)} ancestors[/dim]")


@app.command()
def relatives(
    dataset: Path = typer.Argument(..., help="Path to dataset JSON"),
    person: str = typer.Argument(..., help="Person to find relatives for"),
    max_depth: int = typer.Option(None, "--max-depth", "-d", help="Deepest shared ancestor"),
    limit: int = typer.Option(None, "--limit", "-l", help="Maximum results"),
):
    """Rank opted-in people who share an ancestor with PERSON."""
    from .relatives import AncestorCache, RelativeMatcher
    from .stores import (
        InMemoryAncestorCacheStore,
        InMemoryConnectionRequestStore,
        InMemoryFactStore,
        InMemoryPreferenceStore,
        InMemoryProfileStore,
    )

    data = _read_or_exit(dataset)
    facts = InMemoryFactStore(data["facts"])
    profiles = InMemoryProfileStore(data["people"])
    cache_store = InMemoryAncestorCacheStore()
    cache = AncestorCache(facts, cache_store, profile_store=profiles)
    matcher = RelativeMatcher(
        cache,
        cache_store,
        facts,
        InMemoryPreferenceStore(data["preferences"]),
        InMemoryConnectionRequestStore(),
        profile_store=profiles,
    )

    async def run():
        everyone = {p.id for p in data["people"]}
        for fact in data["facts"]:
            everyone.update((fact.subject_id, fact.object_id))
        await cache.refresh_many(sorted(everyone))
        return await matcher.find_potential_relatives(person, max_depth=max_depth, limit=limit)

    candidates = asyncio.run(run())
    if not candidates:
        console.print(f"[yellow]No potential relatives found for {person}[/yellow]")
        return

    subject = profiles.get(person)
    table = Table(title=f"Potential relatives of {subject.display_name if subject else person}")
    table.add_column("Candidate", style="cyan")
    table.add_column("Shared ancestor", style="green")
    table.add_column("Depths", style="dim")
    table.add_column("Closeness")
    table.add_column("Kinship")
    for c in candidates:
        k = c.relationship
        kinship = k.category.value if k else ""
        if k and k.cousin_degree is not None:
            kinship += f" {k.cousin_degree}/{k.removal or 0}"
        table.add_row(
            c.candidate.display_name if c.candidate else c.candidate_id,
            c.shared_ancestor.display_name if c.shared_ancestor else c.shared_ancestor_id,
            f"{c.subject_depth}/{c.candidate_depth}",
            str(c.closeness),
            kinship,
        )
    console.print(table)


@app.command()
def shared(
    dataset: Path = typer.Argument(..., help="Path to dataset JSON"),
    first: str = typer.Argument(..., help="First person"),
    second: str = typer.Argument(..., help="Second person"),
    max_depth: int = typer.Option(None, "--max-depth", "-d", help="Generations to climb"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
):
    """List the ancestors two people have in common, closest first."""
    from .relatives import AncestorCache
    from .stores import InMemoryAncestorCacheStore, InMemoryFactStore, InMemoryProfileStore

    data = _read_or_exit(dataset)
    cache = AncestorCache(
        InMemoryFactStore(data["facts"]),
        InMemoryAncestorCacheStore(),
        profile_store=InMemoryProfileStore(data["people"]),
    )

    async def run():
        found = await cache.find_shared_ancestors(first, second, max_depth=max_depth)
        await cache.wait_for_background()
        return found

    common = asyncio.run(run())
    if as_json:
        console.print_json(data=[s.to_dict() for s in common])
        return
    if not common:
        console.print(f"[yellow]No shared ancestors between {first} and {second}[/yellow]")
        return

    table = Table(title=f"Shared ancestors of {first} and {second}")
    table.add_column("Ancestor", style="cyan")
    table.add_column(f"Depth from {first}", style="dim")
    table.add_column(f"Depth from {second}", style="dim")
    table.add_column("Closeness")
    for s in common:
        table.add_row(s.name, str(s.first_depth), str(s.second_depth), str(s.closeness))
    console.print(table)


if __name__ == "__main__":
    app()
