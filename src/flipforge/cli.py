"""CLI interface for flipforge."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn, TimeRemainingColumn
from rich.table import Table

from . import __version__
from .checkers import DnsWhoisAvailabilityChecker, MockAvailabilityChecker
from .checkers.availability import with_tld
from .config import Settings, get_settings
from .exceptions import FlipforgeError
from .generators import TemplateExpander
from .models import MultiScoreResult
from .pipeline import DomainAgent, generate_candidates


console = Console()

BUCKET_STYLES = {
    'FAST-FLIP': 'bold green',
    'HOLD': 'yellow',
    'PASS': 'dim',
}


def setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )
    # Suppress noisy library logs (socket, whois, dns, http)
    logging.getLogger("whois").setLevel(logging.CRITICAL)
    logging.getLogger("dns").setLevel(logging.CRITICAL)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [v.strip() for v in value.split(',') if v.strip()]


def load_job(path: Optional[str]) -> Dict[str, Any]:
    """Load a job file (YAML or JSON) describing packs, templates and constraints."""
    if not path:
        return {}
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise click.BadParameter(f"{path} must contain a mapping", param_hint='--job')
    return data


def build_job(job, a, b, c, prefixes, suffixes, templates, max_len, hyphens, numbers, banned, ugly) -> Dict[str, Any]:
    """Merge a job file with command-line overrides."""
    data = load_job(job)
    packs = dict(data.get('packs') or {})
    for label, value in (('A', a), ('B', b), ('C', c)):
        if value:
            packs[label] = split_csv(value)

    multipliers = dict(data.get('multipliers') or {})
    if prefixes:
        multipliers['prefixes'] = split_csv(prefixes)
    if suffixes:
        multipliers['suffixes'] = split_csv(suffixes)

    constraints = dict(data.get('constraints') or {})
    if max_len is not None:
        constraints['maxLen'] = max_len
    if hyphens is not None:
        constraints['noHyphens'] = not hyphens
    if numbers is not None:
        constraints['noNumbers'] = not numbers
    if banned:
        constraints['banned'] = split_csv(banned)
    if ugly is not None:
        constraints['avoidUglyClusters'] = not ugly

    return {
        'packs': packs,
        'multipliers': multipliers,
        'templates': list(templates) or data.get('templates') or None,
        'constraints': constraints,
        'data': data,
    }


def generation_options(f):
    """Options shared by commands that expand word packs."""
    options = [
        click.option('--job', '-j', default=None, type=click.Path(exists=True, dir_okay=False),
                     help='YAML/JSON job file with packs, multipliers, templates and constraints'),
        click.option('--a', 'a', default=None, help='Pack A words (comma-separated)'),
        click.option('--b', 'b', default=None, help='Pack B words (comma-separated)'),
        click.option('--c', 'c', default=None, help='Pack C words (comma-separated)'),
        click.option('--prefixes', default=None, help='Prefix multipliers (comma-separated)'),
        click.option('--suffixes', default=None, help='Suffix multipliers (comma-separated)'),
        click.option('--template', '-T', 'templates', multiple=True,
                     type=click.Choice(TemplateExpander.known_templates()),
                     help='Template to apply (repeatable, default A+B)'),
        click.option('--max-len', default=None, type=int, help='Maximum domain length (default 12)'),
        click.option('--hyphens/--no-hyphens', default=None, help='Allow hyphens'),
        click.option('--numbers/--no-numbers', default=None, help='Allow digits'),
        click.option('--banned', default=None, help='Banned substrings (comma-separated)'),
        click.option('--ugly/--no-ugly', default=None, help='Allow ugly letter clusters'),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def write_json(output: str, payload: Any):
    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as fp:
        json.dump(payload, fp, indent=2)
    console.print(f"[green]Saved to {output}[/green]")


def print_results(results: List[Any], title: str, availability: Optional[Dict[str, Any]] = None):
    table = Table(title=title)
    table.add_column("Domain", style="cyan")
    multi = bool(results) and isinstance(results[0], MultiScoreResult)

    if multi:
        table.add_column("Best", justify="right", style="green")
        table.add_column("Avg", justify="right")
        table.add_column("Persona")
    else:
        table.add_column("Score", justify="right", style="green")
    table.add_column("Bucket")
    table.add_column("Template", style="dim")
    table.add_column("Reason")
    if availability is not None:
        table.add_column("Avail", justify="center")
        table.add_column("Price", justify="right")

    for r in results:
        bucket = f"[{BUCKET_STYLES.get(r.bucket, '')}]{r.bucket}[/]"
        if multi:
            row = [r.domain, f"{r.best_score:.1f}", f"{r.avg_score:.1f}", r.best_preset_name]
        else:
            row = [r.domain, f"{r.score:.1f}"]
        row += [bucket, r.template_used or "-", r.reason]
        if availability is not None:
            check = availability.get(r.domain)
            if check is None:
                row += ["-", "-"]
            else:
                icon = "[green]Y[/green]" if check.available is True else "[red]N[/red]" if check.available is False else "[yellow]?[/yellow]"
                row += [icon, f"${check.price:.2f}" if check.price else "-"]
        table.add_row(*row)

    console.print(table)


def make_checker(real: bool, seed: Optional[int], verify: bool = True):
    if real:
        return DnsWhoisAvailabilityChecker(verify_with_whois=verify)
    return MockAvailabilityChecker(seed=seed)


@click.group()
@click.version_option(version=__version__)
@click.option('--config', '-c', 'config_path', default=None, help='Path to config YAML')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, config_path, verbose):
    """flipforge - Generate and score brandable domain names."""
    setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


def _settings(ctx) -> Settings:
    try:
        return get_settings(ctx.obj.get('config_path'))
    except FlipforgeError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)


def _agent(ctx, settings: Settings) -> DomainAgent:
    try:
        return DomainAgent(settings)
    except FlipforgeError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)


@cli.command()
@generation_options
@click.option('--output', '-o', default=None, help='Output file (JSON)')
@click.pass_context
def generate(ctx, job, a, b, c, prefixes, suffixes, templates, max_len, hyphens, numbers, banned, ugly, output):
    """Expand packs through templates and filter, without scoring."""
    settings = _settings(ctx)
    plan = build_job(job, a, b, c, prefixes, suffixes, templates, max_len, hyphens, numbers, banned, ugly)

    try:
        with console.status("[bold green]Generating candidates..."):
            candidates = generate_candidates(
                plan['packs'], plan['multipliers'], plan['templates'], plan['constraints'],
                max_candidates=settings.pipeline.max_candidates
            )
    except FlipforgeError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)

    console.print(f"[bold]Total unique candidates:[/bold] {len(candidates)}")

    if output:
        write_json(output, [
            {'domain': cand.domain, 'template': cand.template, 'sources': cand.trace}
            for cand in candidates
        ])
    elif candidates:
        console.print("\n[bold]Sample candidates:[/bold]")
        console.print(", ".join(cand.domain for cand in candidates[:20]))


@cli.command()
@generation_options
@click.option('--mode', '-m', default=None, help='Target niche for single-persona scoring')
@click.option('--preset', '-p', 'preset_ids', multiple=True, help='Persona id to score against (repeatable)')
@click.option('--top-k', '-k', default=None, type=int, help='Number of results to keep')
@click.option('--check/--no-check', 'check_availability', default=False, help='Check availability of results')
@click.option('--tld', default='com', help='TLD used for availability checks')
@click.option('--real/--mock', default=False, help='Use DNS/WHOIS instead of the mock checker')
@click.option('--seed', default=None, type=int, help='Seed for the mock checker')
@click.option('--output', '-o', default=None, help='Output file (JSON)')
@click.pass_context
def hunt(ctx, job, a, b, c, prefixes, suffixes, templates, max_len, hyphens, numbers, banned, ugly,
         mode, preset_ids, top_k, check_availability, tld, real, seed, output):
    """Full pipeline: generate, filter, score and rank."""
    settings = _settings(ctx)
    plan = build_job(job, a, b, c, prefixes, suffixes, templates, max_len, hyphens, numbers, banned, ugly)
    data = plan['data']

    mode = mode or data.get('mode')
    top_k = top_k or data.get('topK')
    preset_ids = list(preset_ids) or data.get('presetIds')
    personas = data.get('presets')

    agent = _agent(ctx, settings)
    console.print("[bold]Starting domain hunt...[/bold]\n")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeRemainingColumn(),
        console=console
    ) as progress:
        task = progress.add_task("[cyan]Scoring batches...", total=None)

        def update(done, total):
            progress.update(task, completed=done, total=total)

        agent.dispatcher.progress_callback = update
        try:
            run = agent.generate_and_score(
                plan['packs'], plan['multipliers'], plan['templates'], plan['constraints'],
                mode=mode, top_k=top_k, preset_ids=preset_ids, personas=personas
            )
        except FlipforgeError as e:
            progress.stop()
            console.print(f"[red]{e}[/red]")
            ctx.exit(1)

    console.print(f"[green]Generated {run.total_generated} unique candidates[/green]\n")

    if not run.results:
        console.print("[yellow]No candidates survived the filters.[/yellow]")
        return

    availability = None
    if check_availability:
        checker = make_checker(real, seed)
        domains = {r.domain: with_tld(r.domain, tld) for r in run.results}
        with console.status("[bold blue]Checking availability..."):
            checks = checker.check_batch(list(domains.values()))
        availability = {name: check for name, check in zip(domains, checks)}

    print_results(run.results, f"Top {run.count} of {run.total_generated}", availability)

    fast = sum(1 for r in run.results if r.bucket == 'FAST-FLIP')
    hold = sum(1 for r in run.results if r.bucket == 'HOLD')
    console.print("\n[bold]Summary:[/bold]")
    console.print(f"  Fast flips: {fast}")
    console.print(f"  Holds: {hold}")
    console.print(f"  Passes: {run.count - fast - hold}")

    if output:
        payload = run.to_dict()
        if availability is not None:
            for item in payload['results']:
                check = availability.get(item['domain'])
                item['availability'] = check.to_dict() if check else None
        write_json(output, payload)


@cli.command()
@click.argument('domains', nargs=-1)
@click.option('--wordlist', '-w', default=None, help='Path to a file of domains (JSON array or one per line)')
@click.option('--mode', '-m', default=None, help='Target niche for single-persona scoring')
@click.option('--preset', '-p', 'preset_ids', multiple=True, help='Persona id to score against (repeatable)')
@click.option('--output', '-o', default=None, help='Output file (JSON)')
@click.pass_context
def score(ctx, domains, wordlist, mode, preset_ids, output):
    """Score a list of domains in one oracle call."""
    domain_list = list(domains)
    if wordlist:
        with open(wordlist) as f:
            content = f.read()
            try:
                domain_list.extend(json.loads(content))
            except json.JSONDecodeError:
                domain_list.extend(line.strip() for line in content.splitlines() if line.strip())

    if not domain_list:
        console.print("[red]No domains provided. Use arguments or --wordlist[/red]")
        ctx.exit(1)

    settings = _settings(ctx)
    agent = _agent(ctx, settings)
    try:
        with console.status(f"[bold green]Scoring {len(domain_list)} domains..."):
            results = agent.score_domains(domain_list, mode=mode, preset_ids=list(preset_ids))
    except FlipforgeError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)

    print_results(results, "Scores")

    if output:
        write_json(output, [r.to_dict() for r in results])


@cli.command()
@click.argument('words', nargs=-1, required=True)
@click.option('--tlds', '-t', default='com', help='TLDs to check (comma-separated)')
@click.option('--real/--mock', default=False, help='Use DNS/WHOIS instead of the mock checker')
@click.option('--verify/--no-verify', default=True, help='Verify DNS hits with WHOIS')
@click.option('--seed', default=None, type=int, help='Seed for the mock checker')
@click.option('--output', '-o', default=None, help='Output file (JSON)')
def check(words, tlds, real, verify, seed, output):
    """Check domain availability."""
    tld_list = split_csv(tlds) or ['com']
    domains = [with_tld(w, t) for w in words for t in tld_list]
    domains = list(dict.fromkeys(domains))

    checker = make_checker(real, seed, verify)
    with console.status(f"[bold blue]Checking {len(domains)} domains..."):
        results = checker.check_batch(domains)

    table = Table(title="Availability")
    table.add_column("Domain", style="cyan")
    table.add_column("Available", justify="center")
    table.add_column("Price", justify="right")
    table.add_column("Method", style="dim")
    for r in results:
        icon = "[green]Y[/green]" if r.available is True else "[red]N[/red]" if r.available is False else "[yellow]?[/yellow]"
        table.add_row(r.domain, icon, f"${r.price:.2f}" if r.price else "-", r.method)
    console.print(table)

    if output:
        write_json(output, [r.to_dict() for r in results])


@cli.command()
@click.pass_context
def presets(ctx):
    """List configured buyer personas."""
    settings = _settings(ctx)

    table = Table(title="Personas")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Max len", justify="right")
    table.add_column("Weights", style="dim")
    table.add_column("Avoid")
    for p in settings.personas:
        w = p.weights
        weights = (f"brand={w.brandability:g} pron={w.pronunciation:g} spell={w.spelling:g} "
                   f"meaning={w.native_meaning:g} intent={w.buyer_intent:g}")
        table.add_row(p.id, p.name, str(p.max_len), weights, ", ".join(p.banned_substrings))
    console.print(table)

    console.print("\n[bold]Niche modes:[/bold] " + ", ".join(sorted(settings.niche_contexts)))


def main():
    cli()


if __name__ == '__main__':
    main()
