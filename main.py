"""
Nexus Report Wizard - Main Entry Point

CLI for the five-step report wizard: browse the tier catalog and model
routing, look up regional centres, view the live opportunity feed, chat
about a report finding, and run the wizard end to end with the report
streamed to the terminal.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from nexus.config.loader import load_config
from nexus.config.schema import NexusConfig
from nexus.observability.logging_config import configure_logging, set_session_id
from nexus.runtime import (
    Services,
    build_controller,
    build_llm_config,
    build_services,
    create_provider_clients,
)
from nexus.services.symbiosis import (
    ChatMessage,
    SymbiosisContext,
    SymbiosisError,
    symbiosis_reply,
)
from nexus.wizard.catalog import (
    COMPANY_SIZES,
    INDUSTRIES,
    MARKET_ANALYSIS_TIER_DETAILS,
    PARTNER_FINDING_TIER_DETAILS,
    REPORT_OPTIONS,
    TARGET_MARKETS,
    WIZARD_STEP_LABELS,
    PartnerFindingTier,
    UserType,
)
from nexus.wizard.errors import CityLookupError, WizardError
from nexus.wizard.state import LookupStatus

load_dotenv()

app = typer.Typer(
    name="nexus",
    help="Nexus Report Wizard - regional intelligence reports",
)
console = Console()
logger = logging.getLogger("nexus")

ALL_TIER_DETAILS = (*MARKET_ANALYSIS_TIER_DETAILS, *PARTNER_FINDING_TIER_DETAILS)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show INFO logs"),
):
    configure_logging(level=logging.INFO if verbose else logging.WARNING)


def _get_config(path: Optional[Path]) -> NexusConfig:
    try:
        return load_config(path)
    except (FileNotFoundError, ValueError) as e:
        console.print(Panel(
            f"[red]{e}[/]",
            title="⚠ Configuration Error",
            border_style="red",
        ))
        raise typer.Exit(code=1)


def _init_services(config: NexusConfig) -> Services:
    """Build services, refusing to start without any usable provider."""
    anthropic_client, openai_client = create_provider_clients()
    if anthropic_client is None and openai_client is None and not config.llm.local_only:
        console.print(Panel(
            "[red]No LLM provider configured.[/]\n\n"
            "Set one of these in your .env file:\n"
            "  [dim]ANTHROPIC_API_KEY=your_key_here[/]\n"
            "  [dim]OPENAI_API_KEY=your_key_here[/]\n\n"
            "or set [cyan]llm.local_only: true[/] in config/nexus.yaml to use Ollama.",
            title="⚠ Configuration Error",
            border_style="red",
        ))
        raise typer.Exit(code=1)
    return build_services(config, anthropic_client, openai_client)


def _pick(label: str, options: Sequence[str], default: int = 1) -> int:
    """Numbered single choice. Returns a 0-based index."""
    for i, option in enumerate(options, 1):
        console.print(f"  [dim]{i:>2}.[/] {option}")
    answer = Prompt.ask(
        label,
        choices=[str(i) for i in range(1, len(options) + 1)],
        default=str(default),
        show_choices=False,
    )
    return int(answer) - 1


def _pick_many(label: str, options: Sequence[str]) -> list[int]:
    """Comma-separated numbered choices. Returns 0-based indices."""
    for i, option in enumerate(options, 1):
        console.print(f"  [dim]{i:>2}.[/] {option}")
    while True:
        answer = Prompt.ask(f"{label} [dim](comma-separated, blank for none)[/]", default="")
        picks = [p.strip() for p in answer.split(",") if p.strip()]
        if all(p.isdigit() and 1 <= int(p) <= len(options) for p in picks):
            return [int(p) - 1 for p in picks]
        console.print("[red]Enter numbers from the list.[/]")


def _step_header(step: int) -> None:
    console.print(f"\n[bold cyan]Step {step}/5 — {WIZARD_STEP_LABELS[step - 1]}[/]")


# =========================================================================
# Commands
# =========================================================================


@app.command()
def info():
    """Show report tiers and add-on modules."""
    table = Table(title="Nexus - Report Tiers")
    table.add_column("Tier", style="cyan")
    table.add_column("Cost", style="yellow")
    table.add_column("Pages", style="white")
    table.add_column("Ideal For", style="green")
    for detail in ALL_TIER_DETAILS:
        table.add_row(detail.tier.value, detail.cost, detail.page_count, detail.ideal_for)
    console.print(table)

    options = Table(title="Add-on Modules")
    options.add_column("ID", style="cyan")
    options.add_column("Module", style="white")
    options.add_column("Cost", style="yellow")
    options.add_column("Description", style="dim")
    for option in REPORT_OPTIONS:
        options.add_row(option.id.value, option.title, option.cost, option.description)
    console.print(options)


@app.command()
def routes(
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to nexus.yaml"),
):
    """Show which model answers each kind of request."""
    config = _get_config(config_path)
    table = Table(title="Model Routing" + (" (local only)" if config.llm.local_only else ""))
    table.add_column("Intent", style="cyan")
    table.add_column("Primary", style="white")
    table.add_column("Fallback", style="dim")
    for row in build_llm_config(config.llm).describe():
        table.add_row(*row)
    console.print(table)


@app.command()
def cities(
    country: str = typer.Argument(..., help="Country name, e.g. 'Vietnam'"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to nexus.yaml"),
):
    """Look up regional centres for a country."""

    async def _run():
        services = _init_services(_get_config(config_path))
        try:
            names = await services.places.resolve(country)
        except CityLookupError as e:
            console.print(f"[red]Lookup failed:[/] {e.message}")
            raise typer.Exit(1)

        if not names:
            console.print(f"[yellow]No regional centres found for {country}.[/]")
            return
        table = Table(title=f"Regional Centres: {country}")
        table.add_column("#", style="dim")
        table.add_column("City", style="cyan")
        for i, name in enumerate(names, 1):
            table.add_row(str(i), name)
        console.print(table)

    asyncio.run(_run())


@app.command()
def opportunities(
    analyze: Optional[int] = typer.Option(
        None, help="Stream a deep-dive analysis of item N"
    ),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to nexus.yaml"),
):
    """Show the live opportunity feed."""

    async def _run():
        services = _init_services(_get_config(config_path))
        feed = await services.opportunities.fetch()

        if feed.is_mock_data:
            console.print("[yellow]⚠ Live feed unavailable, showing sample data.[/]")

        table = Table(title=f"Live Opportunities: {len(feed.items)}")
        table.add_column("#", style="dim")
        table.add_column("Project", style="cyan")
        table.add_column("Country", style="white")
        table.add_column("Sector", style="green")
        table.add_column("Value", style="yellow")
        table.add_column("Feasibility", style="blue")
        for i, item in enumerate(feed.items, 1):
            table.add_row(
                str(i), item.project_name, item.country, item.sector,
                item.value, str(item.ai_feasibility_score),
            )
        console.print(table)

        if analyze is None:
            return
        if not 1 <= analyze <= len(feed.items):
            console.print(f"[red]No item {analyze} in the feed.[/]")
            raise typer.Exit(1)

        item = feed.items[analyze - 1]
        console.print(Panel(item.summary, title=item.project_name, border_style="blue"))
        async for text in services.opportunities.stream_analysis(item):
            console.print(text, end="", markup=False, highlight=False)
        console.print()

    asyncio.run(_run())


async def _symbiosis_session(services: Services, context: SymbiosisContext) -> None:
    """Chat about one finding until the user enters a blank line."""
    history: list[ChatMessage] = []
    console.print(Panel(
        context.original_content, title=f"Symbiosis: {context.topic}", border_style="magenta",
    ))
    while True:
        question = Prompt.ask("[bold]You[/] [dim](blank to finish)[/]", default="").strip()
        if not question:
            return
        history.append(ChatMessage(sender="user", text=question))
        try:
            with console.status("Thinking..."):
                answer = await symbiosis_reply(services.router, context, history)
        except SymbiosisError as e:
            history.pop()
            console.print(f"[red]{e.message}[/]")
            continue
        history.append(ChatMessage(sender="ai", text=answer))
        console.print(Panel(answer, title="Nexus AI", border_style="magenta"))


@app.command()
def chat(
    topic: str = typer.Argument(..., help="What the finding is about"),
    finding: str = typer.Option(..., help="The finding text to discuss"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to nexus.yaml"),
):
    """Explore one report finding with Nexus Symbiosis."""

    async def _run():
        services = _init_services(_get_config(config_path))
        await _symbiosis_session(
            services, SymbiosisContext(topic=topic, original_content=finding),
        )

    asyncio.run(_run())


@app.command()
def wizard(
    output: Optional[Path] = typer.Option(None, help="Also save the report to this file"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to nexus.yaml"),
):
    """Run the five-step report wizard interactively."""

    async def _run():
        config = _get_config(config_path)
        services = _init_services(config)
        controller = build_controller(services, config)
        set_session_id(controller.session_id)
        controller.request_city_lookup()

        # Step 1: Profile
        _step_header(1)
        user_types = [t.value for t in UserType]
        controller.select_user_type(user_types[_pick("Who are you?", user_types)])
        controller.set_user_name(Prompt.ask("Your name"))
        departments = [*controller.department_choices, "Other (type it)"]
        idx = _pick("Organisation", departments)
        if idx == len(departments) - 1:
            controller.toggle_manual_department(True)
            controller.set_user_department(Prompt.ask("Organisation name"))
        else:
            controller.set_user_department(departments[idx])
        controller.set_user_country(
            Prompt.ask("Your country", default=controller.state.profile.user_country)
        )
        controller.advance_step()

        # Step 2: Scope
        _step_header(2)
        controller.set_target_country(
            Prompt.ask("Target country", default=controller.state.scope.target_country)
        )
        with console.status("Finding regional centres..."):
            await controller.settle_lookup()

        lookup = controller.lookup
        if lookup.status == LookupStatus.SUCCESS:
            cities_list = [*lookup.candidates, "Other (type it)"]
            idx = _pick("Regional centre", cities_list)
            if idx == len(cities_list) - 1:
                controller.toggle_manual_city(True)
                controller.select_regional_city(Prompt.ask("City"))
            else:
                controller.select_regional_city(cities_list[idx])
        else:
            if lookup.error_message:
                console.print(f"[yellow]{lookup.error_message}[/]")
            controller.select_regional_city(Prompt.ask("City"))

        industries = [*INDUSTRIES, "Other (type it)"]
        idx = _pick("Industry focus", industries, default=INDUSTRIES.index(
            controller.state.scope.industry) + 1)
        if idx == len(industries) - 1:
            controller.toggle_manual_industry(True)
            controller.set_manual_industry_text(Prompt.ask("Industry"))
        else:
            controller.set_industry(industries[idx])
        controller.advance_step()

        # Step 3: Tier (selection jumps to step 4)
        _step_header(3)
        labels = [f"{d.tier.value}  [dim]{d.cost}[/]" for d in ALL_TIER_DETAILS]
        controller.select_tier(ALL_TIER_DETAILS[_pick("Report tier", labels)].tier)

        # Step 4: Options
        _step_header(4)
        for i in _pick_many(
            "Add-on modules", [f"{o.title} ({o.cost})" for o in REPORT_OPTIONS]
        ):
            controller.toggle_option(REPORT_OPTIONS[i].id)
        controller.advance_step()

        # Step 5: Finalize
        _step_header(5)
        while not controller.state.has_objective:
            controller.set_objective(Prompt.ask("Core objective"))
        controller.set_company_size(
            COMPANY_SIZES[_pick("Ideal partner size", COMPANY_SIZES)]
        )
        tech = Prompt.ask(
            "Key technologies [dim](comma-separated, blank to skip)[/]", default=""
        )
        if tech.strip():
            controller.toggle_manual_tech(True)
            controller.set_manual_tech_text(tech)
        controller.set_target_markets(
            [TARGET_MARKETS[i] for i in _pick_many("Partner target markets", TARGET_MARKETS)]
        )

        request = None
        chunks: list[str] = []
        try:
            async with controller.submit() as stream:
                request = controller.last_request
                console.print(Panel(
                    f"Tier: {request.tier.value}\n"
                    f"Region: {request.region}\n"
                    f"Industry: {request.industry}",
                    title="Generating Report",
                    border_style="cyan",
                ))
                async for text in stream:
                    chunks.append(text)
                    console.print(text, end="", markup=False, highlight=False)
            console.print()
        except WizardError as e:
            console.print(f"[red]{e}[/]")
            raise typer.Exit(1)

        report = "".join(chunks)
        controller.reset()
        if output is not None:
            output.write_text(report)
            console.print(f"[green]Report saved to {output}[/]")

        if isinstance(request.tier, PartnerFindingTier) and Confirm.ask(
            "Draft an outreach letter to a matched company?", default=False
        ):
            from nexus.services.letters import draft_outreach_letter

            letter = await draft_outreach_letter(services.router, request, report)
            console.print(Panel(letter, title="Outreach Letter", border_style="blue"))

        if report.strip() and Confirm.ask(
            "Discuss a finding with Nexus Symbiosis?", default=False
        ):
            topic = Prompt.ask("Topic", default=f"{request.tier.value}: {request.region}")
            finding = Prompt.ask(
                "Paste the finding [dim](blank for the whole report)[/]", default="",
            )
            await _symbiosis_session(services, SymbiosisContext(
                topic=topic,
                original_content=finding.strip() or report,
                report_request=request,
            ))

    asyncio.run(_run())


if __name__ == "__main__":
    app()
