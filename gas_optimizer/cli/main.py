"""
CLI interface for the gas optimizer.

Provides command-line access to the ledger and its analytics.
"""

import logging
import sqlite3
import sys
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from gas_optimizer.config.loader import default_config, load_config
from gas_optimizer.core.engine import GasOptimizer
from gas_optimizer.core.errors import ArityMismatch, GasOptimizerError
from gas_optimizer.core.ledger import BatchEntry
from gas_optimizer.demo.seed_demo_data import seed_demo_data
from gas_optimizer.storage.models import MAX_UINT256
from gas_optimizer.storage.repository import LedgerRepository, initialize_schema

app = typer.Typer()
console = Console()

EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1

WEI_PER_ETH = Decimal(10) ** 18

ACCOUNT_OPTION = typer.Option(..., "--account", "-a", help="Caller account address")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(None, "--db", help="Path to the SQLite ledger"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to YAML config"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Gas Optimizer CLI."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    ctx.obj = {"db": db, "config": config}
    if ctx.invoked_subcommand is None:
        console.print("Gas Optimizer - Use --help to see available commands")


@contextmanager
def _reported_errors():
    """Print domain and configuration errors and exit with the failing code."""
    try:
        yield
    except (GasOptimizerError, ValueError, FileNotFoundError, yaml.YAMLError, sqlite3.Error) as e:
        console.print(f"[red]Error:[/] {e}")
        sys.exit(EXIT_CODE_FAIL)


def _build_engine(ctx: typer.Context) -> GasOptimizer:
    options = ctx.obj or {}
    config = load_config(options["config"]) if options.get("config") else default_config()
    repository = LedgerRepository(options.get("db") or config.database)
    return GasOptimizer(
        is_administrator=config.is_administrator,
        baselines=config.baselines,
        analysis_fee=config.analysis_fee,
        repository=repository,
    )


def _format_cost(amount: int) -> str:
    """Format a wei amount with its ETH equivalent."""
    eth = Decimal(amount) / WEI_PER_ETH
    return f"{amount:,} wei ({eth:.6f} ETH)"


@app.command()
def init(ctx: typer.Context):
    """Initialize the ledger database."""
    with _reported_errors():
        options = ctx.obj or {}
        config = load_config(options["config"]) if options.get("config") else default_config()
        initialize_schema(options.get("db") or config.database)
    console.print("[green]✓[/] Database initialized successfully")


@app.command()
def record(
    ctx: typer.Context,
    account: str = ACCOUNT_OPTION,
    to: str = typer.Option(..., "--to", help="Recipient address"),
    value: int = typer.Option(0, "--value", help="Transferred amount"),
    gas_used: int = typer.Option(..., "--gas-used", help="Gas consumed"),
    gas_price: int = typer.Option(..., "--gas-price", help="Gas price in wei"),
    category: str = typer.Option("transfer", "--category", help="Transaction category"),
):
    """Record a single transaction."""
    with _reported_errors():
        engine = _build_engine(ctx)
        engine.append(account, to, value, gas_used, gas_price, category)
        count = engine.get_count(account)
        state = engine.budget_state(account)

    console.print(f"[green]✓[/] Recorded {category} transaction #{count}")
    if state is not None and state.exceeded:
        console.print(
            f"[yellow]Budget exceeded:[/] spent {_format_cost(state.spent)} "
            f"of {_format_cost(state.budget)}"
        )


@app.command("record-batch")
def record_batch(
    ctx: typer.Context,
    account: str = ACCOUNT_OPTION,
    file: str = typer.Argument(..., help="YAML or JSON list of transactions"),
):
    """Record a list of transactions atomically."""
    with _reported_errors():
        with open(file, 'r', encoding='utf-8') as f:
            raw_entries = yaml.safe_load(f) or []
        if not isinstance(raw_entries, list):
            raise ValueError("Batch file must contain a list of transactions")
        entries = []
        for index, raw in enumerate(raw_entries):
            if not isinstance(raw, dict):
                raise ArityMismatch(f"Transaction {index} must be a mapping")
            missing = [name for name in BatchEntry._fields if name not in raw]
            if missing:
                raise ArityMismatch(f"Transaction {index} is missing fields: {missing}")
            entries.append(BatchEntry(**{name: raw[name] for name in BatchEntry._fields}))
        engine = _build_engine(ctx)
        records = engine.batch_append(account, entries)

    console.print(f"[green]✓[/] Recorded {len(records)} transactions")


@app.command()
def report(ctx: typer.Context, account: str = ACCOUNT_OPTION):
    """Show aggregate gas statistics for an account."""
    with _reported_errors():
        engine = _build_engine(ctx)
        result = engine.generate_report(account)
        state = engine.budget_state(account)

    console.print(f"\n[bold]Gas Report[/bold] for {account}")
    console.print("-" * 40)
    console.print(f"Transactions: {result.count}")
    console.print(f"Total gas consumed: {result.total_gas_consumed:,}")
    console.print(f"Total gas cost: {_format_cost(result.total_gas_cost)}")
    console.print(f"Average gas price: {result.average_gas_price:,} wei")
    console.print(f"Most expensive: {_format_cost(result.most_expensive_tx_cost)}")
    if result.cheapest_tx_cost == MAX_UINT256:
        console.print("Cheapest: n/a")
    else:
        console.print(f"Cheapest: {_format_cost(result.cheapest_tx_cost)}")
    if state is not None:
        console.print(f"Budget: {_format_cost(state.spent)} of {_format_cost(state.budget)}")
        if state.exceeded:
            console.print(f"[red]Over budget by {_format_cost(-state.remaining)}[/]")
        else:
            console.print(f"Budget remaining: {_format_cost(state.remaining)}")


@app.command()
def compare(
    ctx: typer.Context,
    account: str = ACCOUNT_OPTION,
    category: str = typer.Option(..., "--category", help="Category to compare"),
):
    """Compare average gas in a category against its baseline."""
    with _reported_errors():
        result = _build_engine(ctx).compare_against_baseline(account, category)

    verdict = "[green]optimal[/]" if result.is_optimal else "[red]not optimal[/]"
    console.print(f"Category: {category}")
    console.print(f"Average gas: {result.average_gas:,}")
    console.print(f"Baseline: {result.baseline:,}")
    console.print(f"Verdict: {verdict}")


@app.command()
def efficiency(ctx: typer.Context, account: str = ACCOUNT_OPTION):
    """Show the 0-100 efficiency score for an account."""
    with _reported_errors():
        score = _build_engine(ctx).efficiency_score(account)
    console.print(f"Efficiency score: {score}/100")


@app.command("savings-estimate")
def savings_estimate(ctx: typer.Context, account: str = ACCOUNT_OPTION):
    """Estimate the cost of gas used above category baselines."""
    with _reported_errors():
        savings = _build_engine(ctx).estimate_max_potential_savings(account)
    console.print(f"Max potential savings: {_format_cost(savings)}")


@app.command()
def recommend(ctx: typer.Context, account: str = ACCOUNT_OPTION):
    """Suggest a gas limit from the account's history."""
    with _reported_errors():
        result = _build_engine(ctx).recommend(account)

    if not result.has_recommendation:
        console.print("[yellow]No transactions recorded yet - no recommendation[/]")
        return
    console.print(f"Transactions analysed: {result.transaction_count}")
    console.print(f"Average gas used: {result.average_gas_used:,}")
    console.print(f"Recommended gas limit: {result.recommended_gas_limit:,}")
    console.print(f"Potential savings: {result.potential_savings:,} gas")


@app.command()
def history(
    ctx: typer.Context,
    account: str = ACCOUNT_OPTION,
    start: datetime = typer.Option(..., "--start", help="Range start (inclusive)"),
    end: datetime = typer.Option(..., "--end", help="Range end (inclusive)"),
):
    """List transactions recorded within a time range."""
    with _reported_errors():
        records = _build_engine(ctx).transactions_in_range(account, start, end)

    if not records:
        console.print("[dim]No transactions in range.[/]")
        return

    table = Table(title=f"{len(records)} transactions")
    table.add_column("Time")
    table.add_column("Category")
    table.add_column("Gas used", justify="right")
    table.add_column("Gas price", justify="right")
    for item in records:
        table.add_row(
            item.timestamp.isoformat(timespec="seconds"),
            item.category,
            f"{item.gas_used:,}",
            f"{item.gas_price:,}",
        )
    console.print(table)


@app.command()
def accounts(ctx: typer.Context):
    """List accounts with recorded transactions."""
    with _reported_errors():
        engine = _build_engine(ctx)
        senders = engine.ledger.accounts()

    if not senders:
        console.print("[dim]No transactions recorded.[/]")
        return

    table = Table(title=f"{len(senders)} accounts")
    table.add_column("Account")
    table.add_column("Transactions", justify="right")
    table.add_column("Total gas cost", justify="right")
    for sender in senders:
        table.add_row(sender, str(engine.get_count(sender)), _format_cost(engine.total_gas_cost(sender)))
    console.print(table)


@app.command()
def baselines(ctx: typer.Context):
    """List the gas baseline of every category."""
    with _reported_errors():
        current = _build_engine(ctx).baselines.snapshot()

    table = Table(title="Baselines")
    table.add_column("Category")
    table.add_column("Gas", justify="right")
    for category, gas in sorted(current.items()):
        table.add_row(category, f"{gas:,}")
    console.print(table)


@app.command("set-budget")
def set_budget(
    ctx: typer.Context,
    account: str = ACCOUNT_OPTION,
    amount: int = typer.Option(..., "--amount", help="Budget on cumulative gas cost (wei)"),
):
    """Set an advisory spending ceiling."""
    with _reported_errors():
        _build_engine(ctx).set_budget(account, amount)
    console.print(f"[green]✓[/] Budget set to {_format_cost(amount)}")


@app.command("report-savings")
def report_savings(
    ctx: typer.Context,
    account: str = ACCOUNT_OPTION,
    amount: int = typer.Option(..., "--amount", help="Gas saved"),
):
    """Report gas saved by an optimization."""
    with _reported_errors():
        stats_result = _build_engine(ctx).report_savings(account, amount)
    console.print(f"[green]✓[/] Total saved: {stats_result.total_saved:,} gas")


@app.command()
def stats(ctx: typer.Context, account: str = ACCOUNT_OPTION):
    """Show reported savings for an account."""
    with _reported_errors():
        result = _build_engine(ctx).stats(account)
    console.print(f"Total saved: {result.total_saved:,} gas")
    console.print(f"Optimizations reported (all accounts): {result.global_optimization_count}")


@app.command("set-baseline")
def set_baseline(
    ctx: typer.Context,
    account: str = ACCOUNT_OPTION,
    category: str = typer.Option(..., "--category", help="Category to update"),
    gas: int = typer.Option(..., "--gas", help="Expected gas for the category"),
):
    """Update a category baseline (administrators only)."""
    with _reported_errors():
        _build_engine(ctx).set_baseline(account, category, gas)
    console.print(f"[green]✓[/] Baseline for {category} set to {gas:,}")


@app.command("set-fee")
def set_fee(
    ctx: typer.Context,
    account: str = ACCOUNT_OPTION,
    fee: int = typer.Option(..., "--fee", help="Analysis fee in wei"),
):
    """Update the analysis fee (administrators only)."""
    with _reported_errors():
        _build_engine(ctx).set_analysis_fee(account, fee)
    console.print(f"[green]✓[/] Analysis fee set to {_format_cost(fee)}")


@app.command("seed-demo")
def seed_demo(ctx: typer.Context, account: str = ACCOUNT_OPTION):
    """Insert demo transactions for an account."""
    with _reported_errors():
        records = seed_demo_data(_build_engine(ctx), account)
    console.print(f"[green]✓[/] Demo usage data inserted ({len(records)} transactions)")


if __name__ == "__main__":
    app()
