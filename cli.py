#!/usr/bin/env python3
"""
SplitLedger CLI - balances and settle-up from the terminal

Usage:
    python cli.py balances --group <group_id>
    python cli.py balances --viewer <user_id> --file expenses.json
    python cli.py settle --from <debtor> --to <creditor> --amount 30 --group <group_id>
    python cli.py init-db
"""

import asyncio
import json
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from splitledger.schemas.ledger import PERSONAL_SCOPE, Expense, Group
from splitledger.services.balance_engine.aggregator import balance_entries, summarize_for_user, total_spent
from splitledger.services.balance_engine.errors import LedgerError
from splitledger.services.database_manager.store import InMemoryLedgerStore, LedgerStore, SqlLedgerStore
from splitledger.services.expense_manager import ExpenseManager
from splitledger.utils.logger import get_logger

logger = get_logger(__name__)
console = Console()


def _load_expenses(path: Path) -> List[Expense]:
    """Read expenses from a JSON file holding a list, or an object with an "expenses" list."""
    raw = json.loads(path.read_text())
    if isinstance(raw, dict):
        raw = raw.get("expenses", [])
    return [Expense.model_validate(item) for item in raw]


def _open_store(file: Optional[Path]) -> LedgerStore:
    if file is not None:
        return InMemoryLedgerStore(expenses=_load_expenses(file))
    return SqlLedgerStore()


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """
    SplitLedger CLI

    Inspect who owes whom and record settle-ups.
    """
    pass


@cli.command()
@click.option("--group", "group_id", type=str, help="Group to compute balances for")
@click.option("--viewer", "viewer_id", type=str, help="Viewing user; required for personal balances")
@click.option(
    "--file",
    "file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Compute from a JSON file of expenses instead of the database",
)
def balances(group_id: Optional[str], viewer_id: Optional[str], file: Optional[Path]):
    """
    Show the net balances of a group, or a viewer's personal balances.

    Examples:

        # Balances of a group
        python cli.py balances --group trip-2025

        # Personal balances of one user, offline
        python cli.py balances --viewer alice --file expenses.json
    """
    if group_id is None and not viewer_id:
        console.print("[red]Error: --viewer is required for personal balances[/red]")
        raise click.Abort()

    try:
        asyncio.run(_show_balances(_open_store(file), group_id or PERSONAL_SCOPE, viewer_id))
    except (LedgerError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        logger.error(f"balances command failed: {e}")
        raise click.Abort()


async def _show_balances(store: LedgerStore, scope: str, viewer_id: Optional[str]):
    manager = ExpenseManager(store)
    expenses = await manager.list_expenses(scope, viewer_id)
    balances_by_pair = await manager.get_balances(scope, viewer_id)

    title = "Personal balances" if scope == PERSONAL_SCOPE else f"Balances for group {scope}"
    console.print(Panel.fit(f"[bold cyan]{title}[/bold cyan]", border_style="cyan"))

    entries = balance_entries(balances_by_pair)
    if not entries:
        console.print("[green]All settled up.[/green]")
    else:
        table = Table(show_header=True)
        table.add_column("Debtor", style="yellow")
        table.add_column("Owes", style="cyan")
        table.add_column("Amount", justify="right", style="bold")
        for entry in entries:
            table.add_row(entry.debtor, entry.creditor, f"{entry.amount:.2f}")
        console.print(table)

    console.print(f"Expenses: {len(expenses)}  Total spent: {total_spent(expenses):.2f}")

    if viewer_id:
        summary = summarize_for_user(balances_by_pair, viewer_id)
        console.print(
            f"{viewer_id} is owed [green]{summary.total_owed_to_viewer:.2f}[/green], "
            f"owes [red]{summary.total_viewer_owes:.2f}[/red], "
            f"net {summary.net_total_balance:+.2f}"
        )


@cli.command()
@click.option("--from", "debtor", required=True, help="User paying off the debt")
@click.option("--to", "creditor", required=True, help="User receiving the payment")
@click.option("--amount", type=float, required=True, help="Amount paid")
@click.option("--group", "group_id", type=str, help="Group scope; personal when omitted")
def settle(debtor: str, creditor: str, amount: float, group_id: Optional[str]):
    """Record that one user paid another back."""
    try:
        receipt = asyncio.run(ExpenseManager(SqlLedgerStore()).settle_up(debtor, creditor, amount, group_id))
    except LedgerError as e:
        console.print(f"[red]Error: {e}[/red]")
        logger.error(f"settle command failed: {e}")
        raise click.Abort()

    console.print(
        f"[green]Recorded settlement {receipt.settlement.id}: "
        f"{debtor} paid {creditor} {amount:.2f}[/green]"
    )


@cli.command("create-group")
@click.option("--name", required=True, help="Group name")
@click.option("--creator", required=True, help="User creating the group")
@click.option("--member", "members", multiple=True, help="Member user ID (repeatable)")
def create_group(name: str, creator: str, members: tuple):
    """Create a group; the creator is always a member."""
    try:
        group = asyncio.run(
            SqlLedgerStore().add_group(Group(name=name, created_by=creator, members=list(members)))
        )
    except LedgerError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise click.Abort()

    console.print(f"[green]Created group {group.name} ({group.id}) with {len(group.members)} member(s)[/green]")


@cli.command("init-db")
def init_db():
    """Create the ledger tables if they do not exist."""
    from splitledger.services.database_manager.connection import close_engine, create_tables

    async def _init():
        try:
            await create_tables()
        finally:
            await close_engine()

    try:
        asyncio.run(_init())
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        logger.error(f"init-db failed: {e}")
        raise click.Abort()

    console.print("[green]Database tables created.[/green]")


if __name__ == "__main__":
    cli()
