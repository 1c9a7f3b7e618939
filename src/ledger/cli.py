import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ledger.config.settings import LedgerSettings
from ledger.database.connection import DatabaseConfig, DatabaseManager
from ledger.domain.categories import categories_for, label_for
from ledger.domain.enums import TransactionType
from ledger.domain.errors import NotFoundError, StoreError, ValidationError
from ledger.domain.models import Transaction
from ledger.query.pagination import display_window
from ledger.repositories.sqlite_transaction_repository import SQLiteTransactionRepository
from ledger.services.transaction_service import GENERIC_STORE_FAILURE, TransactionService

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="ledger",
    help="Personal ledger of income and expenses",
    add_completion=False,
)

console = Console()

EXIT_STORE_ERROR = 1
EXIT_VALIDATION_ERROR = 2
EXIT_NOT_FOUND = 3

class State:
    verbose: bool = False
    settings: Optional[LedgerSettings] = None
    service: Optional[TransactionService] = None


state = State()

@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose", "-v",
        help="Enable verbose output",
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        help="Path to the SQLite database (overrides ledger.json)",
    ),
):
    """
    Ledger - Record, search and summarize your income and expenses.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )

    state.verbose = verbose

    try:
        if state.settings is None:
            state.settings = LedgerSettings.load()

        if state.service is None:
            db_manager = DatabaseManager(DatabaseConfig(db_path or state.settings.db_path))
            db_manager.initialize()
            repository = SQLiteTransactionRepository(db_manager)
            state.service = TransactionService(repository, settings=state.settings)
    except (OSError, ValueError, sqlite3.Error) as e:
        logger.error("Could not open the ledger: %s", e)
        _fail(StoreError(GENERIC_STORE_FAILURE))

def _fail(error: Exception) -> NoReturn:
    """Report an error and exit with a code that tells the failure kinds apart"""
    if isinstance(error, ValidationError):
        console.print(f"[bold red]Invalid input:[/bold red] {error.message}")
        raise typer.Exit(code=EXIT_VALIDATION_ERROR)

    if isinstance(error, NotFoundError):
        console.print(f"[bold yellow]Not found:[/bold yellow] {error}")
        raise typer.Exit(code=EXIT_NOT_FOUND)

    if isinstance(error, StoreError):
        console.print(f"[bold red]Error:[/bold red] {error}")
        raise typer.Exit(code=EXIT_STORE_ERROR)

    console.print(f"[bold red]Error:[/bold red] {error}")
    if state.verbose:
        console.print_exception()
    raise typer.Exit(code=1)

def _print_json(payload: Dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, default=str, indent=2))

def _format_amount(txn: Transaction) -> str:
    if txn.type == TransactionType.EXPENSE:
        return f"[red]-${txn.amount:,.2f}[/red]"
    return f"[green]+${txn.amount:,.2f}[/green]"

def _transactions_table(transactions: List[Transaction], title: Optional[str] = None) -> Table:
    table = Table(title=title, show_header=True, padding=(0, 1))
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Date", style="cyan", width=12)
    table.add_column("Description", style="white", max_width=40)
    table.add_column("Category", style="magenta")
    table.add_column("Amount", justify="right", width=14)

    for txn in transactions:
        desc = txn.description[:37] + "..." if len(txn.description) > 40 else txn.description
        table.add_row(
            str(txn.id),
            f"{txn.date:%Y-%m-%d}",
            desc,
            label_for(txn.category),
            _format_amount(txn),
        )
    return table

def _print_transaction(txn: Transaction, title: str) -> None:
    console.print(Panel.fit(
        f"[bold]ID:[/bold] {txn.id}\n"
        f"[bold]Date:[/bold] {txn.date:%Y-%m-%d %H:%M}\n"
        f"[bold]Type:[/bold] {txn.type.value}\n"
        f"[bold]Category:[/bold] {label_for(txn.category)}\n"
        f"[bold]Description:[/bold] {txn.description}\n"
        f"[bold]Amount:[/bold] {_format_amount(txn)}",
        title=title,
        border_style="cyan",
    ))

@app.command(name="add")
def add_transaction(
    amount: str = typer.Option(..., "--amount", "-a", help="Amount, greater than 0"),
    description: str = typer.Option(..., "--description", "-d", help="What it was for"),
    category: str = typer.Option(..., "--category", "-c", help="Category valid for the type"),
    transaction_type: str = typer.Option(..., "--type", "-t", help="income or expense"),
    when: Optional[str] = typer.Option(
        None,
        "--date",
        help="Effective date (ISO format), defaults to now",
    ),
):
    """
    Record a new transaction.

    Examples:
        ledger add -a 4.50 -d "Coffee shop" -c food -t expense
        ledger add -a 2500 -d "January salary" -c salary -t income --date 2024-01-31
    """
    fields: Dict[str, Any] = {
        "amount": amount,
        "description": description,
        "category": category,
        "type": transaction_type,
    }
    if when is not None:
        fields["date"] = when

    try:
        txn = state.service.create_transaction(fields)
    except Exception as e:
        _fail(e)

    _print_transaction(txn, "[bold green]✓ Transaction created[/bold green]")

@app.command(name="show")
def show_transaction(
    transaction_id: str = typer.Argument(..., help="Transaction id"),
):
    """Show a single transaction."""
    try:
        txn = state.service.get_transaction(transaction_id)
    except Exception as e:
        _fail(e)

    _print_transaction(txn, "Transaction")

@app.command(name="edit")
def edit_transaction(
    transaction_id: str = typer.Argument(..., help="Transaction id"),
    amount: Optional[str] = typer.Option(None, "--amount", "-a"),
    description: Optional[str] = typer.Option(None, "--description", "-d"),
    category: Optional[str] = typer.Option(None, "--category", "-c"),
    transaction_type: Optional[str] = typer.Option(None, "--type", "-t"),
    when: Optional[str] = typer.Option(None, "--date"),
):
    """
    Change some fields of a transaction.

    Changing --type requires a --category valid for the new type.
    """
    supplied = {
        "amount": amount,
        "description": description,
        "category": category,
        "type": transaction_type,
        "date": when,
    }
    fields = {name: value for name, value in supplied.items() if value is not None}

    try:
        txn = state.service.update_transaction(transaction_id, fields)
    except Exception as e:
        _fail(e)

    _print_transaction(txn, "[bold green]✓ Transaction updated[/bold green]")

@app.command(name="delete")
def delete_transaction(
    transaction_id: str = typer.Argument(..., help="Transaction id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Don't ask for confirmation"),
):
    """Permanently delete a transaction."""
    if not yes:
        typer.confirm(f"Delete transaction {transaction_id}? This cannot be undone", abort=True)

    try:
        state.service.delete_transaction(transaction_id)
    except Exception as e:
        _fail(e)

    console.print(f"[bold green]✓ Deleted transaction {transaction_id}[/bold green]")

@app.command(name="list")
def list_transactions(
    transaction_type: Optional[str] = typer.Option(None, "--type", "-t", help="income or expense"),
    category: Optional[str] = typer.Option(None, "--category", "-c"),
    month: Optional[int] = typer.Option(None, "--month", "-m", help="Month (1-12), needs --year"),
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year"),
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Text in the description"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Page size"),
    page: int = typer.Option(1, "--page", "-p", help="Page number"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
):
    """
    List transactions, most recent first.

    Examples:
        ledger list --year 2024 --month 1
        ledger list --type expense --search coffee --page 2
    """
    try:
        result = state.service.list_transactions(
            type=transaction_type,
            category=category,
            month=month,
            year=year,
            search=search,
            limit=limit,
            page=page,
        )
    except Exception as e:
        _fail(e)

    if as_json:
        _print_json(result.to_dict())
        return

    if not result.items:
        console.print(Panel(
            "[yellow]No transactions match these filters[/yellow]",
            title="Empty Result",
            border_style="yellow"
        ))
        return

    shown = display_window(result.items, state.settings.display_window)
    console.print(_transactions_table(
        shown,
        title=f"Page {result.page.current_page} of {result.total_pages}",
    ))

    if len(shown) < result.total_count:
        console.print(f"\n[dim]Showing {len(shown)} of {result.total_count} transactions[/dim]")

@app.command(name="stats")
def stats(
    year: Optional[int] = typer.Option(None, "--year", "-y", help="Year, defaults to the current one"),
    month: Optional[int] = typer.Option(None, "--month", "-m", help="Month (1-12)"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw result as JSON"),
):
    """
    Summarize income, expenses and balance for a month or a year.

    Examples:
        ledger stats
        ledger stats --year 2024 --month 1
    """
    try:
        report = state.service.get_stats(year=year, month=month)
    except Exception as e:
        _fail(e)

    if as_json:
        _print_json(report.to_dict())
        return

    console.print(f"\n[bold cyan]Report: {report.period}[/bold cyan]")

    if report.total_count == 0:
        console.print(Panel(
            "[yellow]No transactions found for this period[/yellow]",
            title="Empty Report",
            border_style="yellow"
        ))
        return

    summary_text = (
        f"[bold]Transactions:[/bold] {report.total_count}\n\n"
        f"[green]Income:[/green]   ${report.total_income:>12,.2f}\n"
        f"[red]Expenses:[/red] ${report.total_expense:>12,.2f}\n"
        f"{'─' * 30}\n"
    )
    balance_color = "green" if report.balance >= 0 else "red"
    summary_text += f"[bold {balance_color}]Balance:[/bold {balance_color}]  ${report.balance:>12,.2f}"

    console.print(Panel(
        summary_text,
        title=f"[bold]{report.period} Summary[/bold]",
        border_style="cyan",
        padding=(1, 2)
    ))

    category_table = Table(title="By Category", show_header=True, box=None, padding=(0, 2))
    category_table.add_column("Category", style="cyan", no_wrap=True)
    category_table.add_column("Type", style="dim")
    category_table.add_column("Count", justify="right")
    category_table.add_column("Total", justify="right")

    for group in report.aggregation.by_category:
        color = "green" if group.type == TransactionType.INCOME else "red"
        category_table.add_row(
            label_for(group.category),
            group.type.value,
            str(group.count),
            f"[{color}]${group.total:,.2f}[/{color}]",
        )
    console.print(category_table)

    console.print(_transactions_table(report.aggregation.recent, title="Recent Transactions"))

@app.command(name="categories")
def list_categories():
    """Show the categories available for each type."""
    for transaction_type in TransactionType:
        table = Table(title=f"{transaction_type.value.capitalize()} categories", box=None)
        table.add_column("Value", style="cyan")
        table.add_column("Label")
        for category in categories_for(transaction_type):
            table.add_row(category, label_for(category))
        console.print(table)


def cli_main():
    """Entry point for the CLI"""
    app()


if __name__ == "__main__":
    cli_main()
