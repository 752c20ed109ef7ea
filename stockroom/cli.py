"""
Stockroom CLI.

Command-line interface for common back-office operations.
"""

import typer
from rich.console import Console
from rich.table import Table

from shared.config.logging import setup_logging
from shared.config.settings import settings
from shared.utils.exceptions import ValidationError

app = typer.Typer(
    name="stockroom",
    help="Stockroom point-of-sale / inventory CLI",
    add_completion=False,
)
console = Console()


@app.callback()
def main() -> None:
    """Configure logging and check settings before any command runs."""
    from stockroom.core.dependencies import current_employee_id

    setup_logging(current_employee_id)

    errors = settings.validate_production_settings()
    if errors:
        for error in errors:
            console.print(f"[red]✗ {error}[/red]")
        raise typer.Exit(1)


# =============================================================================
# Database Commands
# =============================================================================


@app.command()
def init_db():
    """Create missing tables in the configured database."""
    from stockroom.core.dependencies import get_store

    console.print(f"[blue]Initializing database: {settings.database_url}[/blue]")
    try:
        get_store().open()
        console.print("[green]✓ Tables ready[/green]")
    except Exception as e:
        console.print(f"[red]✗ Initialization failed: {e}[/red]")
        raise typer.Exit(1)


# =============================================================================
# Employee Commands
# =============================================================================


@app.command()
def create_employee(
    email: str = typer.Argument(..., help="Login email"),
    password: str = typer.Argument(..., help="Plain text password (stored hashed)"),
    first_name: str = typer.Option(None, "--first-name", help="First name"),
    last_name: str = typer.Option(None, "--last-name", help="Last name"),
    role: str = typer.Option("CASHIER", "--role", "-r", help="ADMIN, MANAGER or CASHIER"),
):
    """Create an employee account."""
    from stockroom.services.domain import AuthService

    try:
        employee = AuthService().register_employee(
            email, password, first_name=first_name, last_name=last_name, role=role.upper()
        )
    except ValidationError as e:
        console.print(f"[red]✗ {e.detail}[/red]")
        raise typer.Exit(1)

    if employee is None:
        console.print("[red]✗ Employee could not be stored[/red]")
        raise typer.Exit(1)
    label = employee.full_name or employee.email
    console.print(f"[green]✓ Employee {employee.id} created: {label} ({employee.role})[/green]")


@app.command()
def audit_log(
    email: str = typer.Argument(..., help="Employee email"),
):
    """Show the audit trail of one employee."""
    from stockroom.core.dependencies import get_audit_log, get_entity_manager
    from stockroom.core.fields import field
    from stockroom.models import Employee

    found, employee = get_entity_manager().find_one_by_field(
        Employee, field(Employee, "email"), email.strip().lower()
    )
    if not found:
        console.print(f"[yellow]No employee with email {email}[/yellow]")
        raise typer.Exit(1)

    _, entries = get_audit_log().entries_for(employee)
    table = Table(title=f"Audit log: {employee.email}")
    table.add_column("When", style="dim")
    table.add_column("Action", style="cyan")
    table.add_column("Detail")
    for entry in entries:
        table.add_row(entry.created_at.strftime("%Y-%m-%d %H:%M:%S"), entry.action, entry.detail)
    console.print(table)


# =============================================================================
# Inventory Commands
# =============================================================================


@app.command()
def list_items(
    search: str = typer.Argument("", help="Item id or exact name; empty lists everything"),
):
    """List inventory items."""
    from stockroom.services.domain import InventoryService

    items = InventoryService().load_items(search)
    if not items:
        console.print("[yellow]No items found[/yellow]")
        return

    table = Table(title="Items")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Name")
    table.add_column("Category")
    table.add_column("Price", justify="right")
    table.add_column("Arrival price", justify="right")
    table.add_column("Qty", justify="right")

    for item in items:
        table.add_row(
            str(item.id),
            item.name,
            item.category.category if item.category else "-",
            f"{item.price:.2f}",
            f"{item.arrival_price:.2f}",
            str(item.quantity),
        )

    console.print(table)


@app.command()
def delete_item(
    item_id: int = typer.Argument(..., help="Item id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete an item, detaching it from deliveries and sales first."""
    from stockroom.services.domain import InventoryService

    if not yes and not typer.confirm(f"Delete item {item_id}?"):
        raise typer.Abort()

    if InventoryService().delete_item(item_id):
        console.print(f"[green]✓ Item {item_id} deleted[/green]")
    else:
        console.print(f"[red]✗ Item {item_id} could not be deleted[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
